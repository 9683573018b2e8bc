"""
One reconciliation pass: gate, read, compare, apply
"""

import logging

from bdaycal.apply import ApplyEngine
from bdaycal.caldav_client import CalDAVClient
from bdaycal.cardav_client import CardDAVClient
from bdaycal.connectivity import ConnectivityGate
from bdaycal.event_builder import EventBuilder
from bdaycal.exceptions import ConnectivityError
from bdaycal.models import Delta, SyncReport
from bdaycal.reconciler import compute_delta

logger = logging.getLogger(__name__)


class BirthdaySync:
    """Keeps the managed birthday events in line with the address book.

    The clients are created once per process and reused by every run; nothing
    else is kept between runs.
    """

    def __init__(self, contacts: CardDAVClient, calendar: CalDAVClient,
                 builder: EventBuilder, gate: ConnectivityGate):
        self.contacts = contacts
        self.calendar = calendar
        self.builder = builder
        self.gate = gate
        self.engine = ApplyEngine(calendar, builder)

    def check_connectivity(self):
        """Raise ConnectivityError unless both collections answer"""
        targets = (
            (self.contacts.addressbook_url, self.contacts.is_reachable),
            (self.calendar.calendar_url, self.calendar.is_reachable),
        )
        for target, probe in targets:
            if not self.gate.is_reachable(target, probe):
                logger.error(f"Access to {target} failed after {self.gate.max_retries} attempt(s)")
                raise ConnectivityError(target, self.gate.max_retries)

    def plan(self) -> Delta:
        contacts = self.contacts.list_contacts()
        events = self.calendar.collect_birthday_events()
        logger.info(f"Syncing birthday events of {len(contacts)} contacts "
                    f"against {len(events)} existing events")

        delta = compute_delta(contacts, events)
        logger.info(f"{len(delta.changed)} new or changed birthday(s), "
                    f"{len(delta.orphaned)} orphaned event(s)")
        return delta

    def run(self, dry_run: bool = False) -> SyncReport:
        self.check_connectivity()
        delta = self.plan()

        if dry_run:
            for event in sorted(delta.orphaned, key=lambda e: e.identifier):
                logger.info(f"[dry run] would delete {event.resource_location}")
            for contact in sorted(delta.changed, key=lambda c: c.identifier):
                action = 'replace' if contact.identifier in delta.superseded else 'create'
                logger.info(f"[dry run] would {action} event for {contact.full_name} "
                            f"({contact.birthday})")
            return SyncReport(dry_run=True)

        report = self.engine.apply(delta)
        logger.info(f"Synced birthday events: {report.summary()}")
        return report
