"""
Applies a computed Delta to the calendar collection
"""

import logging
from enum import Enum
from typing import Callable, Dict

from bdaycal.event_builder import EventBuilder
from bdaycal.exceptions import StoreError
from bdaycal.models import Delta, SyncReport

logger = logging.getLogger(__name__)


class Operation(Enum):
    DELETE_ORPHAN = 'delete orphaned event'
    DELETE_SUPERSEDED = 'delete superseded event'
    UPLOAD = 'upload event'


class FailurePolicy(Enum):
    BEST_EFFORT = 'best-effort'
    PROPAGATE = 'propagate'


# Orphans left behind are picked up again next run; a failed replacement
# delete or upload ends the run.
FAILURE_POLICY: Dict[Operation, FailurePolicy] = {
    Operation.DELETE_ORPHAN: FailurePolicy.BEST_EFFORT,
    Operation.DELETE_SUPERSEDED: FailurePolicy.PROPAGATE,
    Operation.UPLOAD: FailurePolicy.PROPAGATE,
}


class ApplyEngine:
    """Executes deletions and uploads so each identifier has at most one event"""

    def __init__(self, store, builder: EventBuilder,
                 policy: Dict[Operation, FailurePolicy] = None):
        self.store = store
        self.builder = builder
        self.policy = dict(FAILURE_POLICY if policy is None else policy)

    def _attempt(self, operation: Operation, identifier: str, action: Callable[[], object]) -> bool:
        try:
            action()
            return True
        except StoreError as e:
            if self.policy[operation] is FailurePolicy.BEST_EFFORT:
                logger.error(f"Failed to {operation.value} for {identifier}: {e}")
                return False
            logger.error(f"Failed to {operation.value} for {identifier}, aborting: {e}")
            raise

    def apply(self, delta: Delta) -> SyncReport:
        report = SyncReport()

        for event in sorted(delta.orphaned, key=lambda e: e.identifier):
            url = event.resource_location
            if self._attempt(Operation.DELETE_ORPHAN, event.identifier,
                             lambda: self.store.delete(url)):
                report.deleted.append(event.identifier)
                logger.info(f"Deleted outdated event: {url}")
            else:
                report.failed_deletes.append(event.identifier)

        if not delta.changed:
            logger.info("No birthday events to update found")
            return report

        for contact in sorted(delta.changed, key=lambda c: c.identifier):
            previous = delta.superseded.get(contact.identifier)
            if previous is not None:
                url = previous.resource_location
                if not self._attempt(Operation.DELETE_SUPERSEDED, contact.identifier,
                                     lambda: self.store.delete(url)):
                    # uploading now would leave two events for one identifier
                    report.failed_deletes.append(contact.identifier)
                    continue
                report.deleted.append(contact.identifier)
                logger.debug(f"Deleted outdated event before add: {url}")

            content = self.builder.build(contact)
            if not self._attempt(Operation.UPLOAD, contact.identifier,
                                 lambda: self.store.upload_event(contact.identifier, content)):
                continue
            report.created.append(contact.identifier)
            logger.info(f"Added or updated event for: {contact.full_name} ({contact.birthday})")

        return report
