"""
Computes the changes needed between contacts and managed birthday events
"""

import logging
from typing import Dict, Iterable, TypeVar

from bdaycal.exceptions import DataIntegrityError
from bdaycal.models import Contact, Delta, EventDescriptor

logger = logging.getLogger(__name__)

T = TypeVar('T', Contact, EventDescriptor)


def _index(items: Iterable[T], kind: str) -> Dict[str, T]:
    indexed = {}
    for item in items:
        if not item.identifier:
            raise DataIntegrityError(f"{kind} without identifier: {item!r}")
        if item.identifier in indexed:
            raise DataIntegrityError(f"Duplicate {kind} identifier: {item.identifier}")
        indexed[item.identifier] = item
    return indexed


def compute_delta(contacts: Iterable[Contact], events: Iterable[EventDescriptor]) -> Delta:
    """Compare desired contacts with the observed events.

    Pure function: an event is orphaned when no contact carries its identifier,
    a contact is changed when it has no event or the event starts on another
    date. Duplicate or empty identifiers raise :class:`DataIntegrityError`.
    """
    contacts_by_key = _index(contacts, 'contact')
    events_by_key = _index(events, 'event')

    orphaned = frozenset(
        event for key, event in events_by_key.items() if key not in contacts_by_key
    )

    changed = set()
    superseded = {}
    for key, contact in contacts_by_key.items():
        existing = events_by_key.get(key)
        if existing is None:
            changed.add(contact)
            logger.debug(f"No birthday event found for {contact.full_name} ({key})")
        elif existing.start_date != contact.birthday:
            changed.add(contact)
            superseded[key] = existing
            logger.debug(f"Birthday of {contact.full_name} changed: "
                         f"{existing.start_date} -> {contact.birthday}")

    return Delta(orphaned=orphaned, changed=frozenset(changed), superseded=superseded)
