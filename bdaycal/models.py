"""
Value types shared by the readers, the reconciler and the apply engine
"""

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, List, Mapping


@dataclass(frozen=True)
class Contact:
    """A contact with a known birthday, rebuilt on every run"""

    identifier: str
    first_name: str
    last_name: str
    display_name: str
    birthday: date

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class EventDescriptor:
    """A managed birthday event found in the calendar collection"""

    identifier: str
    start_date: date
    resource_location: str


@dataclass(frozen=True)
class Delta:
    """Changes needed to bring the calendar in line with the address book.

    ``superseded`` maps the identifier of a changed contact to the event that
    has to be removed before the rebuilt one is uploaded.
    """

    orphaned: FrozenSet[EventDescriptor] = frozenset()
    changed: FrozenSet[Contact] = frozenset()
    superseded: Mapping[str, EventDescriptor] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.orphaned and not self.changed


@dataclass
class SyncReport:
    """Outcome of applying one Delta"""

    created: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed_deletes: List[str] = field(default_factory=list)
    dry_run: bool = False

    def summary(self) -> str:
        prefix = "[dry run] " if self.dry_run else ""
        return (f"{prefix}{len(self.created)} created, {len(self.deleted)} deleted, "
                f"{len(self.failed_deletes)} failed deletion(s)")
