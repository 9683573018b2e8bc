"""Shared fixtures: contacts, an event builder and an in-memory calendar store."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Set, Tuple
from unittest.mock import MagicMock

import pytest

from bdaycal.caldav_client import parse_event
from bdaycal.event_builder import EventBuilder
from bdaycal.exceptions import StoreError
from bdaycal.identity import event_resource_name
from bdaycal.models import Contact, EventDescriptor

CATEGORY = "Birthday"
CALENDAR_URL = "https://dav.example.org/dav/calendars/dev/birthdays/"
ADDRESSBOOK_URL = "https://dav.example.org/dav/addressbooks/dev/contacts/"


def make_contact(identifier: str = "c1", birthday: date = date(1990, 5, 12), **overrides) -> Contact:
    """Build a Contact with sensible defaults, applying *overrides*."""
    fields = {
        "identifier": identifier,
        "first_name": "Jane",
        "last_name": "Doe",
        "display_name": "Jane Doe",
        "birthday": birthday,
    }
    fields.update(overrides)
    return Contact(**fields)


def make_event(identifier: str = "c1", start_date: date = date(1990, 5, 12)) -> EventDescriptor:
    return EventDescriptor(
        identifier=identifier,
        start_date=start_date,
        resource_location=CALENDAR_URL + event_resource_name(identifier),
    )


def foreign_event(uid: str, category: str = "Work") -> str:
    """An iCalendar resource owned by somebody else."""
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//Other//Planner//EN\r\n"
        "BEGIN:VEVENT\r\n"
        f"UID:{uid}\r\n"
        "DTSTAMP:20240101T000000Z\r\n"
        "DTSTART;VALUE=DATE:19900512\r\n"
        "SUMMARY:Team offsite\r\n"
        f"CATEGORIES:{category}\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )


class InMemoryCalendar:
    """Calendar store keeping resources in a dict and recording every write."""

    def __init__(self, category: str = CATEGORY):
        self.calendar_url = CALENDAR_URL
        self.category = category
        self.resources: Dict[str, str] = {}
        self.writes: List[Tuple[str, str]] = []
        self.failing_deletes: Set[str] = set()
        self.failing_uploads: Set[str] = set()

    def is_reachable(self) -> bool:
        return True

    def add(self, name: str, content: str) -> str:
        url = self.calendar_url + name
        self.resources[url] = content
        return url

    def delete(self, url: str):
        if url in self.failing_deletes:
            raise StoreError(f"Failed to delete {url}: 500", url, 500)
        self.writes.append(("delete", url))
        del self.resources[url]

    def upload_event(self, identifier: str, content: str) -> str:
        url = self.calendar_url + event_resource_name(identifier)
        if identifier in self.failing_uploads:
            raise StoreError(f"Failed to upload {url}: 507", url, 507)
        if url in self.resources:
            raise StoreError(f"Failed to upload {url}: 412", url, 412)
        self.writes.append(("put", url))
        self.resources[url] = content
        return url

    def collect_birthday_events(self) -> List[EventDescriptor]:
        events = []
        for url, content in sorted(self.resources.items()):
            event = parse_event(content, url, self.category)
            if event is not None:
                events.append(event)
        return events


class StaticContacts:
    """Contact source returning a fixed list."""

    def __init__(self, contacts: List[Contact]):
        self.addressbook_url = ADDRESSBOOK_URL
        self.contacts = list(contacts)
        self.list_contacts = MagicMock(side_effect=lambda: list(self.contacts))

    def is_reachable(self) -> bool:
        return True


@pytest.fixture()
def jane() -> Contact:
    return make_contact("c1", date(1990, 5, 12), first_name="Jane", last_name="Doe",
                        display_name="Jane Doe")


@pytest.fixture()
def john() -> Contact:
    return make_contact("c2", date(1985, 11, 3), first_name="John", last_name="Roe",
                        display_name="John Roe")


@pytest.fixture()
def builder() -> EventBuilder:
    return EventBuilder(
        category=CATEGORY,
        summary_template="🎂 ~first-name~ ~last-name~",
        description_template="Birthday: ~birthday~",
        date_format="%Y-%m-%d",
    )


@pytest.fixture()
def calendar() -> InMemoryCalendar:
    return InMemoryCalendar()
