"""
CalDAV client for reading and writing birthday events
"""

import logging
from datetime import date, datetime
from typing import List, Optional

import caldav
import vobject
from caldav.lib import error

from bdaycal.dav import PROPFIND_BODY
from bdaycal.exceptions import RecordParseError, StoreError
from bdaycal.identity import event_resource_name, identifier_from_uid
from bdaycal.models import EventDescriptor

logger = logging.getLogger(__name__)

CALENDAR_CONTENT_TYPE = 'text/calendar'

# Transport failures surface as OSError (requests' exceptions derive from it)
STORE_ERRORS = (error.DAVError, OSError)


def event_categories(vevent) -> List[str]:
    """All CATEGORIES values of a VEVENT, across repeated properties"""
    categories = []
    for prop in getattr(vevent, 'categories_list', []):
        value = prop.value
        if isinstance(value, str):
            value = value.split(',')
        categories.extend(v.strip() for v in value)
    return categories


def parse_event(calendar_text: str, url: str, category: str) -> Optional[EventDescriptor]:
    """Describe the managed birthday event stored at ``url``.

    Returns None when the event is not tagged with ``category``; raises
    RecordParseError for resources that cannot be interpreted.
    """
    try:
        calendar = vobject.readOne(calendar_text)
    except Exception as e:
        raise RecordParseError(f"Invalid iCalendar data at {url}: {e}") from e

    vevents = getattr(calendar, 'vevent_list', [])
    if len(vevents) != 1:
        raise RecordParseError(
            f"Unexpected number of events: {len(vevents)} for URL: {url} (expected: 1)")
    vevent = vevents[0]

    if category not in event_categories(vevent):
        return None

    if not hasattr(vevent, 'uid') or not vevent.uid.value.strip():
        raise RecordParseError(f"Missing UID in event at {url}")
    if not hasattr(vevent, 'dtstart'):
        raise RecordParseError(f"Missing DTSTART in event at {url}")

    start = vevent.dtstart.value
    if isinstance(start, datetime):
        start = start.date()
    elif not isinstance(start, date):
        raise RecordParseError(f"Unexpected DTSTART value {start!r} at {url}")

    return EventDescriptor(
        identifier=identifier_from_uid(vevent.uid.value),
        start_date=start,
        resource_location=url,
    )


def create_caldav_client(calendar_url: str, username: str, password: str) -> caldav.DAVClient:
    """DAV client for the calendar server, created once per process"""
    return caldav.DAVClient(url=calendar_url, username=username, password=password)


class CalDAVClient:
    """Client for the birthday events in one calendar collection"""

    def __init__(self, client: caldav.DAVClient, calendar_url: str, category: str,
                 calendar: Optional[caldav.Calendar] = None):
        self.client = client
        self.calendar_url = calendar_url if calendar_url.endswith('/') else calendar_url + '/'
        self.category = category
        if calendar is None:
            calendar = caldav.Calendar(client=client, url=self.calendar_url)
        self.calendar = calendar

    def is_reachable(self) -> bool:
        response = self.client.propfind(self.calendar_url, PROPFIND_BODY, depth=0)
        logger.debug(f"CalDAV probe response: {response.status}")
        return response.status in (200, 207)

    def events(self) -> List[caldav.Event]:
        """Every VEVENT resource of the calendar, with its data loaded"""
        try:
            return list(self.calendar.events())
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to list {self.calendar_url}: {e}", self.calendar_url) from e

    def delete(self, url: str):
        try:
            caldav.Event(client=self.client, url=url, parent=self.calendar).delete()
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to delete {url}: {e}", url) from e

    def event_url(self, identifier: str) -> str:
        return self.calendar_url + event_resource_name(identifier)

    def upload_event(self, identifier: str, content: str) -> str:
        """Create a new resource named after ``identifier``.

        The PUT is conditional on nothing existing at that URL, so a resource
        owned by someone else is never replaced; the server answers 412 and
        the upload fails with StoreError.
        """
        url = self.event_url(identifier)
        headers = {'Content-Type': CALENDAR_CONTENT_TYPE, 'If-None-Match': '*'}
        try:
            response = self.client.put(url, content, headers)
        except STORE_ERRORS as e:
            raise StoreError(f"Failed to upload {url}: {e}", url) from e

        if response.status not in (200, 201, 204):
            raise StoreError(f"Failed to upload {url}: {response.status}", url, response.status)
        logger.debug(f"Uploaded birthday event {identifier}: {url}")
        return url

    def collect_birthday_events(self) -> List[EventDescriptor]:
        """Read every event of the managed category; anything else is ignored"""
        found = []
        resources = self.events()
        for resource in resources:
            url = str(resource.url)
            try:
                event = parse_event(resource.data, url, self.category)
            except RecordParseError as e:
                logger.warning(f"Skipping calendar resource: {e}")
                continue
            if event is not None:
                found.append(event)

        logger.info(f"Found {len(found)} birthday events in category '{self.category}' "
                    f"out of {len(resources)} calendar resources")
        return found
