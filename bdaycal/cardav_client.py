"""
CardDAV client for fetching contacts with birthdays
"""

import logging
from datetime import date, datetime
from typing import List, Optional

import requests
import vobject
from requests.auth import HTTPBasicAuth, HTTPDigestAuth

from bdaycal.dav import PROPFIND_BODY, DavResource, parse_multistatus, resolve_url, same_resource
from bdaycal.exceptions import RecordParseError, SourceUnavailable
from bdaycal.identity import identifier_from_href
from bdaycal.models import Contact

logger = logging.getLogger(__name__)

# Year used for birthdays stored without one (--MM-DD); a leap year keeps Feb 29 valid
YEARLESS_PLACEHOLDER = 2000


def parse_birthday(raw: str) -> date:
    """Parse a vCard BDAY value"""
    value = raw.strip().split('T')[0]

    if value.startswith('--'):
        month_day = value[2:].replace('-', '')
        try:
            return datetime.strptime(f"{YEARLESS_PLACEHOLDER}{month_day}", '%Y%m%d').date()
        except ValueError as e:
            raise RecordParseError(f"Unknown birthday format: {raw}") from e

    for fmt in ('%Y%m%d', '%Y-%m-%d'):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise RecordParseError(f"Unknown birthday format: {raw}")


def parse_vcard(vcard_text: str, identifier: str) -> Optional[Contact]:
    """Build a Contact from a vCard, None if it carries no birthday.

    Raises RecordParseError for cards that cannot be used.
    """
    vcard_text = vcard_text.strip()
    if not vcard_text.startswith('BEGIN:VCARD'):
        raise RecordParseError("Invalid vCard: doesn't start with BEGIN:VCARD")

    try:
        vcard = vobject.readOne(vcard_text)
    except Exception as e:
        raise RecordParseError(f"Invalid vCard: {e}") from e

    if not hasattr(vcard, 'n'):
        raise RecordParseError("Missing name")
    name = vcard.n.value
    first_name = (getattr(name, 'given', '') or '').strip()
    last_name = (getattr(name, 'family', '') or '').strip()
    display_name = vcard.fn.value.strip() if hasattr(vcard, 'fn') else ''

    if not hasattr(vcard, 'bday'):
        logger.debug(f"No birthday found for contact: {display_name or identifier}")
        return None

    bday = vcard.bday.value
    if isinstance(bday, datetime):
        birthday = bday.date()
    elif isinstance(bday, date):
        birthday = bday
    else:
        birthday = parse_birthday(str(bday))

    return Contact(
        identifier=identifier,
        first_name=first_name,
        last_name=last_name,
        display_name=display_name,
        birthday=birthday,
    )


class CardDAVClient:
    """Client for reading contacts from an address book collection"""

    def __init__(self, session: requests.Session, addressbook_url: str, timeout: float = 30):
        self.session = session
        self.addressbook_url = addressbook_url
        self.timeout = timeout

    def _propfind(self, depth: int) -> requests.Response:
        headers = {
            'Content-Type': 'application/xml; charset=utf-8',
            'Depth': str(depth)
        }
        return self.session.request('PROPFIND', self.addressbook_url, headers=headers,
                                    data=PROPFIND_BODY, timeout=self.timeout)

    def is_reachable(self) -> bool:
        """Probe the address book, falling back from Basic to Digest authentication"""
        response = self._propfind(0)
        logger.debug(f"CardDAV probe response: {response.status_code}")

        if response.status_code == 401 and isinstance(self.session.auth, HTTPBasicAuth):
            logger.info("Basic auth failed, trying Digest authentication...")
            basic = self.session.auth
            self.session.auth = HTTPDigestAuth(basic.username, basic.password)
            response = self._propfind(0)
            logger.debug(f"Digest auth response: {response.status_code}")
            if response.status_code not in (200, 207):
                self.session.auth = basic

        return response.status_code in (200, 207)

    def _list_vcard_resources(self) -> List[DavResource]:
        try:
            response = self._propfind(1)
        except requests.exceptions.RequestException as e:
            raise SourceUnavailable(f"Error listing {self.addressbook_url}: {e}") from e

        if response.status_code not in (200, 207):
            logger.error(f"Response: {response.text[:500]}")
            raise SourceUnavailable(
                f"Failed to list {self.addressbook_url}: {response.status_code}")

        try:
            resources = parse_multistatus(response.text)
        except ValueError as e:
            raise SourceUnavailable(f"Failed to list {self.addressbook_url}: {e}") from e

        vcards = []
        for resource in resources:
            if resource.is_collection:
                continue
            url = resolve_url(self.addressbook_url, resource.href)
            if same_resource(url, self.addressbook_url):
                continue
            if 'vcard' in resource.content_type.lower() or resource.href.lower().endswith('.vcf'):
                vcards.append(resource)
        return vcards

    def _fetch(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceUnavailable(f"Error fetching vCard {url}: {e}") from e
        if response.status_code != 200:
            raise SourceUnavailable(f"Failed to fetch vCard {url}: {response.status_code}")
        return response.text

    def list_contacts(self) -> List[Contact]:
        """Fetch every contact with a birthday from the address book"""
        resources = self._list_vcard_resources()
        logger.info(f"Found {len(resources)} vCard resources in {self.addressbook_url}")

        contacts = []
        for resource in resources:
            url = resolve_url(self.addressbook_url, resource.href)
            label = resource.display_name or resource.href
            logger.debug(f"Processing contact: {label}")

            vcard_text = self._fetch(url)
            try:
                contact = parse_vcard(vcard_text, identifier_from_href(resource.href))
            except RecordParseError as e:
                logger.warning(f"Error while processing contact {label}: {e}")
                continue

            if contact:
                contacts.append(contact)
                logger.debug(f"Parsed contact: {contact.full_name} (Birthday: {contact.birthday})")

        logger.info(f"Total contacts with birthdays: {len(contacts)}")
        return contacts
