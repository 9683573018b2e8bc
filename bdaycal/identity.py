"""
Join key between a vCard resource and its birthday event.

The identifier is the address book resource name (``<name>.vcf`` without the
extension). It is written as the event UID and used as the event's file name,
so it never depends on the name or birthday stored inside the vCard.
"""

from urllib.parse import quote, unquote, urlparse


def identifier_from_href(href: str) -> str:
    """Derive the identifier from a resource href or absolute URL"""
    path = urlparse(href).path.rstrip('/')
    name = unquote(path.rsplit('/', 1)[-1])
    if '.' in name:
        name = name[:name.rfind('.')]
    return name


def identifier_from_uid(uid: str) -> str:
    """Map an event UID back into the identifier space"""
    uid = uid.strip()
    if uid.lower().endswith('.vcf'):
        uid = uid[:-4]
    return uid


def event_resource_name(identifier: str) -> str:
    """File name of the calendar resource holding the event for ``identifier``"""
    return f"{quote(identifier, safe='')}.ics"
