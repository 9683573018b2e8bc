"""
WebDAV helpers shared by the CardDAV and CalDAV clients
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List
from urllib.parse import urlparse

import requests
from requests.auth import HTTPBasicAuth

logger = logging.getLogger(__name__)

DAV_NS = '{DAV:}'
MAX_REDIRECTS = 3
DEFAULT_PORTS = {'http': 80, 'https': 443}

PROPFIND_BODY = '''<?xml version="1.0" encoding="utf-8" ?>
<D:propfind xmlns:D="DAV:">
    <D:prop>
        <D:getetag />
        <D:getcontenttype />
        <D:resourcetype />
        <D:displayname />
    </D:prop>
</D:propfind>'''


@dataclass(frozen=True)
class DavResource:
    """One entry of a PROPFIND multistatus response"""

    href: str
    content_type: str = ''
    is_collection: bool = False
    display_name: str = ''


def parse_multistatus(xml_text: str) -> List[DavResource]:
    """Extract the resources listed in a 207 multistatus body"""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ValueError(f"Invalid multistatus response: {e}") from e

    resources = []
    for response in root.iter(f'{DAV_NS}response'):
        href = response.findtext(f'{DAV_NS}href')
        if not href:
            continue

        content_type = ''
        display_name = ''
        is_collection = False
        for propstat in response.iter(f'{DAV_NS}propstat'):
            status = propstat.findtext(f'{DAV_NS}status') or ''
            if status and ' 200 ' not in f"{status} ":
                continue
            prop = propstat.find(f'{DAV_NS}prop')
            if prop is None:
                continue
            content_type = prop.findtext(f'{DAV_NS}getcontenttype') or content_type
            display_name = prop.findtext(f'{DAV_NS}displayname') or display_name
            resourcetype = prop.find(f'{DAV_NS}resourcetype')
            if resourcetype is not None and resourcetype.find(f'{DAV_NS}collection') is not None:
                is_collection = True

        resources.append(DavResource(
            href=href.strip(),
            content_type=content_type.strip(),
            is_collection=is_collection,
            display_name=display_name.strip(),
        ))
    return resources


def base_url(url: str) -> str:
    """Scheme, host and non-default port of ``url``"""
    parsed = urlparse(url)
    if parsed.scheme not in DEFAULT_PORTS or not parsed.hostname:
        raise ValueError(f"Invalid URL: {url!r}")
    port = parsed.port
    if port is not None and port != DEFAULT_PORTS[parsed.scheme]:
        return f"{parsed.scheme}://{parsed.hostname}:{port}"
    return f"{parsed.scheme}://{parsed.hostname}"


def resolve_url(collection_url: str, href: str) -> str:
    """Resolve an href from a multistatus response against its collection"""
    if href.startswith('http'):
        return href
    elif href.startswith('/'):
        return f"{base_url(collection_url)}{href}"
    else:
        return f"{collection_url.rstrip('/')}/{href.lstrip('/')}"


def same_resource(url: str, other: str) -> bool:
    """Compare two resource URLs ignoring a trailing slash"""
    return url.rstrip('/') == other.rstrip('/')


def create_session(username: str, password: str) -> requests.Session:
    """HTTP session for one DAV server, created once per process"""
    session = requests.Session()
    session.auth = HTTPBasicAuth(username, password)
    session.max_redirects = MAX_REDIRECTS
    return session
