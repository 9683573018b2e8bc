"""
Builds the iCalendar representation of a birthday event
"""

import logging
from datetime import datetime, time, timedelta
from typing import Dict, Optional

import vobject
from vobject.icalendar import utc

from bdaycal.models import Contact

logger = logging.getLogger(__name__)

PLACEHOLDERS = ('~first-name~', '~last-name~', '~display-name~', '~birthday~')


class EventBuilder:
    """Renders one all-day, yearly recurring event per contact.

    Output is deterministic: DTSTAMP is pinned to the birthday so two builds
    of the same contact serialize to the same text.
    """

    def __init__(self, category: str, summary_template: str, description_template: str,
                 date_format: str = '%Y-%m-%d', alarm: Optional[timedelta] = None,
                 product: str = 'bdaycal'):
        self.category = category
        self.summary_template = summary_template
        self.description_template = description_template
        self.date_format = date_format
        self.alarm = alarm
        self.product = product

    @classmethod
    def from_config(cls, config: Dict) -> 'EventBuilder':
        return cls(
            category=config['event_category'],
            summary_template=config['event_title_template'],
            description_template=config['event_description_template'],
            date_format=config['date_format'],
            alarm=config['alarm'],
            product=config['product'],
        )

    @property
    def prodid(self) -> str:
        return f"-//{self.product}//bdaycal//EN"

    def render(self, template: str, contact: Contact) -> str:
        return (template
                .replace('~first-name~', contact.first_name)
                .replace('~last-name~', contact.last_name)
                .replace('~display-name~', contact.display_name)
                .replace('~birthday~', contact.birthday.strftime(self.date_format)))

    def build(self, contact: Contact) -> str:
        summary = self.render(self.summary_template, contact)
        description = self.render(self.description_template, contact)

        cal = vobject.iCalendar()
        cal.add('prodid').value = self.prodid
        cal.add('calscale').value = 'GREGORIAN'

        event = cal.add('vevent')
        event.add('uid').value = contact.identifier
        event.add('dtstamp').value = datetime.combine(contact.birthday, time(0, 0), tzinfo=utc)
        event.add('dtstart').value = contact.birthday
        event.add('dtend').value = contact.birthday + timedelta(days=1)
        event.add('rrule').value = 'FREQ=YEARLY'
        event.add('summary').value = summary
        event.add('description').value = description
        event.add('categories').value = [self.category]
        event.add('transp').value = 'TRANSPARENT'
        event.add('status').value = 'CONFIRMED'

        if self.alarm is not None:
            alarm = event.add('valarm')
            alarm.add('action').value = 'DISPLAY'
            alarm.add('trigger').value = -self.alarm
            alarm.add('description').value = description
            alarm.add('summary').value = summary

        return cal.serialize()
