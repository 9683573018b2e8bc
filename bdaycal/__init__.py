"""
Birthday Calendar Package
Keeps a CalDAV calendar in sync with the birthdays of a CardDAV address book
"""

__version__ = "1.0.0"
__description__ = "CardDAV to CalDAV birthday calendar synchronization service"

from bdaycal.models import Contact, EventDescriptor, Delta, SyncReport
from bdaycal.reconciler import compute_delta
from bdaycal.apply import ApplyEngine, FAILURE_POLICY, FailurePolicy, Operation
from bdaycal.connectivity import ConnectivityGate
from bdaycal.event_builder import EventBuilder
from bdaycal.cardav_client import CardDAVClient
from bdaycal.caldav_client import CalDAVClient
from bdaycal.sync import BirthdaySync

__all__ = [
    'Contact',
    'EventDescriptor',
    'Delta',
    'SyncReport',
    'compute_delta',
    'ApplyEngine',
    'FAILURE_POLICY',
    'FailurePolicy',
    'Operation',
    'ConnectivityGate',
    'EventBuilder',
    'CardDAVClient',
    'CalDAVClient',
    'BirthdaySync'
]
