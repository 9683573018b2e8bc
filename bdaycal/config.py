"""
Configuration management and environment validation
"""

import os
import re
import logging
from datetime import date, timedelta
from typing import Optional

from croniter import croniter

from bdaycal.exceptions import ConfigurationError

ALARM_PATTERN = re.compile(r'(\d+)([dh])')

REQUIRED_VARS = (
    'CARDAV_SERVER_URL',
    'CARDAV_USERNAME',
    'CARDAV_PASSWORD',
    'CALDAV_SERVER_URL',
    'CALDAV_USERNAME',
    'CALDAV_PASSWORD'
)

# Loggers of the DAV transports, kept at WARNING unless DEBUG is set
TRANSPORT_LOGGERS = ('requests', 'urllib3', 'caldav')

def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'

def setup_logging():
    """Configure logging for the sync service.

    Records always go to the console. With ``LOG_TO_FILE=true`` they are also
    written to ``LOG_FILE`` (default ``/var/log/bdaycal/sync.log``) in a
    format that names the emitting module. ``DEBUG=true`` forces the DEBUG
    level and lets the caldav, requests and urllib3 loggers through.
    """
    debug_mode = _env_flag('DEBUG')
    log_level = 'DEBUG' if debug_mode else os.getenv('LOG_LEVEL', 'INFO').upper()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    handlers = [console_handler]

    if _env_flag('LOG_TO_FILE'):
        log_file = os.getenv('LOG_FILE', '/var/log/bdaycal/sync.log')
        try:
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}")
        else:
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=handlers
    )

    if not debug_mode:
        for name in TRANSPORT_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

def validate_environment():
    """Check that both DAV endpoints and their credentials are configured"""
    logger = logging.getLogger(__name__)

    missing_vars = [var for var in REQUIRED_VARS if not os.getenv(var)]
    if missing_vars:
        logger.error(f"Missing required environment variables: {', '.join(missing_vars)}")
        return False

    logger.info("CardDAV and CalDAV settings present")
    return True

def _get_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value

def parse_alarm(value: str) -> Optional[timedelta]:
    """Parse an alarm offset such as ``1d`` or ``12h``; blank means no alarm"""
    value = (value or '').strip()
    if not value:
        return None
    match = ALARM_PATTERN.fullmatch(value)
    if not match:
        raise ConfigurationError(
            f"Invalid alarm configuration. Expected format: <number>[dh], actual: {value}")
    number, unit = int(match.group(1)), match.group(2)
    return timedelta(days=number) if unit == 'd' else timedelta(hours=number)

def validate_date_format(pattern: str) -> str:
    try:
        date(2000, 1, 31).strftime(pattern)
    except ValueError as e:
        raise ConfigurationError(f"Invalid date format {pattern!r}: {e}")
    return pattern

def get_dav_config():
    """Get DAV endpoints, credentials and retry policy from environment"""
    return {
        'cardav_url': os.getenv('CARDAV_SERVER_URL', ''),
        'cardav_username': os.getenv('CARDAV_USERNAME', ''),
        'cardav_password': os.getenv('CARDAV_PASSWORD', ''),
        'caldav_url': os.getenv('CALDAV_SERVER_URL', ''),
        'caldav_username': os.getenv('CALDAV_USERNAME', ''),
        'caldav_password': os.getenv('CALDAV_PASSWORD', ''),
        'max_retries': _get_int('DAV_MAX_RETRIES', 5, minimum=1),
        'retry_delay': _get_int('DAV_RETRY_DELAY', 30),
        'timeout': _get_int('DAV_TIMEOUT', 30, minimum=1)
    }

def get_birthday_config():
    """Get birthday event configuration from environment"""
    return {
        'event_title_template': os.getenv('BIRTHDAY_EVENT_TITLE', '🎂 ~display-name~'),
        'event_description_template': os.getenv('BIRTHDAY_EVENT_DESCRIPTION',
                                                'Birthday of ~display-name~: ~birthday~'),
        'event_category': os.getenv('BIRTHDAY_EVENT_CATEGORY', 'Birthday'),
        'date_format': validate_date_format(os.getenv('BIRTHDAY_DATE_FORMAT', '%Y-%m-%d')),
        'alarm': parse_alarm(os.getenv('BIRTHDAY_ALARM', '')),
        'product': os.getenv('BIRTHDAY_PRODUCT', 'bdaycal')
    }

def get_scheduler_config():
    """Get scheduler configuration from environment"""
    sync_schedule = os.getenv('SYNC_SCHEDULE', '0 6 * * *')
    if not croniter.is_valid(sync_schedule):
        raise ConfigurationError(f"Invalid cron schedule '{sync_schedule}'")
    return {
        'sync_schedule': sync_schedule,
        'run_on_start': _env_flag('RUN_ON_START', 'true'),
        'startup_delay': _get_int('STARTUP_DELAY', 0)
    }
