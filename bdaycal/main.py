#!/usr/bin/env python3
"""
CardDAV to CalDAV Birthday Calendar
Main entry point with scheduling and argument parsing
"""

import os
import sys
import logging
import argparse
import threading
from datetime import datetime

from bdaycal import __version__
from bdaycal.caldav_client import CalDAVClient, create_caldav_client
from bdaycal.cardav_client import CardDAVClient
from bdaycal.config import (get_birthday_config, get_dav_config, get_scheduler_config,
                            setup_logging, validate_environment)
from bdaycal.connectivity import ConnectivityGate
from bdaycal.dav import create_session
from bdaycal.event_builder import EventBuilder
from bdaycal.exceptions import BirthdaySyncError
from bdaycal.scheduler import SchedulerService
from bdaycal.sync import BirthdaySync

BANNER = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║              🎂 Birthday Calendar Sync 🎂                    ║
║     Address book birthdays as recurring calendar events      ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
"""

def print_banner():
    """Print the banner"""
    print(BANNER)
    print(f"Version: {__version__}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("─" * 62)
    print()

def log_settings(dav_config, birthday_config):
    logger = logging.getLogger(__name__)
    logger.info("*** Settings:")
    logger.info(f"  * card-dav-url: {dav_config['cardav_url']}")
    logger.info(f"  * cal-dav-url: {dav_config['caldav_url']}")
    logger.info(f"  * user(s): {dav_config['cardav_username']} / {dav_config['caldav_username']}")
    logger.info(f"  * retries: {dav_config['max_retries']} every {dav_config['retry_delay']}s")
    logger.info(f"  * category: {birthday_config['event_category']}")
    logger.info(f"  * title template: {birthday_config['event_title_template']}")
    logger.info(f"  * description template: {birthday_config['event_description_template']}")
    logger.info(f"  * alarm: {birthday_config['alarm'] or 'none'}")

def build_service(stop_event=None, max_retries=None):
    """Create the DAV clients once and wire them into a BirthdaySync"""
    dav_config = get_dav_config()
    birthday_config = get_birthday_config()
    log_settings(dav_config, birthday_config)

    session = create_session(dav_config['cardav_username'], dav_config['cardav_password'])
    contacts = CardDAVClient(session, dav_config['cardav_url'], timeout=dav_config['timeout'])

    client = create_caldav_client(dav_config['caldav_url'],
                                  dav_config['caldav_username'],
                                  dav_config['caldav_password'])
    calendar = CalDAVClient(client, dav_config['caldav_url'], birthday_config['event_category'])

    gate = ConnectivityGate(
        max_retries or dav_config['max_retries'],
        dav_config['retry_delay'],
        stop_event
    )
    return BirthdaySync(contacts, calendar, EventBuilder.from_config(birthday_config), gate)

def main_sync(service, dry_run=False):
    """Run one reconciliation pass, returning True on success"""
    logger = logging.getLogger(__name__)

    try:
        service.run(dry_run=dry_run)
        return True
    except BirthdaySyncError as e:
        logger.error(f"Birthday sync failed: {e}")
        return False
    except Exception as e:
        logger.error(f"Error in main sync execution: {e}")
        if os.getenv('DEBUG', 'false').lower() == 'true':
            import traceback
            logger.error(traceback.format_exc())
        return False

def health_check():
    """Health check function"""
    logger = logging.getLogger(__name__)

    try:
        logger.info("Performing health check...")

        import vobject  # noqa: F401
        import caldav  # noqa: F401
        import requests  # noqa: F401
        import croniter  # noqa: F401

        if not validate_environment():
            return False

        get_scheduler_config()
        service = build_service(max_retries=1)

        if os.getenv('HEALTH_CHECK_CONNECTIVITY', 'false').lower() == 'true':
            logger.info("Testing connectivity as part of health check...")
            service.check_connectivity()

        logger.info("Health check passed")
        return True

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return False

def main():
    """Main function with argument parsing"""
    parser = argparse.ArgumentParser(description='Birthday calendar sync service')
    parser.add_argument('--health-check', action='store_true', help='Run health check')
    parser.add_argument('--once', action='store_true', help='Run sync once and exit')
    parser.add_argument('--dry-run', action='store_true',
                        help='Compute the changes once, log them and exit without writing')
    parser.add_argument('--no-banner', action='store_true', help='Skip banner')

    args = parser.parse_args()

    setup_logging()
    logger = logging.getLogger(__name__)

    if not args.no_banner:
        print_banner()

    if not validate_environment():
        sys.exit(1)

    if args.health_check:
        success = health_check()
        sys.exit(0 if success else 1)

    stop_event = threading.Event()
    try:
        service = build_service(stop_event)
    except BirthdaySyncError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    run_mode = os.getenv('RUN_MODE', 'daemon').lower()

    if args.dry_run:
        logger.info("Running dry run...")
        success = main_sync(service, dry_run=True)
        sys.exit(0 if success else 1)
    elif args.once or run_mode == 'once':
        logger.info("Running single sync operation...")
        success = main_sync(service)
        sys.exit(0 if success else 1)
    elif run_mode == 'daemon':
        try:
            scheduler = SchedulerService(lambda: main_sync(service), stop_event)
        except BirthdaySyncError as e:
            logger.error(f"Invalid configuration: {e}")
            sys.exit(1)
        scheduler.run_daemon()
        sys.exit(0)
    else:
        logger.info("Running sync operation (default mode)...")
        success = main_sync(service)
        sys.exit(0 if success else 1)

if __name__ == "__main__":
    main()
