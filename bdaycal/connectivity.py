"""
Connectivity gate guarding every sync run
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConnectivityGate:
    """Probe a DAV target with a bounded number of attempts and a fixed delay.

    The delay is spent in ``stop_event.wait`` so a shutdown request ends the
    retrying immediately instead of sitting out the remaining attempts.
    """

    def __init__(self, max_retries: int, retry_delay: float,
                 stop_event: Optional[threading.Event] = None):
        self.max_retries = max(1, max_retries)
        self.retry_delay = max(0.0, retry_delay)
        self.stop_event = stop_event or threading.Event()

    def is_reachable(self, target: str, probe: Callable[[], bool]) -> bool:
        """Return True as soon as ``probe`` succeeds, False once retries are exhausted"""
        for attempt in range(1, self.max_retries + 1):
            try:
                if probe():
                    if attempt > 1:
                        logger.info(f"{target} reachable after {attempt} attempts")
                    return True
                logger.warning(f"{target} not accessible (attempt {attempt}/{self.max_retries})")
            except Exception as e:
                logger.warning(f"Error while checking access to {target} "
                               f"(attempt {attempt}/{self.max_retries}): {e}")

            if attempt < self.max_retries:
                if self.stop_event.wait(self.retry_delay):
                    logger.info(f"Shutdown requested while waiting for {target}")
                    return False
        return False
