from __future__ import annotations

import logging
import threading
from typing import Optional

from .driver import PassResult, SyncDriver


class SessionGuardian:
    """Runs sync passes on a fixed delay and recovers the roster session between them.

    A failed pass is never retried straight away. The guardian checks whether
    the roster session is still valid, logs in again once if it is not, and
    leaves the next attempt to the following scheduled pass.
    """

    def __init__(
        self,
        driver: SyncDriver,
        source,
        interval: float,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.driver = driver
        self.source = source
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.color: Optional[str] = None

    def stop(self) -> None:
        self.stop_event.set()

    def run_once(self) -> Optional[PassResult]:
        try:
            result = self.driver.run_pass(color_hint=self.color)
        except Exception:
            logging.exception("Error syncing!")
            self.recover()
            return None
        self.color = result.color
        if result.errors:
            logging.warning("Sync completed with %d errors", len(result.errors))
        else:
            logging.info("Sync successful.")
        return result

    def recover(self) -> None:
        try:
            if self.source.test_session():
                logging.info("Roster session still valid; will retry at next sync interval")
                return
            logging.warning("Roster session invalid. Attempting to re-login...")
            self.source.login()
            logging.info("Re-login successful. Will retry sync at next sync interval.")
        except Exception:
            logging.exception("Login failed!")

    def run_forever(self) -> None:
        while not self.stop_event.is_set():
            self.run_once()
            if self.stop_event.is_set():
                break
            logging.info("Next sync in %g minutes.", self.interval / 60)
            self.stop_event.wait(self.interval)
        logging.info("Sync loop stopped")
