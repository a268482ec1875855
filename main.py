from __future__ import annotations

import argparse
import logging
import signal

from shift_sync.config import get_settings
from shift_sync.driver import SyncDriver
from shift_sync.gcal import GoogleCalendar
from shift_sync.guardian import SessionGuardian
from shift_sync.roster import RosterClient


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync roster shifts to Google Calendar")
    parser.add_argument("--once", action="store_true", help="Run a single sync pass and exit")
    parser.add_argument("--headful", action="store_true", help="Open browser headful for captcha/2FA")
    parser.add_argument("--dry-run", action="store_true", help="Show actions without modifying calendar")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    settings = get_settings()
    source = RosterClient(settings, headful=args.headful)
    try:
        source.login()
    except Exception:
        logging.exception("Initial login failed; the session will be retried after the first pass")

    calendar = GoogleCalendar.from_settings(settings)
    driver = SyncDriver.from_settings(settings, source, calendar, dry_run=args.dry_run)
    guardian = SessionGuardian(driver, source, interval=settings.sync_interval_mins * 60)

    def _shutdown(signum, frame):
        logging.info("Received signal %d, stopping after the current pass", signum)
        guardian.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        if args.once:
            result = guardian.run_once()
            return 0 if result is not None and result.ok else 1
        guardian.run_forever()
    finally:
        source.close()

    logging.info("Done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
