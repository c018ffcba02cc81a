"""
reaper.py — Garbage collection for expired shared links and their files.

A reap collects the ids of expired links and the files they reference, then
deletes the links and the files inside one transaction, links first. It is
safe to run repeatedly and alongside normal traffic.

Usage:
  python reaper.py            # one pass
  python reaper.py --loop     # every REAPER_INTERVAL_SECONDS until interrupted
"""

import argparse
import logging
import os
import threading

from dotenv import load_dotenv

import models
from errors import TransientStoreError
from schemas import ReapReport
from store import Repository

load_dotenv()

logger = logging.getLogger(__name__)

REAPER_INTERVAL_SECONDS = float(os.getenv("REAPER_INTERVAL_SECONDS", "300"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class ExpirationReaper(Repository):

    def reap(self) -> ReapReport:
        with self._unit_of_work() as db:
            expired_link_ids = [
                link_id for (link_id,) in db.query(models.SharedLink.id).filter(
                    models.SharedLink.expiration_date < self._now()
                ).all()
            ]
            if not expired_link_ids:
                logger.info("No expired shared links found.")
                return ReapReport()

            # Files of exactly the links collected above; a link that expires
            # after this point waits for the next pass together with its file.
            expired_file_ids = [
                file_id for (file_id,) in db.query(models.SharedLink.file_id).filter(
                    models.SharedLink.id.in_(expired_link_ids)
                ).all()
            ]

        # Only the two deletes share a transaction, the selects above ran in their own.
        with self._unit_of_work() as db:
            links_deleted = db.query(models.SharedLink).filter(
                models.SharedLink.id.in_(expired_link_ids)
            ).delete(synchronize_session=False)
            files_deleted = db.query(models.File).filter(
                models.File.id.in_(expired_file_ids)
            ).delete(synchronize_session=False)

        report = ReapReport(links_deleted=links_deleted, files_deleted=files_deleted)
        logger.info(
            f"Deleted {report.links_deleted} expired shared links and "
            f"{report.files_deleted} files."
        )
        return report


def run_forever(reaper: ExpirationReaper, interval: float = REAPER_INTERVAL_SECONDS,
                stop_event: threading.Event = None) -> None:
    """Reap every ``interval`` seconds until ``stop_event`` is set.

    A store outage skips the pass and the loop carries on; any other error
    stops the loop.
    """
    stop_event = stop_event or threading.Event()
    logger.info(f"Expiration reaper started (interval={interval}s)")

    while not stop_event.is_set():
        try:
            reaper.reap()
        except TransientStoreError as e:
            logger.warning(f"Reap skipped, store unavailable: {e}")
        stop_event.wait(interval)

    logger.info("Expiration reaper stopped")


def main(argv=None):
    from database import build_engine, build_session_factory

    parser = argparse.ArgumentParser(description="Delete expired shared links and their files.")
    parser.add_argument("--loop", action="store_true", help="keep running on a fixed interval")
    parser.add_argument("--interval", type=float, default=REAPER_INTERVAL_SECONDS)
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine = build_engine(args.database_url)
    reaper = ExpirationReaper(build_session_factory(engine))
    try:
        if args.loop:
            try:
                run_forever(reaper, args.interval)
            except KeyboardInterrupt:
                logger.info("Interrupted")
            return 0
        reaper.reap()
        return 0
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
