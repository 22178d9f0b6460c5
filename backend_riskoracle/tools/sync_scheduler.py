"""
Tier sync scheduler: reclassify + push daily via APScheduler.

Runs at SYNC_HOUR:SYNC_MINUTE in SYNC_TIMEZONE (default 00:00 UTC).

Usage:
  py -m backend_riskoracle.tools.sync_scheduler           # start scheduler
  py -m backend_riskoracle.tools.sync_scheduler --run-now # run once, then exit
"""

from __future__ import annotations

import argparse
import os
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from pytz import timezone

from backend_riskoracle.config.env import load_riskoracle_env
from backend_riskoracle.core.exceptions import RiskOracleError
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

JOB_ID = "riskoracle_tier_sync"


def _schedule() -> tuple[int, int, str]:
    load_riskoracle_env()
    hour = int(os.getenv("SYNC_HOUR", "0"))
    minute = int(os.getenv("SYNC_MINUTE", "0"))
    tz = (os.getenv("SYNC_TIMEZONE") or "UTC").strip()
    return hour, minute, tz


def run_sync_once() -> int:
    """Reclassify and push. Returns exit code (0 = success)."""
    from backend_riskoracle.tools.push_tiers import run_sync

    try:
        result = run_sync()
    except RiskOracleError as e:
        logger.error("sync_scheduler_run_failed", error=str(e))
        return 1
    return 0 if result.complete else 1


def job_sync() -> None:
    """Scheduled job: log start, run sync, log end."""
    logger.info("sync_scheduler_job_start")
    try:
        exit_code = run_sync_once()
        if exit_code == 0:
            logger.info("sync_scheduler_job_end", success=True)
        else:
            logger.warning("sync_scheduler_job_end", success=False, exit_code=exit_code)
    except Exception as e:
        logger.exception("sync_scheduler_job_error", error=str(e))
        raise


def build_scheduler() -> BlockingScheduler:
    hour, minute, tz = _schedule()
    scheduler = BlockingScheduler()
    scheduler.add_job(
        job_sync,
        "cron",
        hour=hour,
        minute=minute,
        timezone=timezone(tz),
        id=JOB_ID,
    )
    logger.info("sync_scheduler_configured", run_time=f"{hour:02d}:{minute:02d} {tz} daily")
    return scheduler


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the tier sync daily.")
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run sync once immediately, then exit.",
    )
    args = parser.parse_args()

    if args.run_now:
        logger.info("sync_scheduler_manual_run_start")
        exit_code = run_sync_once()
        logger.info("sync_scheduler_manual_run_end", exit_code=exit_code)
        return exit_code

    scheduler = build_scheduler()
    logger.info("sync_scheduler_started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("sync_scheduler_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
