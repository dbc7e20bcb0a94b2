from __future__ import annotations

import logging
import re
import time
from typing import Callable

import schedule

from feed2blog.config.settings import ConfigError

logger = logging.getLogger(__name__)

_SHORTHAND_RE = re.compile(r"^(\d+)\s*([smhd])$", re.IGNORECASE)
_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def schedule_job(scheduler: schedule.Scheduler, expr: str, job: Callable[[], object]) -> schedule.Job:
    """
    Register `job` on `scheduler` from a schedule expression.

    Accepted:
      "*/N * * * *"   every N minutes
      "M */N * * *"   every N hours at minute M
      "M H * * *"     daily at H:M
      "Ns" "Nm" "Nh" "Nd"
    """
    expr = expr.strip()

    m = _SHORTHAND_RE.match(expr)
    if m:
        n = int(m.group(1))
        if n < 1:
            raise ConfigError(f"Schedule interval must be positive: {expr!r}")
        return getattr(scheduler.every(n), _UNITS[m.group(2).lower()]).do(job)

    fields = expr.split()
    if len(fields) != 5 or fields[2:] != ["*", "*", "*"]:
        raise ConfigError(f"Unsupported schedule expression: {expr!r}")

    minute, hour = fields[0], fields[1]
    try:
        if minute.startswith("*/") and hour == "*":
            return scheduler.every(_positive(minute[2:])).minutes.do(job)
        if minute.isdigit() and hour.startswith("*/"):
            return scheduler.every(_positive(hour[2:])).hours.at(f":{int(minute):02d}").do(job)
        if minute.isdigit() and hour.isdigit():
            return scheduler.every().day.at(f"{int(hour):02d}:{int(minute):02d}").do(job)
    except schedule.ScheduleValueError as e:
        raise ConfigError(f"Invalid schedule expression {expr!r}: {e}") from e

    raise ConfigError(f"Unsupported schedule expression: {expr!r}")


def _positive(v: str) -> int:
    if not v.isdigit() or int(v) < 1:
        raise ConfigError(f"Schedule step must be a positive integer, got {v!r}")
    return int(v)


def validate_expression(expr: str) -> None:
    """Raise ConfigError if `expr` can't be scheduled."""
    schedule_job(schedule.Scheduler(), expr, lambda: None)


def guarded(cycle: Callable[[], object]) -> Callable[[], None]:
    """Wrap a cycle so no exception escapes into the scheduler loop."""

    def _job() -> None:
        try:
            result = cycle()
            logger.info("Cycle finished: %s", result)
        except Exception:
            logger.exception("Cycle failed")

    return _job


def run_once(cycle: Callable[[], object]) -> None:
    guarded(cycle)()


def run_forever(
    cycle: Callable[[], object],
    expr: str,
    scheduler: schedule.Scheduler | None = None,
    should_stop: Callable[[], bool] = lambda: False,
    sleep: Callable[[float], None] = time.sleep,
    heartbeat: Callable[[], None] = lambda: None,
) -> None:
    """
    Run one cycle now, then one per schedule tick until `should_stop()`.
    Cycles run on this thread so they never overlap. `heartbeat` is called
    after every idle second, also between ticks.
    """
    scheduler = scheduler or schedule.Scheduler()
    job = guarded(cycle)
    # validate before the first cycle so a bad expression fails fast
    scheduled = schedule_job(scheduler, expr, job)

    heartbeat()
    job()
    logger.info("Scheduled: %s", scheduled)

    while not should_stop():
        scheduler.run_pending()
        sleep(1)
        heartbeat()
