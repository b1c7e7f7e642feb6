# bizworx/api/rescheduler.py
#
# Automatic rescheduling of incomplete jobs:
# - Once a day, finds jobs booked for yesterday that were never worked
# - Moves each one to the first open whole-hour slot (8 AM - 6 PM)
#   within the next 7 days, starting today
# - Jobs with no open slot are left as they are and picked up again
#   by the next day's sweep

import asyncio
import logging
import time
from datetime import date, datetime, timedelta
from typing import Optional

from config.settings import RESCHEDULE_INTERVAL_HOURS
from bizworx.models import Job, JobStatus, SweepResult, TimeSlot
from bizworx.store import JobStore, SQLiteJobStore
from bizworx.timezone_utils import at_hour, local_date, now as tz_now, shift

logger = logging.getLogger(__name__)

WORK_START = 8  # 8 am, first candidate start
WORK_END = 18  # 6 pm, last candidate start is 5 pm
SEARCH_DAYS = 7  # today + 6


async def find_next_available_time_slot(store: JobStore, business_id: int, job: Job,
                                        today: date) -> Optional[TimeSlot]:
    """
    Find the earliest open slot for a job, keeping its original length.
    - Days today .. today+6, hours 8 .. 17, first fit wins
    - Existing jobs for the business are read from the store once per day
    - A slot must end on the same day with an end clock hour of 6 pm or earlier
    Args:
        store (JobStore): job store
        business_id (int): business whose calendar is searched
        job (Job): job to place; only its duration is used
        today (date): first day to search
    Returns:
        TimeSlot: accepted slot
        None: job has no usable duration, or nothing is open in the horizon
    """
    duration = job.duration()
    if duration is None or duration <= timedelta(0):
        return None

    for day_offset in range(SEARCH_DAYS):
        day = today + timedelta(days=day_offset)
        existing_jobs = await store.list_jobs_for_business_on_date(business_id, day)

        for hour in range(WORK_START, WORK_END):
            slot_start = at_hour(day, hour)
            slot = TimeSlot(start=slot_start, end=shift(slot_start, duration))

            if any(slot.conflicts_with(existing) for existing in existing_jobs):
                continue
            # clock hour only: a 17:00 start may run to 18:59
            if slot.end.date() == day and slot.end.hour <= WORK_END:
                return slot

    return None


async def reschedule_incomplete_jobs(store: JobStore, now: Optional[datetime] = None) -> SweepResult:
    """
    Run one sweep over every business, moving yesterday's incomplete jobs
    to their next open slot.

    Never raises: a failure (store down, bad data) is logged and recorded
    on the result, and updates already made in this pass are kept.
    """
    if now is None:
        now = tz_now()
    today = local_date(now)
    yesterday = today - timedelta(days=1)

    result = SweepResult(started_at=now)
    try:
        businesses = await store.list_businesses()
        for business in businesses:
            result.businesses += 1
            incomplete_jobs = await store.list_incomplete_jobs_for_business_on_date(business.id, yesterday)

            for job in incomplete_jobs:
                result.jobs_examined += 1
                slot = await find_next_available_time_slot(store, business.id, job, today)

                if slot is None:
                    result.jobs_unscheduled += 1
                    logger.debug(f"No open slot for job {job.id} (business {business.id}) in the next {SEARCH_DAYS} days")
                    continue

                await store.update_job(job.id, {
                    "scheduled_start": slot.start,
                    "scheduled_end": slot.end,
                    "status": JobStatus.RESCHEDULED.value,
                })
                result.jobs_rescheduled += 1
                result.rescheduled_job_ids.append(job.id)
                logger.info(
                    f"Auto-rescheduled job {job.id} from {job.scheduled_start.isoformat()} "
                    f"to {slot.start.isoformat()}"
                )
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        logger.exception("Error in automatic job rescheduling")

    result.finished_at = tz_now()
    logger.info(
        f"Reschedule sweep done: {result.businesses} businesses, {result.jobs_examined} incomplete jobs, "
        f"{result.jobs_rescheduled} rescheduled, {result.jobs_unscheduled} without a slot"
        + (f", aborted ({result.error})" if result.error else "")
    )
    return result


class JobScheduler:
    """
    Runs the reschedule sweep once when started and then on a fixed cadence
    (24 hours by default) until stopped.

    Sweeps run inside a single asyncio task, so they never overlap. If a
    sweep overruns its slot, the next one starts right after it and the
    cadence restarts from there.

    clock and sleep can be swapped for fakes in tests.
    """

    def __init__(self, store: JobStore, interval: Optional[timedelta] = None,
                 clock=time.monotonic, sleep=asyncio.sleep):
        self.store = store
        if interval is None:
            interval = timedelta(hours=RESCHEDULE_INTERVAL_HOURS)
        if interval <= timedelta(0):
            raise ValueError("Scheduler interval must be positive")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.last_result: Optional[SweepResult] = None
        self.sweep_count = 0
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the periodic task on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="job-rescheduler")
        logger.info(
            f"Job scheduler started - will reschedule incomplete jobs every "
            f"{self.interval.total_seconds() / 3600:g} hours"
        )

    async def stop(self):
        """Cancel the periodic task and wait for it to exit."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # only swallow the cancellation we asked for
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("Job scheduler stopped")

    async def run_once(self) -> SweepResult:
        """Run a single sweep now and remember its result. Waits for a sweep already in progress."""
        async with self._lock:
            result = await reschedule_incomplete_jobs(self.store)
            self.last_result = result
            self.sweep_count += 1
        return result

    async def _run(self):
        period = self.interval.total_seconds()
        next_run = self._clock()
        while True:
            await self.run_once()
            next_run += period
            current = self._clock()
            if next_run > current:
                await self._sleep(next_run - current)
            else:
                logger.warning("Reschedule sweep overran its interval, running the next one now")
                next_run = current


_scheduler: Optional[JobScheduler] = None


def start_scheduler(store: Optional[JobStore] = None) -> JobScheduler:
    """
    Start the process-wide job scheduler. Call once from the host
    application's startup, inside its event loop.
    Returns the running scheduler; a second call returns the same one.
    """
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        return _scheduler

    if store is None:
        store = SQLiteJobStore()

    _scheduler = JobScheduler(store)
    _scheduler.start()
    return _scheduler


def get_scheduler() -> Optional[JobScheduler]:
    return _scheduler


async def stop_scheduler():
    """Shutdown hook: stop the process-wide scheduler if one is running."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
