#testing/mock_data.py
import asyncio
from dataclasses import replace
from datetime import date, timedelta

from bizworx.errors import JobNotFoundError, StoreError
from bizworx.models import INCOMPLETE_STATUS, Business, Job, JobStatus
from bizworx.timezone_utils import at_hour, day_bounds


def make_job(job_id, business_id, day: date, start_hour, hours, status=JobStatus.SCHEDULED.value):
    """
    Build a Job booked on `day` from start_hour for `hours` hours (business timezone).
    start_hour may be fractional, e.g. 9.5 for 9:30.
    """
    whole = int(start_hour)
    start = at_hour(day, whole) + timedelta(minutes=round((start_hour - whole) * 60))
    return Job(
        id=job_id,
        business_id=business_id,
        scheduled_start=start,
        scheduled_end=start + timedelta(hours=hours),
        status=status,
        title=f"Job {job_id}",
    )


def make_full_day(first_id, business_id, day: date):
    """
    One-hour jobs at every candidate start (8:00 .. 17:00), blocking the whole day.
    """
    return [make_job(first_id + i, business_id, day, 8 + i, 1) for i in range(10)]


class FakeJobStore:
    """
    In-memory JobStore. Records every call so tests can check what was read.

    fail_on: method name that raises StoreError
    fail_after: number of successful calls to that method before it starts failing
    on_list_businesses: optional callback run at the start of each sweep
    """

    def __init__(self, businesses=None, jobs=None, fail_on=None, fail_after=0, on_list_businesses=None):
        self.businesses = list(businesses or [])
        self.jobs = {job.id: job for job in jobs or []}
        self.calls = []
        self.updates = []
        self.fail_on = fail_on
        self.fail_after = fail_after
        self.on_list_businesses = on_list_businesses
        self._counts = {}

    def _check(self, method):
        self._counts[method] = self._counts.get(method, 0) + 1
        if self.fail_on == method and self._counts[method] > self.fail_after:
            raise StoreError(f"{method} unavailable")

    def _on_date(self, business_id, day):
        start, end = day_bounds(day)
        found = [
            job for job in self.jobs.values()
            if job.business_id == business_id
            and job.scheduled_start is not None
            and start <= job.scheduled_start < end
        ]
        return sorted(found, key=lambda job: job.scheduled_start)

    async def list_businesses(self):
        self.calls.append(("list_businesses", None, None))
        if self.on_list_businesses:
            self.on_list_businesses()
        self._check("list_businesses")
        return list(self.businesses)

    async def list_incomplete_jobs_for_business_on_date(self, business_id, day):
        self.calls.append(("list_incomplete_jobs_for_business_on_date", business_id, day))
        self._check("list_incomplete_jobs_for_business_on_date")
        return [job for job in self._on_date(business_id, day) if job.status == INCOMPLETE_STATUS.value]

    async def list_jobs_for_business_on_date(self, business_id, day):
        self.calls.append(("list_jobs_for_business_on_date", business_id, day))
        self._check("list_jobs_for_business_on_date")
        return self._on_date(business_id, day)

    async def update_job(self, job_id, patch):
        self.calls.append(("update_job", job_id, None))
        self._check("update_job")
        if job_id not in self.jobs:
            raise JobNotFoundError(job_id)
        self.jobs[job_id] = replace(self.jobs[job_id], **patch)
        self.updates.append((job_id, patch))
        return self.jobs[job_id]


class FakeClock:
    """
    Monotonic clock plus sleep for driving JobScheduler without waiting.
    sleep() advances the clock by the requested delay; once park_after
    sleeps have been requested it blocks until the task is cancelled.
    """

    def __init__(self, park_after=2):
        self.now = 0.0
        self.sleeps = []
        self.park_after = park_after
        self.parked = asyncio.Event()

    def time(self):
        return self.now

    async def sleep(self, delay):
        self.sleeps.append(delay)
        if len(self.sleeps) >= self.park_after:
            self.parked.set()
            await asyncio.Event().wait()
        self.now += delay


def make_businesses(*ids):
    return [Business(id=business_id, name=f"Business {business_id}") for business_id in ids]
