"""
Job store interface consumed by the rescheduler, and the sqlite-backed
implementation used by the running application.
"""

import asyncio
import sqlite3
from datetime import date
from functools import partial
from typing import List, Protocol

from bizworx import db
from bizworx.errors import JobNotFoundError, StoreError
from bizworx.models import Business, Job
from bizworx.timezone_utils import day_bounds, from_utc, parse_iso_with_tz


class JobStore(Protocol):
    """
    What the rescheduler needs from storage. "On date" means the job's
    scheduled start falls inside that calendar day in the business timezone.
    """

    async def list_businesses(self) -> List[Business]:
        ...

    async def list_incomplete_jobs_for_business_on_date(self, business_id: int, day: date) -> List[Job]:
        ...

    async def list_jobs_for_business_on_date(self, business_id: int, day: date) -> List[Job]:
        ...

    async def update_job(self, job_id: int, patch: dict) -> Job:
        ...


def job_from_row(row: dict) -> Job:
    """Build a Job from a db row dict. Stored UTC timestamps come back on the business clock."""
    start = row.get("scheduled_start")
    end = row.get("scheduled_end")
    return Job(
        id=row["id"],
        business_id=row["business_id"],
        scheduled_start=from_utc(parse_iso_with_tz(start)) if start else None,
        scheduled_end=from_utc(parse_iso_with_tz(end)) if end else None,
        status=row["status"],
        title=row.get("title") or "",
        client_id=row.get("client_id"),
        address=row.get("address"),
        notes=row.get("notes"),
    )


class SQLiteJobStore:
    """
    JobStore over the module-level functions in bizworx.db.

    Each call runs in a worker thread so a slow disk never blocks the
    event loop serving HTTP. sqlite errors surface as StoreError.
    """

    async def _call(self, func, *args):
        try:
            return await asyncio.to_thread(partial(func, *args))
        except sqlite3.Error as e:
            raise StoreError(f"{func.__name__} failed: {e}") from e

    async def list_businesses(self) -> List[Business]:
        rows = await self._call(db.get_businesses)
        return [Business(id=row["id"], name=row["name"]) for row in rows]

    async def list_incomplete_jobs_for_business_on_date(self, business_id: int, day: date) -> List[Job]:
        start, end = day_bounds(day)
        rows = await self._call(db.get_incomplete_jobs_for_business_between, business_id, start, end)
        return [job_from_row(row) for row in rows]

    async def list_jobs_for_business_on_date(self, business_id: int, day: date) -> List[Job]:
        start, end = day_bounds(day)
        rows = await self._call(db.get_jobs_for_business_between, business_id, start, end)
        return [job_from_row(row) for row in rows]

    async def update_job(self, job_id: int, patch: dict) -> Job:
        row = await self._call(db.update_job, job_id, patch)
        if row is None:
            raise JobNotFoundError(job_id)
        return job_from_row(row)
