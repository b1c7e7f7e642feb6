import sqlite3
from datetime import datetime
from typing import Optional, Union

from config.settings import DB_PATH
from bizworx.models import INCOMPLETE_STATUS, JobStatus
from bizworx.timezone_utils import parse_iso_with_tz, to_iso_utc, now

# columns update_job is allowed to touch
UPDATABLE_JOB_COLUMNS = ("scheduled_start", "scheduled_end", "status", "title", "notes")

_JOB_COLUMNS = "id, business_id, client_id, title, address, notes, scheduled_start, scheduled_end, status"


def _connect():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def _timestamp(value: Union[str, datetime, None]) -> Optional[str]:
    """Normalize a datetime or ISO string to the stored UTC form."""
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_iso_with_tz(value)
    return to_iso_utc(value)


def init_db():
    """
    Initialize the database and ensure the 'businesses' and 'jobs' tables exist.
    jobs columns:
      - id: auto-increment primary key
      - business_id: owning business, jobs never cross businesses
      - client_id, title, address, notes: descriptive, unused by scheduling
      - scheduled_start / scheduled_end: UTC ISO timestamps, nullable
      - status: scheduled, in_progress, completed, cancelled, rescheduled
    """
    with _connect() as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS businesses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                business_id INTEGER NOT NULL REFERENCES businesses(id),
                client_id INTEGER,
                title TEXT NOT NULL DEFAULT '',
                address TEXT,
                notes TEXT,
                scheduled_start TEXT,
                scheduled_end TEXT,
                status TEXT NOT NULL DEFAULT 'scheduled',
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_jobs_business_start
            ON jobs (business_id, scheduled_start)
        """)


def add_business(name: str) -> int:
    """
    Add a business. Returns: new business id.
    """
    with _connect() as conn:
        cursor = conn.execute(
            "INSERT INTO businesses (name, created_at) VALUES (?, ?)",
            (name, to_iso_utc(now())),
        )
        conn.commit()
        return cursor.lastrowid


def get_businesses():
    """
    Fetch all businesses.
    Returns: list of dicts {id, name}
    """
    with _connect() as conn:
        cursor = conn.execute("SELECT id, name FROM businesses ORDER BY id")
        return [dict(row) for row in cursor.fetchall()]


def add_job(business_id: int, scheduled_start=None, scheduled_end=None,
            status: str = JobStatus.SCHEDULED.value, title: str = "",
            client_id: int = None, address: str = None, notes: str = None) -> int:
    """
    Add a job for a business.
    scheduled_start/scheduled_end may be datetimes or ISO strings; naive
    values are read in the business timezone.
    Returns: new job id.
    """
    with _connect() as conn:
        cursor = conn.execute(
            """
            INSERT INTO jobs (business_id, client_id, title, address, notes,
                              scheduled_start, scheduled_end, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (business_id, client_id, title, address, notes,
             _timestamp(scheduled_start), _timestamp(scheduled_end), status,
             to_iso_utc(now())),
        )
        conn.commit()
        return cursor.lastrowid


def get_job(job_id: int):
    """
    Fetch one job. Returns: dict, or None if there is no such job.
    """
    with _connect() as conn:
        row = conn.execute(f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return dict(row) if row else None


def get_jobs_for_business_between(business_id: int, start: datetime, end: datetime):
    """
    Fetch a business's jobs whose scheduled_start is in [start, end),
    ordered by scheduled_start.
    """
    with _connect() as conn:
        cursor = conn.execute(
            f"""
            SELECT {_JOB_COLUMNS} FROM jobs
            WHERE business_id = ? AND scheduled_start >= ? AND scheduled_start < ?
            ORDER BY scheduled_start
            """,
            (business_id, to_iso_utc(start), to_iso_utc(end)),
        )
        return [dict(row) for row in cursor.fetchall()]


def get_incomplete_jobs_for_business_between(business_id: int, start: datetime, end: datetime):
    """
    Same as get_jobs_for_business_between, limited to jobs still marked incomplete ('scheduled').
    """
    with _connect() as conn:
        cursor = conn.execute(
            f"""
            SELECT {_JOB_COLUMNS} FROM jobs
            WHERE business_id = ? AND status = ?
              AND scheduled_start >= ? AND scheduled_start < ?
            ORDER BY scheduled_start
            """,
            (business_id, INCOMPLETE_STATUS.value, to_iso_utc(start), to_iso_utc(end)),
        )
        return [dict(row) for row in cursor.fetchall()]


def update_job(job_id: int, patch: dict):
    """
    Apply a partial update to a job.
    Only UPDATABLE_JOB_COLUMNS may be set; timestamps are normalized to UTC.
    Returns: the updated job dict, or None if the job does not exist.
    """
    unknown = set(patch) - set(UPDATABLE_JOB_COLUMNS)
    if unknown:
        raise ValueError(f"Cannot update job columns: {', '.join(sorted(unknown))}")

    values = dict(patch)
    for column in ("scheduled_start", "scheduled_end"):
        if column in values:
            values[column] = _timestamp(values[column])

    if values:
        assignments = ", ".join(f"{column} = ?" for column in values)
        with _connect() as conn:
            cursor = conn.execute(
                f"UPDATE jobs SET {assignments} WHERE id = ?",
                (*values.values(), job_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
    return get_job(job_id)


def clear_jobs():
    """
    Remove all jobs (testing only).
    """
    with _connect() as conn:
        conn.execute("DELETE FROM jobs")
        conn.commit()


def clear_businesses():
    """
    Remove all businesses and their jobs (testing only).
    """
    with _connect() as conn:
        conn.execute("DELETE FROM jobs")
        conn.execute("DELETE FROM businesses")
        conn.commit()
