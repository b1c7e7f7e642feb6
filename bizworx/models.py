"""
Domain models shared by the job store and the rescheduler.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


# status of a job that was booked but never worked
INCOMPLETE_STATUS = JobStatus.SCHEDULED


@dataclass(frozen=True)
class Business:
    id: int
    name: str


@dataclass
class Job:
    """
    A job as held by the store.

    scheduled_start/scheduled_end are timezone-aware, or None for jobs
    that were never put on the calendar.
    """
    id: int
    business_id: int
    scheduled_start: Optional[datetime]
    scheduled_end: Optional[datetime]
    status: str = JobStatus.SCHEDULED.value
    title: str = ""
    client_id: Optional[int] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_timed(self) -> bool:
        return self.scheduled_start is not None and self.scheduled_end is not None

    def duration(self) -> Optional[timedelta]:
        """Booked length of the job, None when either timestamp is missing."""
        if not self.is_timed:
            return None
        return self.scheduled_end - self.scheduled_start


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate placement for a job. Half-open: [start, end).
    """
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check if this slot overlaps the interval [start, end)."""
        return self.start < end and self.end > start

    def conflicts_with(self, job: Job) -> bool:
        """Jobs without both timestamps never block a slot."""
        if not job.is_timed:
            return False
        return self.overlaps(job.scheduled_start, job.scheduled_end)


@dataclass
class SweepResult:
    """
    Outcome of one rescheduling pass over all businesses.

    jobs_unscheduled counts incomplete jobs for which no open slot was
    found in the search horizon; those jobs are left as they were.
    """
    started_at: datetime
    finished_at: Optional[datetime] = None
    businesses: int = 0
    jobs_examined: int = 0
    jobs_rescheduled: int = 0
    jobs_unscheduled: int = 0
    error: Optional[str] = None
    rescheduled_job_ids: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        data["ok"] = self.ok
        return data
