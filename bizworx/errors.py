"""
Exception hierarchy for the rescheduler and its job store.
"""


class BizworxError(Exception):
    """Base class for all application-level errors."""


class StoreError(BizworxError):
    """Raised when the job store cannot be read or written."""


class JobNotFoundError(StoreError):
    """Raised when an update targets a job id the store does not have."""

    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id
