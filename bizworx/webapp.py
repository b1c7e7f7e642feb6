import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from config.settings import SCHEDULER_ENABLED
from bizworx.api.rescheduler import get_scheduler, start_scheduler, stop_scheduler
from bizworx.db import init_db
from bizworx.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.info("Job scheduler disabled (SCHEDULER_ENABLED=False)")
    yield
    await stop_scheduler()


app = FastAPI(title="BizWorx", lifespan=lifespan)


# -------------------
# SCHEDULER ENDPOINTS
# -------------------
@app.get("/scheduler-status")
async def scheduler_status():
    """
    Report whether the rescheduler is running and how its last sweep went.
    last_sweep.jobs_unscheduled is the number of incomplete jobs that could
    not be placed in the next 7 days.
    """
    scheduler = get_scheduler()
    if scheduler is None:
        return JSONResponse({"running": False, "interval_hours": None, "sweeps": 0, "last_sweep": None})

    last = scheduler.last_result
    return JSONResponse({
        "running": scheduler.running,
        "interval_hours": scheduler.interval.total_seconds() / 3600,
        "sweeps": scheduler.sweep_count,
        "last_sweep": last.to_dict() if last else None,
    })


@app.post("/reschedule-now")
async def reschedule_now():
    """Run one rescheduling sweep immediately, outside the daily cadence."""
    scheduler = get_scheduler()
    if scheduler is None or not scheduler.running:
        raise HTTPException(status_code=503, detail="Job scheduler is not running")

    result = await scheduler.run_once()
    return JSONResponse(result.to_dict())
