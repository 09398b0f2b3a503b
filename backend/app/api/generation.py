"""Operator endpoints for the recurring expense generator."""

from fastapi import APIRouter, HTTPException

from app.schemas.recurring import GenerationReportResponse, SchedulerStatusResponse
from app.services.scheduler import scheduler

router = APIRouter(prefix="/generation", tags=["generation"])


@router.post("/run", response_model=GenerationReportResponse)
async def run_generation():
    """Run one generation pass now instead of waiting for the next tick."""
    report = await scheduler.trigger()
    if report is None and scheduler.last_trigger_skipped:
        raise HTTPException(status_code=409, detail="A generation pass is already running")
    if report is None:
        raise HTTPException(
            status_code=500,
            detail=f"Generation pass failed: {scheduler.last_error}"
        )
    return GenerationReportResponse.model_validate(report)


@router.get("/status", response_model=SchedulerStatusResponse)
def generation_status():
    """Scheduler state and the outcome of the last pass."""
    report = scheduler.last_report
    return SchedulerStatusResponse(
        running=scheduler.is_running,
        pass_in_progress=scheduler.pass_in_progress,
        interval_seconds=scheduler.interval_seconds,
        last_run=scheduler.last_run,
        last_error=scheduler.last_error,
        last_report=GenerationReportResponse.model_validate(report) if report else None,
    )
