from fastapi import APIRouter, Depends
from app.modules.reminders.schemas import ReminderCheckResult, ReminderCheckerStatus
from app.modules.reminders.service import ReminderChecker, reminder_checker
from app.core.dependencies import require_system_admin
from typing import Dict

router = APIRouter(prefix="/reminders", tags=["reminders"])


def get_reminder_checker() -> ReminderChecker:
    return reminder_checker


@router.get("/status", response_model=ReminderCheckerStatus)
async def checker_status(
    profile: Dict = Depends(require_system_admin),
    checker: ReminderChecker = Depends(get_reminder_checker)
):
    return ReminderCheckerStatus(
        running=checker.running,
        interval_seconds=checker.interval_seconds,
        tolerance_hours=checker.tolerance_hours,
        sent_cache_size=len(checker.sent),
    )


@router.post("/check", response_model=ReminderCheckResult)
async def run_check(
    profile: Dict = Depends(require_system_admin),
    checker: ReminderChecker = Depends(get_reminder_checker)
):
    """Run one reminder pass now"""
    created = checker.check()
    return ReminderCheckResult(notifications_created=len(created), sent_cache_size=len(checker.sent))


@router.delete("/cache", status_code=204)
async def clear_cache(
    profile: Dict = Depends(require_system_admin),
    checker: ReminderChecker = Depends(get_reminder_checker)
):
    checker.clear_cache()
    return None
