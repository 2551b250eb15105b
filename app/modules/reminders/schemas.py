from pydantic import BaseModel


class ReminderCheckResult(BaseModel):
    notifications_created: int
    sent_cache_size: int


class ReminderCheckerStatus(BaseModel):
    running: bool
    interval_seconds: float
    tolerance_hours: float
    sent_cache_size: int
