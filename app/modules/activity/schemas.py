from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime

ACTIVITY_ACTIONS = [
    "task_created",
    "task_updated",
    "status_changed",
    "task_completed",
    "task_deleted",
    "comment_added",
    "file_uploaded",
    "file_deleted",
]


class ActivityResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    action: str
    details: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
