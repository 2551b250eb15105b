from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

NOTIFICATION_TYPES = [
    "task_assigned",
    "task_updated",
    "task_comment",
    "mention",
    "project_invite",
    "task_reminder",
    "due_reminder",
]


class NotificationCreate(BaseModel):
    user_id: str
    type: str
    title: str
    message: str
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    actor_id: Optional[str] = None


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    actor_id: Optional[str] = None
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
