from pydantic import BaseModel
from typing import Optional


class NotificationPayload(BaseModel):
    """Notification row as delivered by the change feed or a database webhook"""
    id: Optional[str] = None
    user_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    actor_id: Optional[str] = None
    created_at: Optional[str] = None


class SendEmailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
