from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict
from datetime import datetime


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserRoleUpdate(BaseModel):
    role: str


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = "member"
    workspace_id: Optional[str] = None
    is_system_admin: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailPreferences(BaseModel):
    email_notifications_enabled: bool = True
    email_notification_types: Dict[str, bool] = Field(default_factory=dict)


class EmailPreferencesUpdate(BaseModel):
    email_notifications_enabled: Optional[bool] = None
    email_notification_types: Optional[Dict[str, bool]] = None


class InviteUserRequest(BaseModel):
    email: EmailStr
    role: str = "member"
    full_name: Optional[str] = None


class InvitedUser(BaseModel):
    id: str
    email: str
    role: str
    full_name: str


class InviteUserResponse(BaseModel):
    success: bool = True
    message: str
    user: InvitedUser
