from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class WorkspaceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InviteLinkCreate(BaseModel):
    role: str = "member"
    max_uses: Optional[int] = Field(default=None, ge=1)
    expires_in_days: Optional[int] = Field(default=7, ge=1)


class InviteLinkResponse(BaseModel):
    id: str
    code: str
    workspace_id: str
    role: str
    max_uses: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime
    invite_url: Optional[str] = None

    class Config:
        from_attributes = True


class InviteInfo(BaseModel):
    code: str
    link_id: str
    workspace_id: str
    workspace_name: Optional[str] = None
    role: str
