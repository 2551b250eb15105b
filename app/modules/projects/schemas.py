from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

PROJECT_MEMBER_ROLES = ["admin", "member", "viewer"]
DEFAULT_PROJECT_COLOR = "#3b82f6"


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    color: Optional[str] = DEFAULT_PROJECT_COLOR


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class ProjectMemberResponse(BaseModel):
    user_id: str
    role: str = "member"
    joined_at: Optional[datetime] = None
    user: Optional[Dict[str, Any]] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    owner_id: Optional[str] = None
    workspace_id: Optional[str] = None
    owner: Optional[Dict[str, Any]] = None
    members: List[ProjectMemberResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectMemberAdd(BaseModel):
    user_id: str
    role: str = "member"


class ProjectMemberRoleUpdate(BaseModel):
    role: str
