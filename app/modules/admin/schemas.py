from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime


class OwnerSummary(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class AdminWorkspaceResponse(BaseModel):
    id: str
    name: str
    owner_id: Optional[str] = None
    owner: Optional[OwnerSummary] = None
    member_count: int = 0
    project_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuditLogEntry(BaseModel):
    id: str
    admin_id: Optional[str] = None
    admin: Optional[OwnerSummary] = None
    workspace_id: Optional[str] = None
    workspace_name: Optional[str] = None
    action: str
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SystemStats(BaseModel):
    total_workspaces: int = 0
    total_users: int = 0
    total_projects: int = 0
    total_tasks: int = 0


class AdminUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None
    is_system_admin: bool = False
    created_at: Optional[datetime] = None


class WorkspaceDetails(BaseModel):
    id: str
    name: str
    owner_id: Optional[str] = None
    owner: Optional[OwnerSummary] = None
    members: List[Dict[str, Any]] = []
    projects: List[Dict[str, Any]] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkspaceAnalyticsSummary(BaseModel):
    total_members: int = 0
    total_projects: int = 0
    total_tasks: int = 0
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class WorkspaceAnalyticsExport(BaseModel):
    workspace: WorkspaceDetails
    summary: WorkspaceAnalyticsSummary
