from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.admin.schemas import (
    AdminWorkspaceResponse, AuditLogEntry, SystemStats, AdminUserResponse,
    WorkspaceDetails, WorkspaceAnalyticsExport
)
from app.modules.admin.service import AdminService
from app.core.dependencies import require_system_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(supabase: Client = Depends(get_service_supabase)) -> AdminService:
    return AdminService(supabase)


@router.get("/workspaces", response_model=List[AdminWorkspaceResponse])
async def list_workspaces(
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_workspaces()


@router.get("/workspaces/{workspace_id}", response_model=WorkspaceDetails)
async def get_workspace_details(
    workspace_id: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_workspace_details(workspace_id)


@router.get("/workspaces/{workspace_id}/export", response_model=WorkspaceAnalyticsExport)
async def export_workspace_analytics(
    workspace_id: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Workspace details plus member, project and task totals"""
    return service.export_workspace_analytics(workspace_id)


@router.delete("/workspaces/{workspace_id}", status_code=204)
async def delete_workspace(
    workspace_id: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    service.delete_workspace(workspace_id, admin["id"])
    return None


@router.get("/audit-log", response_model=List[AuditLogEntry])
async def get_audit_log(
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_audit_log()


@router.get("/stats", response_model=SystemStats)
async def get_stats(
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_stats()


@router.get("/system-admins", response_model=List[AdminUserResponse])
async def list_system_admins(
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_system_admins()


@router.get("/users/search", response_model=List[AdminUserResponse])
async def search_users(
    q: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Find non-admin users to promote"""
    return service.search_users(q)


@router.post("/system-admins/{user_id}", response_model=AdminUserResponse)
async def promote_system_admin(
    user_id: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.set_system_admin(user_id, admin["id"], promote=True)


@router.delete("/system-admins/{user_id}", response_model=AdminUserResponse)
async def demote_system_admin(
    user_id: str,
    admin: Dict = Depends(require_system_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.set_system_admin(user_id, admin["id"], promote=False)
