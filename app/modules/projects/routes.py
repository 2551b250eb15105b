from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectMemberResponse,
    ProjectMemberAdd, ProjectMemberRoleUpdate
)
from app.modules.projects.service import ProjectService
from app.core.dependencies import (
    require_permission, check_project_member, check_project_admin,
    get_visible_project_ids, get_access_cache
)
from supabase import Client
from typing import List, Dict, Any

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(supabase: Client = Depends(get_supabase)) -> ProjectService:
    return ProjectService(supabase)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    profile: Dict = Depends(require_permission("projects:read")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
):
    """Workspace admins see every project of their workspace; others only the ones they belong to"""
    return service.list_projects(get_visible_project_ids(profile, supabase, cache))


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_data: ProjectCreate,
    profile: Dict = Depends(require_permission("projects:create")),
    service: ProjectService = Depends(get_project_service)
):
    return service.create_project(project_data, profile["id"], profile.get("workspace_id"))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    profile: Dict = Depends(require_permission("projects:read")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.get_project(project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    profile: Dict = Depends(require_permission("projects:update")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_admin(project_id, profile, supabase)
    return service.update_project(project_id, project_data)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    profile: Dict = Depends(require_permission("projects:delete")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_admin(project_id, profile, supabase)
    service.delete_project(project_id)
    return None


@router.get("/{project_id}/members", response_model=List[ProjectMemberResponse])
async def list_members(
    project_id: str,
    profile: Dict = Depends(require_permission("projects:read")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.list_members(project_id)


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=201)
async def add_member(
    project_id: str,
    member_data: ProjectMemberAdd,
    profile: Dict = Depends(require_permission("projects:manage_members")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    """Add a user to the project (they receive a project_invite notification)"""
    check_project_admin(project_id, profile, supabase)
    return service.add_member(project_id, member_data, profile["id"])


@router.put("/{project_id}/members/{user_id}", response_model=ProjectMemberResponse)
async def update_member_role(
    project_id: str,
    user_id: str,
    role_data: ProjectMemberRoleUpdate,
    profile: Dict = Depends(require_permission("projects:manage_members")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_admin(project_id, profile, supabase)
    return service.update_member_role(project_id, user_id, role_data.role)


@router.delete("/{project_id}/members/{user_id}", status_code=204)
async def remove_member(
    project_id: str,
    user_id: str,
    profile: Dict = Depends(require_permission("projects:manage_members")),
    service: ProjectService = Depends(get_project_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_admin(project_id, profile, supabase)
    service.remove_member(project_id, user_id)
    return None
