from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.workspaces.schemas import (
    WorkspaceCreate, WorkspaceUpdate, WorkspaceResponse,
    InviteLinkCreate, InviteLinkResponse, InviteInfo
)
from app.modules.workspaces.service import WorkspaceService
from app.core.dependencies import get_current_profile, require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def get_workspace_service(supabase: Client = Depends(get_supabase)) -> WorkspaceService:
    return WorkspaceService(supabase)


def _workspace_id(profile: Dict) -> str:
    if not profile.get("workspace_id"):
        raise HTTPException(status_code=404, detail="You are not part of a workspace")
    return profile["workspace_id"]


@router.post("", response_model=WorkspaceResponse, status_code=201)
async def create_workspace(
    workspace_data: WorkspaceCreate,
    profile: Dict = Depends(get_current_profile),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Create a new workspace owned by the current user"""
    return service.create_workspace(workspace_data, profile["id"])


@router.get("/me", response_model=WorkspaceResponse)
async def get_my_workspace(
    profile: Dict = Depends(require_permission("workspaces:read")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    return service.get_workspace(_workspace_id(profile))


@router.put("/me", response_model=WorkspaceResponse)
async def update_my_workspace(
    workspace_data: WorkspaceUpdate,
    profile: Dict = Depends(require_permission("workspaces:update")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    return service.update_workspace(_workspace_id(profile), workspace_data)


@router.get("/me/team", response_model=List[dict])
async def list_team(
    profile: Dict = Depends(require_permission("users:read")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """List the members of the current workspace"""
    return service.list_team(_workspace_id(profile))


@router.post("/me/invite-links", response_model=InviteLinkResponse, status_code=201)
async def generate_invite_link(
    link_data: InviteLinkCreate,
    profile: Dict = Depends(require_permission("workspaces:invite")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Generate a shareable signup link for the workspace"""
    return service.generate_invite_link(_workspace_id(profile), link_data, profile["id"])


@router.get("/me/invite-links", response_model=List[InviteLinkResponse])
async def list_invite_links(
    profile: Dict = Depends(require_permission("workspaces:invite")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    return service.list_invite_links(_workspace_id(profile))


@router.delete("/me/invite-links/{link_id}", status_code=204)
async def revoke_invite_link(
    link_id: str,
    profile: Dict = Depends(require_permission("workspaces:invite")),
    service: WorkspaceService = Depends(get_workspace_service)
):
    service.revoke_invite_link(_workspace_id(profile), link_id)
    return None


@router.get("/invites/{code}", response_model=InviteInfo)
async def resolve_invite(
    code: str,
    supabase: Client = Depends(get_service_supabase)
):
    """Public: describe an invite link before signing up"""
    return WorkspaceService(supabase).resolve_invite(code)
