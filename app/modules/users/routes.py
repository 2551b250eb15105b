from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.users.schemas import (
    UserUpdate, UserRoleUpdate, UserResponse,
    EmailPreferences, EmailPreferencesUpdate,
    InviteUserRequest, InviteUserResponse
)
from app.modules.users.service import UserService
from app.core.dependencies import get_current_profile, require_permission, is_system_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase)
) -> UserService:
    return UserService(supabase, admin_client)


def _ensure_same_workspace(profile: Dict, target: UserResponse):
    if is_system_admin(profile) or target.id == profile["id"]:
        return
    if not profile.get("workspace_id") or target.workspace_id != profile.get("workspace_id"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = 100,
    offset: int = 0,
    profile: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    """List users of the caller's workspace. System admins get every user."""
    return service.list_users(
        workspace_id=profile.get("workspace_id"),
        limit=limit,
        offset=offset,
        allow_all=is_system_admin(profile)
    )


@router.get("/search", response_model=List[UserResponse])
async def search_users(
    q: str,
    profile: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    if is_system_admin(profile):
        return service.search_users(q)
    if not profile.get("workspace_id"):
        return []
    return service.search_users(q, workspace_id=profile["workspace_id"])


@router.put("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdate,
    profile: Dict = Depends(get_current_profile),
    service: UserService = Depends(get_user_service)
):
    return service.update_user(profile["id"], user_data)


@router.get("/me/email-preferences", response_model=EmailPreferences)
async def get_email_preferences(
    profile: Dict = Depends(get_current_profile),
    service: UserService = Depends(get_user_service)
):
    return service.get_email_preferences(profile["id"])


@router.put("/me/email-preferences", response_model=EmailPreferences)
async def update_email_preferences(
    prefs: EmailPreferencesUpdate,
    profile: Dict = Depends(get_current_profile),
    service: UserService = Depends(get_user_service)
):
    """Toggle notification emails globally or per notification type"""
    return service.update_email_preferences(profile["id"], prefs)


@router.post("/invite", response_model=InviteUserResponse)
async def invite_user(
    invite_data: InviteUserRequest,
    profile: Dict = Depends(require_permission("users:invite")),
    service: UserService = Depends(get_user_service)
):
    """Create an account for a new teammate and email them a link to set a password"""
    return service.invite_user(invite_data, workspace_id=profile.get("workspace_id"))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    profile: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    user = service.get_user_by_id(user_id)
    _ensure_same_workspace(profile, user)
    return user


@router.put("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    role_data: UserRoleUpdate,
    profile: Dict = Depends(require_permission("users:update")),
    service: UserService = Depends(get_user_service)
):
    _ensure_same_workspace(profile, service.get_user_by_id(user_id))
    return service.update_user_role(user_id, role_data.role)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    profile: Dict = Depends(require_permission("users:delete")),
    service: UserService = Depends(get_user_service)
):
    """Delete a user (profile row and, when possible, the auth account)"""
    if profile.get("role") != "super_admin" and not is_system_admin(profile):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only super admins can delete users")
    if user_id == profile["id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    _ensure_same_workspace(profile, service.get_user_by_id(user_id))
    service.delete_user(user_id)
    return None
