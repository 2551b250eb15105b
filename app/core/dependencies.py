"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.permissions_config import role_has_permission
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

WORKSPACE_ADMIN_ROLES = ("super_admin", "admin")


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (profile, member project ids)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)


def load_profile(user_id: str, supabase: Client) -> Dict[str, Any]:
    try:
        result = supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
    except Exception as e:
        logger.error(f"Error loading profile {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load profile")
    if not result or not result.data:
        raise HTTPException(status_code=404, detail="Profile not found")
    return result.data


def get_current_profile(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    """Profile row of the authenticated user (request-cached)"""
    cache = _get_request_cache(request)
    if "profile" not in cache:
        cache["profile"] = load_profile(user_data["id"], supabase)
    return cache["profile"]


def is_system_admin(profile: Dict[str, Any]) -> bool:
    """Platform operator flag, independent of the workspace role"""
    return bool(profile.get("is_system_admin"))


def is_workspace_admin(profile: Dict[str, Any]) -> bool:
    return is_system_admin(profile) or profile.get("role") in WORKSPACE_ADMIN_ROLES


def is_workspace_admin_of(profile: Dict[str, Any], workspace_id: Optional[str]) -> bool:
    """System admins anywhere; workspace admins only inside their own workspace"""
    if is_system_admin(profile):
        return True
    return (
        is_workspace_admin(profile)
        and bool(workspace_id)
        and workspace_id == profile.get("workspace_id")
    )


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(profile: dict = Depends(get_current_profile)) -> dict:
        """Dependency to check if the profile's role grants the permission"""
        if is_system_admin(profile):
            return profile
        if not role_has_permission(profile.get("role") or "member", required_permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return profile
    return check_permission


def require_system_admin(profile: dict = Depends(get_current_profile)) -> dict:
    if not is_system_admin(profile):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="System administrator access required"
        )
    return profile


def get_member_project_ids(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[str]:
    """Return project ids from project_members. Uses request-scoped cache when provided."""
    if cache is not None and "project_ids" in cache:
        return cache["project_ids"]
    try:
        result = supabase.table("project_members")\
            .select("project_id")\
            .eq("user_id", user_id)\
            .execute()
        ids = [m["project_id"] for m in (result.data or [])]
        if cache is not None:
            cache["project_ids"] = ids
        return ids
    except Exception as e:
        logger.error(f"Error getting member project ids: {e}")
        return []


def get_visible_project_ids(profile: dict, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Optional[List[str]]:
    """
    Projects the caller may read across listings, search, analytics and activity.

    None means unrestricted (system admins). Workspace admins get every project of
    their own workspace plus the ones they joined elsewhere; everyone else gets
    their memberships.
    """
    if is_system_admin(profile):
        return None
    ids = get_member_project_ids(profile["id"], supabase, cache)
    workspace_id = profile.get("workspace_id")
    if not is_workspace_admin(profile) or not workspace_id:
        return ids
    try:
        result = supabase.table("projects")\
            .select("id")\
            .eq("workspace_id", workspace_id)\
            .execute()
    except Exception as e:
        logger.error(f"Error listing projects of workspace {workspace_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load workspace projects")
    workspace_ids = [p["id"] for p in (result.data or [])]
    return workspace_ids + [i for i in ids if i not in workspace_ids]


def get_access_cache(request: Request) -> Dict[str, Any]:
    """Dependency that returns request-scoped access cache."""
    return _get_request_cache(request)


def _project_exists(project_id: str, supabase: Client) -> Dict[str, Any]:
    result = supabase.table("projects")\
        .select("id, owner_id, workspace_id")\
        .eq("id", project_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    return result.data


def check_project_member(project_id: str, profile: dict, supabase: Client) -> dict:
    """Allow admins of the project's workspace, the project owner, or any project member"""
    project = _project_exists(project_id, supabase)
    if is_workspace_admin_of(profile, project.get("workspace_id")) or project.get("owner_id") == profile["id"]:
        return profile
    member_result = supabase.table("project_members")\
        .select("user_id")\
        .eq("project_id", project_id)\
        .eq("user_id", profile["id"])\
        .execute()
    if member_result.data:
        return profile
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be a member of this project"
    )


def check_project_admin(project_id: str, profile: dict, supabase: Client) -> dict:
    """Allow admins of the project's workspace, the project owner, or members holding the project admin role"""
    project = _project_exists(project_id, supabase)
    if is_workspace_admin_of(profile, project.get("workspace_id")) or project.get("owner_id") == profile["id"]:
        return profile
    member_result = supabase.table("project_members")\
        .select("role")\
        .eq("project_id", project_id)\
        .eq("user_id", profile["id"])\
        .eq("role", "admin")\
        .execute()
    if member_result.data:
        return profile
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be a project admin to perform this action"
    )


def get_task_project_id(task_id: str, supabase: Client) -> str:
    result = supabase.table("tasks")\
        .select("project_id")\
        .eq("id", task_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        raise HTTPException(status_code=404, detail="Task not found")
    return result.data["project_id"]


def check_task_access(task_id: str, profile: dict, supabase: Client) -> str:
    """Resolve the task's project and require membership. Returns the project id."""
    project_id = get_task_project_id(task_id, supabase)
    check_project_member(project_id, profile, supabase)
    return project_id


def is_project_workspace_admin(project_id: str, profile: dict, supabase: Client) -> bool:
    project = _project_exists(project_id, supabase)
    return is_workspace_admin_of(profile, project.get("workspace_id"))
