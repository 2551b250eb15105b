import logging
import secrets
from datetime import timedelta
from supabase import Client
from app.config import settings
from app.config.permissions_config import VALID_ROLES
from app.core.utils import utc_now, parse_timestamp, first_row
from app.modules.workspaces.schemas import (
    WorkspaceCreate, WorkspaceUpdate, WorkspaceResponse,
    InviteLinkCreate, InviteLinkResponse, InviteInfo
)
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def build_invite_url(code: str) -> str:
    return f"{settings.app_url}/signup?invite={code}"


class WorkspaceService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_workspace(self, workspace_data: WorkspaceCreate, user_id: str) -> WorkspaceResponse:
        """Create a workspace and move its creator into it"""
        try:
            result = self.supabase.table("workspaces").insert({
                "name": workspace_data.name,
                "description": workspace_data.description,
                "owner_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create workspace")

            workspace = result.data[0]
            self.supabase.table("profiles")\
                .update({"workspace_id": workspace["id"]})\
                .eq("id", user_id)\
                .execute()

            return WorkspaceResponse(**workspace)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_workspace(self, workspace_id: str) -> WorkspaceResponse:
        try:
            result = self.supabase.table("workspaces")\
                .select("*")\
                .eq("id", workspace_id)\
                .maybe_single()\
                .execute()
            row = first_row(result)
            if not row:
                raise HTTPException(status_code=404, detail="Workspace not found")
            return WorkspaceResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_workspace(self, workspace_id: str, workspace_data: WorkspaceUpdate) -> WorkspaceResponse:
        try:
            update_data = {"updated_at": utc_now().isoformat()}
            if workspace_data.name:
                update_data["name"] = workspace_data.name
            if workspace_data.description is not None:
                update_data["description"] = workspace_data.description

            result = self.supabase.table("workspaces")\
                .update(update_data)\
                .eq("id", workspace_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Workspace not found")
            return WorkspaceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_team(self, workspace_id: str) -> List[dict]:
        """Profiles belonging to the workspace"""
        try:
            result = self.supabase.table("profiles")\
                .select("id, email, full_name, avatar_url, role, created_at")\
                .eq("workspace_id", workspace_id)\
                .order("created_at", desc=True)\
                .execute()
            return result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Invite links

    def generate_invite_link(self, workspace_id: str, link_data: InviteLinkCreate, user_id: str) -> InviteLinkResponse:
        if link_data.role not in VALID_ROLES or link_data.role == "super_admin":
            raise HTTPException(status_code=400, detail=f"Invalid role: {link_data.role}")
        try:
            expires_at = None
            if link_data.expires_in_days:
                expires_at = (utc_now() + timedelta(days=link_data.expires_in_days)).isoformat()
            result = self.supabase.table("invite_links").insert({
                "code": secrets.token_urlsafe(12),
                "workspace_id": workspace_id,
                "role": link_data.role,
                "max_uses": link_data.max_uses,
                "used_count": 0,
                "is_active": True,
                "expires_at": expires_at,
                "created_by": user_id
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create invite link")
            link = result.data[0]
            return InviteLinkResponse(**link, invite_url=build_invite_url(link["code"]))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_invite_links(self, workspace_id: str) -> List[InviteLinkResponse]:
        try:
            result = self.supabase.table("invite_links")\
                .select("*")\
                .eq("workspace_id", workspace_id)\
                .order("created_at", desc=True)\
                .execute()
            return [
                InviteLinkResponse(**link, invite_url=build_invite_url(link["code"]))
                for link in (result.data or [])
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def revoke_invite_link(self, workspace_id: str, link_id: str) -> bool:
        try:
            result = self.supabase.table("invite_links")\
                .update({"is_active": False})\
                .eq("id", link_id)\
                .eq("workspace_id", workspace_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Invite link not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def resolve_invite(self, code: str) -> InviteInfo:
        """Validate an invite code and describe the workspace it joins"""
        try:
            result = self.supabase.table("invite_links")\
                .select("*")\
                .eq("code", code)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error loading invite {code}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load invite link")

        link = first_row(result)
        if not link:
            raise HTTPException(status_code=404, detail="Invalid or expired invite link")
        if not link.get("is_active", True):
            raise HTTPException(status_code=400, detail="This invite link has been revoked")
        expires_at = parse_timestamp(link.get("expires_at"))
        if expires_at and expires_at <= utc_now():
            raise HTTPException(status_code=400, detail="This invite link has expired")
        if link.get("max_uses") and (link.get("used_count") or 0) >= link["max_uses"]:
            raise HTTPException(status_code=400, detail="This invite link has reached its maximum uses")

        workspace_name = None
        try:
            ws = self.supabase.table("workspaces")\
                .select("name")\
                .eq("id", link["workspace_id"])\
                .maybe_single()\
                .execute()
            row = first_row(ws)
            workspace_name = row.get("name") if row else None
        except Exception as e:
            logger.warning(f"Could not load workspace for invite {code}: {e}")

        return InviteInfo(
            code=code,
            link_id=link["id"],
            workspace_id=link["workspace_id"],
            workspace_name=workspace_name,
            role=link["role"],
        )

    def redeem_invite(self, link_id: str) -> None:
        """Count one use of an invite link. Read-then-write, last write wins."""
        try:
            current = self.supabase.table("invite_links")\
                .select("used_count")\
                .eq("id", link_id)\
                .maybe_single()\
                .execute()
            row = first_row(current)
            new_count = ((row or {}).get("used_count") or 0) + 1
            self.supabase.table("invite_links")\
                .update({"used_count": new_count})\
                .eq("id", link_id)\
                .execute()
        except Exception as e:
            logger.warning(f"Failed to update invite link usage for {link_id}: {e}")
