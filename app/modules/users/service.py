import logging
import secrets
from supabase import Client
from app.config import settings
from app.config.permissions_config import VALID_ROLES
from app.core.utils import utc_now, first_row
from app.modules.users.schemas import (
    UserUpdate, UserResponse, EmailPreferences, EmailPreferencesUpdate,
    InviteUserRequest, InviteUserResponse, InvitedUser
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def validate_role(role: str) -> str:
    if role not in VALID_ROLES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}"
        )
    return role


class UserService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client or supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            row = first_row(result)
            if not row:
                raise HTTPException(status_code=404, detail="User not found")
            return UserResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        try:
            result = self.admin_client.table("profiles")\
                .select("*")\
                .eq("email", email)\
                .maybe_single()\
                .execute()
            row = first_row(result)
            return UserResponse(**row) if row else None
        except Exception as e:
            logger.error(f"Error looking up profile by email: {e}")
            return None

    def list_users(
        self,
        workspace_id: Optional[str],
        limit: int = 100,
        offset: int = 0,
        allow_all: bool = False
    ) -> List[UserResponse]:
        """Newest profiles first. Workspace-scoped unless allow_all (system admins)."""
        try:
            query = self.supabase.table("profiles").select("*")
            if not allow_all:
                if not workspace_id:
                    return []
                query = query.eq("workspace_id", workspace_id)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [UserResponse(**user) for user in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def search_users(self, query: str, workspace_id: Optional[str] = None, limit: int = 10) -> List[UserResponse]:
        """Match full name or email, case-insensitive"""
        term = (query or "").strip()
        if not term:
            return []
        try:
            builder = self.supabase.table("profiles")\
                .select("*")\
                .or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")
            if workspace_id:
                builder = builder.eq("workspace_id", workspace_id)
            result = builder.limit(limit).execute()
            return [UserResponse(**user) for user in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update user profile"""
        try:
            update_data = {"updated_at": utc_now().isoformat()}
            if user_data.full_name is not None:
                update_data["full_name"] = user_data.full_name
            if user_data.avatar_url is not None:
                update_data["avatar_url"] = user_data.avatar_url

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_user_role(self, user_id: str, role: str) -> UserResponse:
        validate_role(role)
        try:
            result = self.supabase.table("profiles")\
                .update({"role": role, "updated_at": utc_now().isoformat()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_user(self, user_id: str) -> bool:
        """Delete the profile row, then the auth user when a service role key is configured"""
        try:
            result = self.supabase.table("profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if settings.supabase_service_role_key:
            try:
                self.admin_client.auth.admin.delete_user(user_id)
            except Exception as e:
                logger.warning(f"Profile {user_id} deleted but auth user removal failed: {e}")
        return True

    def get_email_preferences(self, user_id: str) -> EmailPreferences:
        user = self._load_raw(user_id)
        enabled = user.get("email_notifications_enabled")
        return EmailPreferences(
            email_notifications_enabled=True if enabled is None else bool(enabled),
            email_notification_types=user.get("email_notification_types") or {}
        )

    def update_email_preferences(self, user_id: str, prefs: EmailPreferencesUpdate) -> EmailPreferences:
        update_data = {}
        if prefs.email_notifications_enabled is not None:
            update_data["email_notifications_enabled"] = prefs.email_notifications_enabled
        if prefs.email_notification_types is not None:
            update_data["email_notification_types"] = prefs.email_notification_types
        if not update_data:
            return self.get_email_preferences(user_id)
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self.get_email_preferences(user_id)

    def invite_user(self, invite_data: InviteUserRequest, workspace_id: Optional[str] = None) -> InviteUserResponse:
        """Create an auth account for someone else and send them a password recovery link"""
        role = validate_role(invite_data.role)
        email = str(invite_data.email)
        full_name = invite_data.full_name or email.split("@")[0]

        if not settings.supabase_service_role_key:
            raise HTTPException(status_code=500, detail="Service role key not configured. Cannot invite users.")

        if self.get_user_by_email(email):
            raise HTTPException(status_code=409, detail="User with this email already exists")

        try:
            created = self.admin_client.auth.admin.create_user({
                "email": email,
                "password": secrets.token_urlsafe(24) + "A1!",
                "email_confirm": False,
                "user_metadata": {
                    "full_name": full_name,
                    "role": role,
                    "invited": True,
                },
            })
        except Exception as e:
            logger.error(f"User creation failed for {email}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to create user: {str(e)}")
        if not created or not created.user:
            raise HTTPException(status_code=500, detail="Failed to create user")

        user_id = created.user.id
        self._ensure_invited_profile(user_id, email, full_name, role, workspace_id)

        try:
            self.admin_client.auth.admin.generate_link({
                "type": "recovery",
                "email": email,
                "options": {"redirect_to": f"{settings.app_url}/reset-password"},
            })
        except Exception as e:
            logger.error(f"Recovery link generation failed for {email}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to generate reset link: {str(e)}")

        logger.info(f"Invited {email} as {role}")
        return InviteUserResponse(
            success=True,
            message="User invited successfully",
            user=InvitedUser(id=user_id, email=created.user.email or email, role=role, full_name=full_name)
        )

    def _ensure_invited_profile(self, user_id: str, email: str, full_name: str, role: str, workspace_id: Optional[str]):
        # The signup trigger usually creates the profile; repair it when it is missing or wrong
        try:
            existing = first_row(
                self.admin_client.table("profiles")
                .select("id, role, workspace_id")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning(f"Profile check failed for invited user {user_id}: {e}")
            existing = None

        try:
            if not existing:
                self.admin_client.table("profiles").upsert({
                    "id": user_id,
                    "email": email,
                    "full_name": full_name,
                    "role": role,
                    "workspace_id": workspace_id,
                }).execute()
                return
            fixes = {}
            if existing.get("role") != role:
                logger.warning(f"Profile role mismatch for {user_id}: expected {role}, got {existing.get('role')}")
                fixes["role"] = role
            if workspace_id and existing.get("workspace_id") != workspace_id:
                fixes["workspace_id"] = workspace_id
            if fixes:
                self.admin_client.table("profiles").update(fixes).eq("id", user_id).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to set up user profile: {str(e)}")

    def _load_raw(self, user_id: str) -> dict:
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        row = first_row(result)
        if not row:
            raise HTTPException(status_code=404, detail="User not found")
        return row
