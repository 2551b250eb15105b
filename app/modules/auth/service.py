import hashlib
import logging
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.config.settings import settings
from app.core.utils import first_row
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Token -> (user dict, expiry). Many parallel requests carry the same bearer token.
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_user(key: str, now: float) -> Optional[Dict[str, Any]]:
    entry = _AUTH_USER_CACHE.get(key)
    if not entry:
        return None
    user_data, expiry = entry
    if now < expiry:
        return user_data
    _AUTH_USER_CACHE.pop(key, None)
    return None


def _remember_user(key: str, user_data: Dict[str, Any], now: float) -> None:
    if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
        for stale in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
            del _AUTH_USER_CACHE[stale]
    if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
        _AUTH_USER_CACHE[key] = (user_data, now + _AUTH_CACHE_TTL_SEC)


def _user_dict(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class AuthService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client or supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user; joins the invite's workspace when a valid invite code is given"""
        # Imported here to keep auth importable from core.dependencies without a cycle
        from app.modules.workspaces.service import WorkspaceService
        from app.modules.email.service import send_welcome_email

        invite = None
        if register_data.invite_code:
            invite = WorkspaceService(self.admin_client).resolve_invite(register_data.invite_code)

        full_name = register_data.full_name or register_data.email.split("@")[0]
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"full_name": full_name}
                }
            })
            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

        user_id = auth_response.user.id
        # Fresh sign-ups own their own (future) workspace; invited users take the link's role
        role = invite.role if invite else "super_admin"
        workspace_id = invite.workspace_id if invite else None
        if invite and self._existing_role(user_id) == "super_admin":
            role = "super_admin"
        try:
            self.admin_client.table("profiles").upsert({
                "id": user_id,
                "email": register_data.email,
                "full_name": full_name,
                "role": role,
                "workspace_id": workspace_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error updating profile for new user {user_id}: {e}")

        if invite:
            WorkspaceService(self.admin_client).redeem_invite(invite.link_id)

        try:
            send_welcome_email(register_data.email, full_name)
        except Exception as e:
            logger.warning(f"Failed to send welcome email to {register_data.email}: {e}")

        return RegisterResponse(
            user_id=user_id,
            email=auth_response.user.email or register_data.email,
            message="User registered successfully",
            workspace_id=workspace_id,
            role=role,
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=getattr(auth_response.session, "refresh_token", None),
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the auth user, cached for a minute per token"""
        key = _token_key(token)
        now = time.monotonic()
        cached = _cached_user(key, now)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user_data = _user_dict(user_response.user)
        _remember_user(key, user_data, now)
        return user_data

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        # The JWT stays valid until it expires; only the cached lookup is dropped
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    def forgot_password(self, email: str) -> None:
        """Ask the identity provider to email a recovery link. Never reveals whether the address exists."""
        try:
            self.supabase.auth.reset_password_for_email(
                email,
                {"redirect_to": f"{settings.app_url}/reset-password"}
            )
        except Exception as e:
            logger.warning(f"Password reset request failed for {email}: {e}")

    def reset_password(self, user_id: str, new_password: str) -> bool:
        """Set a new password for an authenticated user (requires service role key)"""
        if not settings.supabase_service_role_key:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot update password."
            )
        try:
            response = self.admin_client.auth.admin.update_user_by_id(
                user_id,
                {"password": new_password}
            )
            if not response.user:
                raise HTTPException(status_code=404, detail="User not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to update password: {str(e)}")

    def _existing_role(self, user_id: str) -> Optional[str]:
        """Role of a profile the signup trigger may already have created"""
        try:
            row = first_row(
                self.admin_client.table("profiles")
                .select("role")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning(f"Could not read profile for {user_id}: {e}")
            return None
        return row.get("role") if row else None
