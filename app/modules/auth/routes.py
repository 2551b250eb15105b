from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    ForgotPasswordRequest, ResetPasswordRequest, MeResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_current_user_id, get_current_profile, is_system_admin
from app.config.permissions_config import get_permission_matrix, get_role_permissions
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase)
) -> AuthService:
    return AuthService(supabase, admin_client)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user (optionally through a workspace invite link)"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.post("/forgot-password", status_code=200)
async def forgot_password(
    request: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.forgot_password(request.email)
    return {"message": "If an account exists for this email, a reset link has been sent"}


@router.post("/reset-password", status_code=200)
async def reset_password(
    request: ResetPasswordRequest,
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Set a new password for the signed-in user (recovery link session or settings page)"""
    service.reset_password(current_user["id"], request.password)
    return {"message": "Password updated successfully"}


@router.get("/me", response_model=MeResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    profile: Dict = Depends(get_current_profile),
):
    """Get current authenticated user, profile and permissions (for frontend UI)."""
    if is_system_admin(profile):
        permissions = [p["name"] for p in get_permission_matrix()["permissions"]]
    else:
        permissions = get_role_permissions(profile.get("role") or "member")
    return MeResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        profile=profile,
        permissions=permissions,
    )
