from fastapi import APIRouter, Depends, Security
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.email.schemas import NotificationPayload, SendEmailResponse
from app.modules.email.service import EmailService
from app.core.dependencies import security, get_auth_service
from app.modules.auth.service import AuthService
from supabase import Client

router = APIRouter(prefix="/functions", tags=["email"])


def get_email_service(supabase: Client = Depends(get_service_supabase)) -> EmailService:
    return EmailService(supabase)


def verify_caller(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Database webhooks call with the service role key; users with their JWT"""
    token = credentials.credentials
    if settings.supabase_service_role_key and token == settings.supabase_service_role_key:
        return {"id": None, "service_role": True}
    return auth_service.get_current_user(token)


@router.post("/send-email", response_model=SendEmailResponse)
async def send_email(
    payload: NotificationPayload,
    caller: dict = Depends(verify_caller),
    service: EmailService = Depends(get_email_service)
):
    """Email a notification's recipient; 400 with the reason when nothing was sent"""
    result = service.process_notification(payload)
    if result.success:
        return SendEmailResponse(success=True, message="Email sent")
    return JSONResponse(status_code=400, content={"success": False, "error": result.error})
