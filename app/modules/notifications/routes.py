from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import NotificationResponse, NotificationListResponse
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: Optional[int] = None,
    current_user: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Newest notifications for the current user, with unread count"""
    return service.list_notifications(current_user["id"], limit)


@router.post("/read-all", status_code=200)
async def mark_all_as_read(
    current_user: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    updated = service.mark_all_as_read(current_user["id"])
    return {"updated": updated, "unread_count": 0}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_as_read(current_user["id"], notification_id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    service.delete_notification(current_user["id"], notification_id)
    return None


@router.delete("", status_code=204)
async def clear_all(
    current_user: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Delete every notification of the current user"""
    service.clear_all(current_user["id"])
    return None
