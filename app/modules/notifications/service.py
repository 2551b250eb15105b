import logging
from supabase import Client
from app.config import settings
from app.core.realtime import ChangeFeed, change_feed
from app.modules.notifications.schemas import NotificationCreate, NotificationResponse, NotificationListResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def get_actor_name(supabase: Client, actor_id: Optional[str]) -> str:
    """Display name used in notification messages; "Someone" when unknown"""
    if not actor_id:
        return "Someone"
    try:
        result = supabase.table("profiles")\
            .select("full_name")\
            .eq("id", actor_id)\
            .maybe_single()\
            .execute()
        if result and result.data and result.data.get("full_name"):
            return result.data["full_name"]
    except Exception as e:
        logger.warning(f"Could not load actor profile {actor_id}: {e}")
    return "Someone"


class NotificationService:
    def __init__(self, supabase: Client, feed: Optional[ChangeFeed] = None):
        self.supabase = supabase
        self.feed = feed or change_feed

    def notify(self, notification: NotificationCreate) -> Optional[dict]:
        """Insert one notification. Best effort: failures are logged, never raised."""
        created = self.notify_many([notification])
        return created[0] if created else None

    def notify_many(self, notifications: List[NotificationCreate]) -> List[dict]:
        """Batch-insert notifications and push them on the change feed"""
        if not notifications:
            return []
        try:
            result = self.supabase.table("notifications")\
                .insert([n.model_dump() for n in notifications])\
                .execute()
        except Exception as e:
            logger.error(f"Error creating notifications: {e}")
            return []
        rows = result.data or []
        for row in rows:
            self.feed.publish("notifications", "INSERT", new=row)
        return rows

    def list_notifications(self, user_id: str, limit: Optional[int] = None) -> NotificationListResponse:
        """Newest notifications for a user with the unread count"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .limit(limit or settings.notification_list_limit)\
                .execute()
            notifications = [NotificationResponse(**n) for n in (result.data or [])]
            unread_count = sum(1 for n in notifications if not n.read)
            return NotificationListResponse(notifications=notifications, unread_count=unread_count)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_as_read(self, user_id: str, notification_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            row = result.data[0]
            self.feed.publish("notifications", "UPDATE", new=row)
            return NotificationResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification as read. Returns how many changed."""
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        try:
            result = self.supabase.table("notifications")\
                .delete()\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            self.feed.publish("notifications", "DELETE", old=result.data[0])
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def clear_all(self, user_id: str) -> None:
        """Delete all notifications for the user, then verify nothing is left"""
        try:
            self.supabase.table("notifications")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()

            remaining = self.supabase.table("notifications")\
                .select("id")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error clearing notifications for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if remaining.data:
            raise HTTPException(status_code=500, detail="Some notifications could not be deleted")
