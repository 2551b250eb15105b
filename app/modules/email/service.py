import asyncio
import json
import logging
from supabase import Client
from app.core.realtime import ChangeEvent, ChangeFeed
from app.core.utils import first_row, utc_now
from app.database.supabase_client import get_service_supabase
from app.modules.email.providers import EmailProvider, EmailResult, get_email_provider
from app.modules.email.schemas import NotificationPayload
from app.modules.email.templates import get_email_template
from typing import Any, Callable, Dict, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def notification_type_key(notification_type: str) -> str:
    """Preference key for a type: lowercase with whitespace replaced by underscores"""
    return "_".join(notification_type.lower().split())


class EmailService:
    def __init__(self, supabase: Client, provider: Optional[EmailProvider] = None):
        self.supabase = supabase
        self.provider = provider or get_email_provider()

    def send(self, to: str, subject: str, html: str) -> EmailResult:
        return self.provider.send(to, subject, html)

    def process_notification(self, payload: NotificationPayload) -> EmailResult:
        """
        Email the recipient of a notification if their preferences allow it.

        Raises 400 when user_id or type is missing. Every other outcome is an
        EmailResult; sends and failures are written to email_debug_log, and
        successful sends also to email_logs.
        """
        if not payload.user_id or not payload.type:
            raise HTTPException(status_code=400, detail="Missing required fields")

        try:
            return self._process(payload)
        except Exception as e:
            message = f"Exception processing notification: {e}"
            logger.error(message)
            self._debug(payload, "error_processing", message, {"error": str(e)})
            return EmailResult(success=False, error=message)

    def _process(self, payload: NotificationPayload) -> EmailResult:
        profile = first_row(
            self.supabase.table("profiles")
            .select("email, full_name, email_notifications_enabled, email_notification_types")
            .eq("id", payload.user_id)
            .maybe_single()
            .execute()
        )
        if not profile:
            message = f"User not found: {payload.user_id}"
            logger.error(message)
            self._debug(payload, "error_no_user", message)
            return EmailResult(success=False, error=message)

        if profile.get("email_notifications_enabled") is False:
            logger.info(f"User {payload.user_id} has email notifications disabled")
            return EmailResult(success=False, error="Email notifications disabled")

        type_key = notification_type_key(payload.type)
        if (profile.get("email_notification_types") or {}).get(type_key) is False:
            logger.info(f"Notification type {type_key} disabled for user {payload.user_id}")
            return EmailResult(success=False, error="Notification type disabled")

        data = self._template_data(payload, profile)
        subject, html = get_email_template(payload.type, data)
        result = self.send(profile["email"], subject, html)

        if result.success:
            self._debug(payload, "email_sent", f"Email sent to {profile['email']}")
            try:
                self.supabase.table("email_logs").insert({
                    "user_id": payload.user_id,
                    "recipient_email": profile["email"],
                    "subject": subject,
                    "email_type": payload.type,
                    "notification_ids": [payload.id] if payload.id else [],
                    "status": "sent",
                    "sent_at": utc_now().isoformat(),
                }).execute()
            except Exception as e:
                logger.warning(f"Could not insert email log: {e}")
        else:
            self._debug(payload, "email_failed", f"Failed to send: {result.error}", {"error": result.error})
        return result

    def _template_data(self, payload: NotificationPayload, profile: Dict) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "recipient_name": profile.get("full_name") or "User",
            "title": payload.title,
            "message": payload.message,
            "task_id": payload.task_id,
            "project_id": payload.project_id,
        }
        if payload.task_id:
            task = first_row(
                self.supabase.table("tasks")
                .select("id, title, description")
                .eq("id", payload.task_id)
                .maybe_single()
                .execute()
            )
            if task:
                data["task_title"] = task.get("title")
                data["task_description"] = task.get("description")
        if payload.project_id and payload.type == "project_invite":
            project = first_row(
                self.supabase.table("projects")
                .select("name")
                .eq("id", payload.project_id)
                .maybe_single()
                .execute()
            )
            if project:
                data["project_name"] = project.get("name")
        # Reminders come from the system, not a user
        if payload.actor_id and payload.type != "due_reminder":
            actor = first_row(
                self.supabase.table("profiles")
                .select("full_name")
                .eq("id", payload.actor_id)
                .maybe_single()
                .execute()
            )
            if actor:
                data["actor_name"] = actor.get("full_name")
        return data

    def _debug(self, payload: NotificationPayload, event_type: str, message: str,
               error_details: Optional[Dict] = None) -> None:
        try:
            self.supabase.table("email_debug_log").insert({
                "user_id": payload.user_id,
                "notification_id": payload.id,
                "event_type": event_type,
                "message": message,
                "error_details": json.dumps(error_details) if error_details else None,
            }).execute()
        except Exception as e:
            logger.warning(f"Could not log email event {event_type}: {e}")


def send_welcome_email(email: str, name: str, provider: Optional[EmailProvider] = None) -> EmailResult:
    subject, html = get_email_template("welcome", {"recipient_name": name})
    return (provider or get_email_provider()).send(email, subject, html)


def send_task_reminder_email(
    email: str,
    name: str,
    task: Dict[str, Any],
    reminder_type: str,
    provider: Optional[EmailProvider] = None
) -> EmailResult:
    subject, html = get_email_template("task_reminder", {
        "recipient_name": name,
        "task_title": task.get("title"),
        "task_description": task.get("description"),
        "task_id": task.get("id"),
        "project_id": task.get("project_id"),
        "reminder_type": reminder_type,
    })
    return (provider or get_email_provider()).send(email, subject, html)


# Reminder notifications are emailed by the reminder checker with their own template
DIRECT_EMAIL_TYPES = ("task_reminder",)


def register_email_dispatch(feed: ChangeFeed, service_factory: Optional[Callable[[], EmailService]] = None):
    """Email every new notification row. Returns the unsubscribe function."""
    factory = service_factory or (lambda: EmailService(get_service_supabase()))

    async def on_notification(event: ChangeEvent) -> None:
        payload = NotificationPayload(**{k: event.new.get(k) for k in NotificationPayload.model_fields})
        if not payload.user_id or not payload.type or payload.type in DIRECT_EMAIL_TYPES:
            return
        try:
            result = await asyncio.to_thread(factory().process_notification, payload)
        except HTTPException as e:
            logger.warning(f"Notification email skipped: {e.detail}")
            return
        if not result.success:
            logger.info(f"Notification email not sent for {payload.id}: {result.error}")

    logger.info("Notification email dispatch registered")
    return feed.subscribe("notifications", on_notification)
