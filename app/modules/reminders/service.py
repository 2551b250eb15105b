import asyncio
import logging
from datetime import datetime
from supabase import Client
from app.config import settings
from app.core.utils import parse_timestamp, utc_now
from app.database.supabase_client import get_service_supabase
from app.modules.email.service import send_task_reminder_email
from app.modules.notifications.schemas import NotificationCreate
from app.modules.notifications.service import NotificationService
from typing import Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

_PRESET_LABELS = {
    0: "now",
    -0.25: "in 15 minutes",
    -1: "in 1 hour",
    -24: "tomorrow",
    -48: "in 2 days",
}


def _hours_text(value: float) -> str:
    return f"{value:g}"


def get_reminder_label(hours: float) -> str:
    """Human wording for a reminder offset (negative hours are before the due date)"""
    if hours in _PRESET_LABELS:
        return _PRESET_LABELS[hours]

    if hours < 0:
        span = abs(hours)
        if span < 1:
            return f"in {round(span * 60)} minutes"
        if span == int(span):
            return f"in {int(span)} hour{'' if span == 1 else 's'}"
        return f"in {_hours_text(span)} hours"

    if hours < 1:
        return f"{round(hours * 60)} minutes after"
    if hours == int(hours):
        return f"{int(hours)} hour{'' if hours == 1 else 's'} after"
    return f"{_hours_text(hours)} hours after"


def reminder_key(task_id: str, reminder_type: str, due: datetime) -> str:
    """One reminder of a type per task and due day"""
    return f"{task_id}_{reminder_type}_{due.date().isoformat()}"


def is_reminder_due(due: datetime, reminder_hours: float, now: datetime, tolerance: float) -> bool:
    """True when now is within tolerance hours of due + reminder_hours"""
    offset_hours = (now - due).total_seconds() / 3600
    return abs(offset_hours - reminder_hours) <= tolerance


class ReminderChecker:
    """
    Periodic job that turns task reminders into notifications.

    Sent reminders are remembered in memory only, so a restart inside a
    reminder's tolerance window can send it again.
    """

    def __init__(
        self,
        supabase_factory: Callable[[], Client] = get_service_supabase,
        interval_seconds: Optional[float] = None,
        tolerance_hours: Optional[float] = None,
        send_email: Callable = send_task_reminder_email,
    ):
        self.supabase_factory = supabase_factory
        self.interval_seconds = interval_seconds or settings.reminder_interval_seconds
        self.tolerance_hours = tolerance_hours if tolerance_hours is not None else settings.reminder_tolerance_hours
        self.send_email = send_email
        self.sent: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def check(self, now: Optional[datetime] = None) -> List[dict]:
        """Run one pass. Returns the notification rows created."""
        now = now or utc_now()
        supabase = self.supabase_factory()
        tasks = supabase.table("tasks")\
            .select("id, title, description, project_id, due_date, assignee_id, reminders")\
            .not_.is_("due_date", "null")\
            .not_.is_("reminders", "null")\
            .execute().data or []
        tasks = [t for t in tasks if t.get("reminders")]
        if not tasks:
            logger.debug("No tasks with reminders")
            return []

        assignees = self._assignees(supabase, [t["id"] for t in tasks])
        pending: List[NotificationCreate] = []
        emails = []

        for task in tasks:
            due = parse_timestamp(task.get("due_date"))
            if not due:
                continue
            for reminder in task["reminders"]:
                reminder_type = reminder.get("type") or "custom"
                hours = reminder.get("hours")
                if hours is None:
                    continue
                key = reminder_key(task["id"], reminder_type, due)
                if key in self.sent or not is_reminder_due(due, float(hours), now, self.tolerance_hours):
                    continue

                recipients = list(dict.fromkeys(
                    ([task["assignee_id"]] if task.get("assignee_id") else []) + assignees.get(task["id"], [])
                ))
                label = get_reminder_label(float(hours))
                for user_id in recipients:
                    pending.append(NotificationCreate(
                        user_id=user_id,
                        type="task_reminder",
                        title="Task Reminder",
                        message=f"\"{task['title']}\" is due {label}",
                        task_id=task["id"],
                        project_id=task.get("project_id"),
                    ))
                    emails.append((user_id, task, reminder_type))
                self.sent.add(key)

        if not pending:
            return []
        logger.info(f"Creating {len(pending)} reminder notification(s)")
        created = NotificationService(supabase).notify_many(pending)
        self._send_emails(supabase, emails)
        return created

    def _assignees(self, supabase: Client, task_ids: List[str]) -> Dict[str, List[str]]:
        rows = supabase.table("task_assignees")\
            .select("task_id, user_id")\
            .in_("task_id", task_ids)\
            .execute().data or []
        result: Dict[str, List[str]] = {}
        for row in rows:
            result.setdefault(row["task_id"], []).append(row["user_id"])
        return result

    def _send_emails(self, supabase: Client, emails) -> None:
        if not emails:
            return
        user_ids = sorted({user_id for user_id, _, _ in emails})
        try:
            rows = supabase.table("profiles")\
                .select("id, email, full_name, email_notifications_enabled")\
                .in_("id", user_ids)\
                .execute().data or []
        except Exception as e:
            logger.error(f"Could not load reminder recipients: {e}")
            return
        profiles = {p["id"]: p for p in rows}
        for user_id, task, reminder_type in emails:
            profile = profiles.get(user_id)
            if not profile or not profile.get("email") or profile.get("email_notifications_enabled") is False:
                continue
            try:
                self.send_email(profile["email"], profile.get("full_name") or "User", task, reminder_type)
            except Exception as e:
                logger.error(f"Failed to send reminder email to {profile['email']}: {e}")

    async def _loop(self) -> None:
        while True:
            try:
                await asyncio.to_thread(self.check)
            except Exception as e:
                logger.error(f"Error in reminder checker loop: {str(e)}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start the periodic loop on the running event loop; the first check runs immediately"""
        if self.running:
            logger.warning("Reminder checker already running")
            return
        logger.info(f"Starting reminder checker (interval: {self.interval_seconds}s)")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reminder checker stopped")

    def clear_cache(self) -> None:
        self.sent.clear()
        logger.info("Sent reminders cache cleared")


reminder_checker = ReminderChecker()
