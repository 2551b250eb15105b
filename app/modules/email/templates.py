"""
HTML email bodies for notification types.

get_email_template(type, data) returns (subject, html). Every value taken from
data is HTML-escaped before interpolation.
"""
from html import escape
from typing import Any, Dict, Optional, Tuple
from app.config import settings

REMINDER_TEXT = {
    "at_time": "Your task is due now",
    "15_min": "Your task is due in 15 minutes",
    "1_hour": "Your task is due in 1 hour",
    "1_day": "Your task is due tomorrow",
    "2_days": "Your task is due in 2 days",
    "custom": "Reminder for your upcoming task",
}

_BASE = "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; color: #333;"
_HEADER = "background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px 20px; color: white; border-radius: 8px 8px 0 0; text-align: center;"
_BODY = "background: #f9fafb; padding: 30px 20px; border-radius: 0 0 8px 8px;"
_CARD = "background: white; padding: 20px; border-left: 4px solid #667eea; margin: 20px 0; border-radius: 4px;"
_BUTTON = "background: #667eea; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block; margin: 20px 0;"


def _value(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return escape(str(value)) if value not in (None, "") else escape(default)


def task_url(data: Dict[str, Any], app_url: Optional[str] = None) -> str:
    """Board link that opens the task; the app root when there is no task"""
    base = (app_url or settings.app_url).rstrip("/")
    if data.get("task_id"):
        return f"{base}/projects/{data.get('project_id')}/board?task={data['task_id']}"
    return base


def _layout(heading: str, greeting_name: str, inner: str, link: str, link_text: str, footer: bool = True) -> str:
    footer_html = ""
    if footer:
        footer_html = (
            '<hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">'
            '<p style="font-size: 12px; color: #999; margin: 0;">'
            "You received this email because you have email notifications enabled. "
            f'<a href="{escape(settings.app_url)}/settings" style="color: #667eea;">Manage notification preferences</a>'
            "</p>"
        )
    return (
        f'<div style="{_BASE}">'
        f'<div style="{_HEADER}"><h2 style="margin: 0; font-size: 24px;">{heading}</h2></div>'
        f'<div style="{_BODY}">'
        f"<p>Hi {greeting_name},</p>"
        f"{inner}"
        f'<div><a href="{escape(link)}" style="{_BUTTON}">{link_text}</a></div>'
        f"{footer_html}"
        "</div></div>"
    )


def _card(title: str, body: str) -> str:
    return (
        f'<div style="{_CARD}">'
        f'<h3 style="margin: 0 0 10px 0; color: #667eea;">{title}</h3>'
        f'<p style="margin: 0; color: #666;">{body}</p>'
        "</div>"
    )


def get_email_template(notification_type: str, data: Dict[str, Any]) -> Tuple[str, str]:
    name = _value(data, "recipient_name", "there")
    title = _value(data, "task_title", "Untitled Task")
    raw_title = data.get("task_title")
    actor = _value(data, "actor_name", "Someone")
    link = task_url(data)

    if notification_type == "task_assigned":
        subject = f"Task Assigned: {raw_title or 'New Task'}"
        inner = (f"<p><strong>{actor}</strong> assigned you to a new task:</p>"
                 + _card(title, _value(data, "task_description", "No description provided")))
        return subject, _layout("Task Assigned to You", name, inner, link, "View Task")

    if notification_type == "task_updated":
        subject = f"Task Updated: {raw_title or 'Task'}"
        inner = ("<p>A task you're involved with has been updated:</p>"
                 + _card(title, f"<strong>Update:</strong> {_value(data, 'message', 'Task details were changed')}"))
        return subject, _layout("Task Updated", name, inner, link, "View Task")

    if notification_type == "task_comment":
        subject = f"New Comment on: {raw_title or 'Task'}"
        inner = (f"<p><strong>{actor}</strong> commented on:</p>"
                 + _card(title, f"<em>&quot;{_value(data, 'message', 'Comment')}&quot;</em>"))
        return subject, _layout("New Comment", name, inner, link, "Reply to Comment")

    if notification_type in ("due_reminder", "task_reminder"):
        reminder = REMINDER_TEXT.get(data.get("reminder_type") or "") or data.get("message") or "Reminder for your task"
        subject = f"Task Reminder: {raw_title or 'Task'}"
        inner = (f'<p style="background: #dbeafe; color: #1e40af; padding: 12px; border-radius: 6px; text-align: center;">'
                 f"{escape(reminder)}</p>"
                 + _card(title, _value(data, "task_description", "")))
        return subject, _layout("Task Reminder", name, inner, link, "View Task")

    if notification_type == "mention":
        subject = f"You were mentioned in: {raw_title or 'a task'}"
        inner = (f"<p><strong>{actor}</strong> mentioned you in a comment on:</p>"
                 + _card(title, _value(data, "message", "")))
        return subject, _layout("You Were Mentioned", name, inner, link, "View Comment")

    if notification_type == "project_invite":
        project = _value(data, "project_name", "a project")
        subject = f"Added to project: {data.get('project_name') or 'New project'}"
        inner = f"<p><strong>{actor}</strong> added you to <strong>{project}</strong>.</p>"
        return subject, _layout("Added to a Project", name, inner, link, "Open Project")

    if notification_type == "welcome":
        subject = f"Welcome to {settings.from_name}!"
        inner = (f"<p>Your {escape(settings.from_name)} account is ready. "
                 "Create a project, invite your team and start tracking tasks.</p>")
        return subject, _layout(f"Welcome to {escape(settings.from_name)}", name, inner,
                                settings.app_url, "Get Started", footer=False)

    subject = data.get("title") or "Notification from TaskFlow"
    inner = f"<p>{_value(data, 'message', 'You have a new notification')}</p>"
    return subject, _layout("Notification", name, inner, settings.app_url, "View in App", footer=False)
