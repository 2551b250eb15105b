"""Tests for email templates, providers and notification email dispatch."""

import json

import httpx
import pytest
from fastapi import HTTPException

from app.core.realtime import ChangeFeed
from app.modules.email.providers import NullProvider, ResendProvider, SendGridProvider
from app.modules.email.schemas import NotificationPayload
from app.modules.email.service import (
    EmailService,
    notification_type_key,
    register_email_dispatch,
    send_welcome_email,
)
from app.modules.email.templates import get_email_template, task_url
from tests.fakes import RecordingProvider


class TestTemplates:
    def test_task_link(self):
        url = task_url({"task_id": "t1", "project_id": "p1"}, app_url="https://app.example.com/")
        assert url == "https://app.example.com/projects/p1/board?task=t1"

    def test_no_task_links_to_app(self):
        assert task_url({}, app_url="https://app.example.com") == "https://app.example.com"

    def test_task_assigned(self):
        subject, html = get_email_template("task_assigned", {
            "task_title": "Fix login", "actor_name": "Ann", "recipient_name": "Bo",
            "task_id": "t1", "project_id": "p1",
        })
        assert subject == "Task Assigned: Fix login"
        assert "Hi Bo" in html
        assert "/projects/p1/board?task=t1" in html

    def test_values_are_escaped(self):
        _, html = get_email_template("task_comment", {
            "task_title": "<script>alert(1)</script>", "message": "a & b",
        })
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html

    def test_default_subject(self):
        assert get_email_template("something_else", {})[0] == "Notification from TaskFlow"
        assert get_email_template("something_else", {"title": "Hello"})[0] == "Hello"

    @pytest.mark.parametrize("kind", ["task_updated", "due_reminder", "task_reminder", "mention",
                                      "project_invite", "welcome"])
    def test_all_types_render(self, kind):
        subject, html = get_email_template(kind, {"task_title": "T"})
        assert subject
        assert html.startswith("<div")


def _transport(status, body, seen):
    def handler(request):
        seen.append(request)
        return httpx.Response(status, json=body)
    return httpx.MockTransport(handler)


class TestProviders:
    def test_resend_payload(self):
        seen = []
        client = httpx.Client(transport=_transport(200, {"id": "re_1"}, seen))
        provider = ResendProvider("key", from_email="noreply@example.com", from_name="TaskFlow", client=client)
        result = provider.send("bo@example.com", "Hi", "<p>x</p>")
        assert result.success and result.message_id == "re_1"
        request = seen[0]
        assert str(request.url) == "https://api.resend.com/emails"
        assert request.headers["Authorization"] == "Bearer key"
        assert json.loads(request.content) == {
            "from": "TaskFlow <noreply@example.com>", "to": "bo@example.com", "subject": "Hi", "html": "<p>x</p>",
        }

    def test_resend_error_becomes_result(self):
        client = httpx.Client(transport=_transport(422, {"message": "invalid from"}, []))
        result = ResendProvider("key", client=client).send("bo@example.com", "Hi", "x")
        assert not result.success
        assert result.error == "Resend: invalid from"

    def test_sendgrid_payload(self):
        seen = []
        client = httpx.Client(transport=_transport(202, {}, seen))
        result = SendGridProvider("key", from_email="n@example.com", from_name="TF", client=client).send(
            "bo@example.com", "Hi", "<p>x</p>")
        assert result.success
        body = json.loads(seen[0].content)
        assert body["personalizations"] == [{"to": [{"email": "bo@example.com"}], "subject": "Hi"}]
        assert body["from"] == {"email": "n@example.com", "name": "TF"}
        assert body["content"] == [{"type": "text/html", "value": "<p>x</p>"}]

    def test_network_error_becomes_result(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        result = SendGridProvider("key", client=client).send("bo@example.com", "Hi", "x")
        assert not result.success

    def test_unconfigured(self):
        assert ResendProvider(None).send("a@example.com", "s", "h").error == "Resend not configured"
        assert not NullProvider().send("a@example.com", "s", "h").success


@pytest.fixture
def recipient(make_user):
    profile, _ = make_user(full_name="Bo", email="bo@example.com")
    return profile


class TestProcessNotification:
    def test_type_key(self):
        assert notification_type_key("Task Assigned") == "task_assigned"

    def test_missing_fields(self, supabase):
        with pytest.raises(HTTPException) as exc:
            EmailService(supabase, RecordingProvider()).process_notification(NotificationPayload(type="mention"))
        assert exc.value.status_code == 400

    def test_unknown_user_logs_debug_event(self, supabase):
        result = EmailService(supabase, RecordingProvider()).process_notification(
            NotificationPayload(id="n1", user_id="ghost", type="mention"))
        assert not result.success
        assert supabase.rows("email_debug_log")[0]["event_type"] == "error_no_user"

    def test_globally_disabled(self, supabase, recipient):
        recipient_row = supabase.rows("profiles")[0]
        recipient_row["email_notifications_enabled"] = False
        result = EmailService(supabase, RecordingProvider()).process_notification(
            NotificationPayload(user_id=recipient["id"], type="mention"))
        assert result.error == "Email notifications disabled"

    def test_type_disabled(self, supabase, recipient):
        supabase.rows("profiles")[0]["email_notification_types"] = {"task_comment": False}
        provider = RecordingProvider()
        result = EmailService(supabase, provider).process_notification(
            NotificationPayload(user_id=recipient["id"], type="Task Comment"))
        assert result.error == "Notification type disabled"
        assert provider.sent == []

    def test_sends_with_task_and_actor(self, supabase, recipient, make_user):
        actor, _ = make_user(full_name="Ann")
        task = supabase.seed("tasks", {"title": "Fix login", "description": "SSO broken", "project_id": "p1"})[0]
        provider = RecordingProvider()
        result = EmailService(supabase, provider).process_notification(NotificationPayload(
            id="n1", user_id=recipient["id"], type="task_assigned", task_id=task["id"],
            project_id="p1", actor_id=actor["id"],
        ))
        assert result.success
        [email] = provider.sent
        assert email["to"] == "bo@example.com"
        assert email["subject"] == "Task Assigned: Fix login"
        assert "Ann" in email["html"] and "SSO broken" in email["html"]
        log = supabase.rows("email_logs")[0]
        assert log["status"] == "sent" and log["notification_ids"] == ["n1"]
        assert supabase.rows("email_debug_log")[0]["event_type"] == "email_sent"

    def test_provider_failure_is_logged(self, supabase, recipient):
        result = EmailService(supabase, RecordingProvider(succeed=False)).process_notification(
            NotificationPayload(user_id=recipient["id"], type="mention"))
        assert not result.success
        assert supabase.rows("email_debug_log")[0]["event_type"] == "email_failed"
        assert supabase.rows("email_logs") == []


class TestDispatch:
    def test_new_notification_is_emailed(self, supabase, recipient):
        feed = ChangeFeed()
        provider = RecordingProvider()
        unsubscribe = register_email_dispatch(feed, lambda: EmailService(supabase, provider))
        feed.publish("notifications", "INSERT", new={
            "id": "n1", "user_id": recipient["id"], "type": "mention", "message": "hi",
        })
        assert len(provider.sent) == 1
        unsubscribe()
        assert feed.subscription_count() == 0

    def test_reminders_are_left_to_the_checker(self, supabase, recipient):
        feed = ChangeFeed()
        provider = RecordingProvider()
        register_email_dispatch(feed, lambda: EmailService(supabase, provider))
        feed.publish("notifications", "INSERT", new={"user_id": recipient["id"], "type": "task_reminder"})
        assert provider.sent == []


def test_welcome_email():
    provider = RecordingProvider()
    assert send_welcome_email("new@example.com", "Newbie", provider=provider).success
    assert provider.sent[0]["subject"].startswith("Welcome to")
    assert "Hi Newbie" in provider.sent[0]["html"]
