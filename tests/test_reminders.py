"""Tests for reminder labels and the periodic reminder checker."""

from datetime import datetime, timedelta, timezone

import pytest

from app.modules.reminders.service import (
    ReminderChecker,
    get_reminder_label,
    is_reminder_due,
    reminder_key,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestReminderLabel:
    @pytest.mark.parametrize("hours, label", [
        (0, "now"),
        (-0.25, "in 15 minutes"),
        (-1, "in 1 hour"),
        (-24, "tomorrow"),
        (-48, "in 2 days"),
        (-0.5, "in 30 minutes"),
        (-3, "in 3 hours"),
        (-1.5, "in 1.5 hours"),
        (0.5, "30 minutes after"),
        (1, "1 hour after"),
        (2, "2 hours after"),
        (2.5, "2.5 hours after"),
    ])
    def test_labels(self, hours, label):
        assert get_reminder_label(hours) == label


class TestReminderTiming:
    def test_key_uses_due_day(self):
        due = datetime(2026, 3, 11, 9, 30, tzinfo=timezone.utc)
        assert reminder_key("t1", "1_hour", due) == "t1_1_hour_2026-03-11"

    def test_within_tolerance(self):
        due = NOW + timedelta(hours=1, minutes=20)
        assert is_reminder_due(due, -1, NOW, 0.5)

    def test_outside_tolerance(self):
        due = NOW + timedelta(hours=2)
        assert not is_reminder_due(due, -1, NOW, 0.5)

    def test_after_due_offsets(self):
        due = NOW - timedelta(hours=2)
        assert is_reminder_due(due, 2, NOW, 0.5)


@pytest.fixture
def checker(supabase):
    sent = []

    def send_email(email, name, task, reminder_type):
        sent.append((email, task["id"], reminder_type))

    instance = ReminderChecker(
        supabase_factory=lambda: supabase,
        interval_seconds=60,
        tolerance_hours=0.5,
        send_email=send_email,
    )
    instance.emails = sent
    return instance


class TestReminderChecker:
    def _seed(self, supabase, make_user, make_project, make_task):
        owner, _ = make_user(full_name="Owner")
        alice, _ = make_user(full_name="Alice", email="alice@example.com")
        bob, _ = make_user(full_name="Bob", email="bob@example.com")
        project = make_project(owner)
        task = make_task(
            project, title="Ship release",
            due_date=(NOW + timedelta(hours=1)).isoformat(),
            assignee_id=alice["id"],
            reminders=[{"type": "1_hour", "hours": -1}, {"type": "1_day", "hours": -24}],
        )
        supabase.seed("task_assignees",
                      {"task_id": task["id"], "user_id": alice["id"]},
                      {"task_id": task["id"], "user_id": bob["id"]})
        make_task(project, title="No reminders", due_date=NOW.isoformat())
        return task, alice, bob

    def test_notifies_each_assignee_once(self, supabase, checker, make_user, make_project, make_task):
        task, alice, bob = self._seed(supabase, make_user, make_project, make_task)

        created = checker.check(now=NOW)

        assert sorted(n["user_id"] for n in created) == sorted([alice["id"], bob["id"]])
        assert all(n["type"] == "task_reminder" for n in created)
        assert created[0]["title"] == "Task Reminder"
        assert created[0]["message"] == "\"Ship release\" is due in 1 hour"
        assert reminder_key(task["id"], "1_hour", NOW + timedelta(hours=1)) in checker.sent
        assert sorted(e[0] for e in checker.emails) == ["alice@example.com", "bob@example.com"]

    def test_same_reminder_is_not_sent_twice(self, supabase, checker, make_user, make_project, make_task):
        self._seed(supabase, make_user, make_project, make_task)
        checker.check(now=NOW)
        assert checker.check(now=NOW + timedelta(minutes=10)) == []
        assert len(supabase.rows("notifications")) == 2

    def test_clear_cache_allows_resend(self, supabase, checker, make_user, make_project, make_task):
        self._seed(supabase, make_user, make_project, make_task)
        checker.check(now=NOW)
        checker.clear_cache()
        assert len(checker.check(now=NOW)) == 2

    def test_notifications_batched_in_one_insert(self, supabase, checker, make_user, make_project, make_task):
        self._seed(supabase, make_user, make_project, make_task)
        supabase.calls.clear()
        checker.check(now=NOW)
        assert supabase.calls.count(("notifications", "insert")) == 1

    def test_email_opt_out_skips_email_only(self, supabase, checker, make_user, make_project, make_task):
        task, alice, bob = self._seed(supabase, make_user, make_project, make_task)
        for profile in supabase.rows("profiles"):
            if profile["id"] == bob["id"]:
                profile["email_notifications_enabled"] = False
        created = checker.check(now=NOW)
        assert len(created) == 2
        assert [e[0] for e in checker.emails] == ["alice@example.com"]


class TestReminderLoop:
    async def test_start_runs_immediately_and_stop_cancels(self, checker, supabase):
        import asyncio

        checker.start()
        assert checker.running
        checker.start()  # second start only warns
        await asyncio.sleep(0.05)
        await checker.stop()
        assert not checker.running
        assert ("tasks", "select") in supabase.calls
