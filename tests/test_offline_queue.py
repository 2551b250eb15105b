"""Tests for the client-side offline action queue."""

import json

import pytest

from app.client.offline_cache import OfflineCache
from app.client.offline_queue import OfflineQueue


@pytest.fixture
def queue(tmp_path):
    return OfflineQueue(path=str(tmp_path / "queue.json"), max_retries=3)


class TestQueue:
    def test_queue_action_records_pending_action(self, queue):
        action_id = queue.queue_action("create_task", {"title": "Write docs"})
        [action] = queue.pending_actions
        assert action.id == action_id
        assert action.type == "create_task"
        assert action.payload == {"title": "Write docs"}
        assert action.retries == 0
        assert queue.count == 1
        assert queue.has_pending_type("create_task")
        assert not queue.has_pending_type("delete_task")

    def test_remove_and_remove_many(self, queue):
        ids = [queue.queue_action("update_task", {"n": n}) for n in range(3)]
        queue.remove(ids[0])
        queue.remove_many(ids[1:])
        assert queue.count == 0

    def test_persists_actions_and_last_sync_only(self, tmp_path, queue):
        queue.queue_action("delete_task", {"task_id": "t1"})
        queue.set_online(False)
        queue.error = "boom"

        state = json.loads((tmp_path / "queue.json").read_text())
        assert set(state) == {"pending_actions", "last_sync"}

        reloaded = OfflineQueue(path=str(tmp_path / "queue.json"))
        assert [a.type for a in reloaded.pending_actions] == ["delete_task"]
        assert reloaded.is_online is True
        assert reloaded.error is None

    def test_clear(self, queue):
        queue.queue_action("create_task", {})
        queue.clear()
        assert queue.pending_actions == []


class TestSync:
    def test_empty_queue_is_a_no_op(self, queue):
        result = queue.sync_pending_actions(lambda action: None)
        assert result.succeeded == [] and result.failed == []
        assert queue.last_sync is None

    def test_successful_actions_are_removed(self, queue):
        handled = []
        ids = [queue.queue_action("create_task", {"n": n}) for n in range(2)]
        result = queue.sync_pending_actions(lambda action: handled.append(action.payload["n"]))
        assert result.succeeded == ids
        assert handled == [0, 1]
        assert queue.count == 0
        assert queue.last_sync is not None
        assert queue.sync_in_progress is False

    def test_failed_action_is_retried_then_dropped(self, queue):
        action_id = queue.queue_action("update_task", {})

        def fail(action):
            raise ConnectionError("offline")

        for attempt in range(1, 4):
            result = queue.sync_pending_actions(fail)
            assert result.failed[0].action_id == action_id
            assert result.failed[0].error == "offline"
            assert queue.pending_actions[0].retries == attempt

        result = queue.sync_pending_actions(fail)
        assert result.failed[0].error == "Max retries exceeded"
        assert queue.count == 0

    def test_error_reports_failed_run_and_clears_on_success(self, queue):
        queue.queue_action("update_task", {})

        def fail(action):
            raise ConnectionError("offline")

        queue.sync_pending_actions(fail)
        assert queue.error == "1 action(s) failed to sync"

        queue.sync_pending_actions(lambda action: None)
        assert queue.error is None
        assert queue.count == 0

    def test_broken_run_records_error(self, queue, monkeypatch):
        queue.queue_action("create_task", {})

        def broken_remove(action_id):
            raise RuntimeError("disk full")

        monkeypatch.setattr(queue, "remove", broken_remove)
        with pytest.raises(RuntimeError):
            queue.sync_pending_actions(lambda action: None)
        assert queue.error == "disk full"
        assert queue.sync_in_progress is False

    def test_failure_does_not_stop_later_actions(self, queue):
        bad = queue.queue_action("bad", {})
        good = queue.queue_action("good", {})

        def handler(action):
            if action.type == "bad":
                raise RuntimeError("nope")

        result = queue.sync_pending_actions(handler)
        assert result.succeeded == [good]
        assert [f.action_id for f in result.failed] == [bad]

    def test_sync_in_progress_is_skipped(self, queue):
        queue.queue_action("create_task", {})
        queue.sync_in_progress = True
        result = queue.sync_pending_actions(lambda action: None)
        assert result.succeeded == []
        assert queue.count == 1


class TestOfflineCache:
    def test_set_get_clear(self):
        cache = OfflineCache()
        cache.set("projects", [{"id": "p1"}])
        cached = cache.get("projects")
        assert cached.data == [{"id": "p1"}]
        assert cached.is_cached
        assert "projects" in cache.status()
        cache.clear("projects")
        assert cache.get("projects") is None
