import json

import httpx
import pytest

from app.client.api_client import TaskboardClient
from app.client.offline_queue import OfflineQueue


class FakeApi:
    """httpx transport handler recording requests; raises ConnectError while down"""

    def __init__(self):
        self.down = False
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        if request.method == "DELETE":
            return httpx.Response(204)
        if request.url.path.endswith("/tasks/board/p1"):
            return httpx.Response(200, json={"columns": {"not_started": [{"id": "t1"}]}})
        if request.url.path.endswith("/fail"):
            return httpx.Response(500, json={"detail": "boom"})
        return httpx.Response(200, json={"ok": True, "path": request.url.path})


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def client(api):
    taskboard = TaskboardClient("http://api.test/", token="abc", queue=OfflineQueue(max_retries=2),
                                transport=httpx.MockTransport(api))
    yield taskboard
    taskboard.close()


class TestOnline:
    def test_writes_go_straight_to_the_api(self, client, api):
        result = client.move_task("t1", "review")

        assert result == {"ok": True, "path": "/api/v1/tasks/t1/move"}
        assert api.requests == [("POST", "/api/v1/tasks/t1/move", {"over_id": "review"})]
        assert client.queue.count == 0

    def test_delete_returns_none_on_204(self, client, api):
        assert client.delete_task("t1") is None
        assert api.requests[0][:2] == ("DELETE", "/api/v1/tasks/t1")

    def test_reads_populate_the_cache(self, client):
        board = client.get_board("p1")
        assert board["columns"]["not_started"] == [{"id": "t1"}]
        assert client.cache.get("board:p1").data == board


class TestOffline:
    def test_connection_error_queues_the_write_and_goes_offline(self, client, api):
        api.down = True

        result = client.add_comment("t1", "hello")

        assert result["queued"] is True
        assert client.is_online is False
        assert client.queue.pending_actions[0].type == "add_comment"

    def test_reads_fall_back_to_cache(self, client, api):
        client.get_board("p1")
        api.down = True

        assert client.get_board("p1")["columns"]["not_started"] == [{"id": "t1"}]
        assert client.is_online is False
        assert client.get_task("never-fetched") is None

    def test_reconnecting_replays_in_order(self, client, api):
        client.set_online(False)
        client.create_task({"project_id": "p1", "title": "A"})
        client.toggle_subtask("s1", True)
        client.mark_notification_read("n1")
        assert api.requests == []

        result = client.set_online(True)

        assert len(result.succeeded) == 3
        assert result.failed == []
        assert [r[:2] for r in api.requests] == [
            ("POST", "/api/v1/tasks"),
            ("PATCH", "/api/v1/tasks/subtasks/s1"),
            ("POST", "/api/v1/notifications/n1/read"),
        ]
        assert client.queue.count == 0

    def test_failed_replays_are_retried_then_dropped(self, client, api):
        client.set_online(False)
        client.update_task("fail", {"title": "x"})

        first = client.set_online(True)
        assert first.failed[0].error.startswith("Server error")
        assert client.queue.pending_actions[0].retries == 1

        client.sync()
        final = client.sync()
        assert final.failed[0].error == "Max retries exceeded"
        assert client.queue.count == 0
