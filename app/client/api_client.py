"""
HTTP client for the Taskboard API with offline support.

Reads fall back to the last cached response when the API cannot be reached.
Writes made while offline (or that fail to connect) are queued and replayed
when set_online(True) is called.
"""
import logging
from typing import Any, Callable, Dict, Optional
import httpx
from app.client.offline_cache import OfflineCache
from app.client.offline_queue import OfflineQueue, PendingAction, SyncResult

logger = logging.getLogger(__name__)


class TaskboardClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        queue: Optional[OfflineQueue] = None,
        cache: Optional[OfflineCache] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.http = httpx.Client(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers=headers,
            transport=transport,
            timeout=timeout,
        )
        self.queue = queue or OfflineQueue()
        self.cache = cache or OfflineCache()
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "create_task": lambda p: self._send("POST", "/tasks", p),
            "update_task": lambda p: self._send("PUT", f"/tasks/{p['task_id']}", p["changes"]),
            "move_task": lambda p: self._send("POST", f"/tasks/{p['task_id']}/move", {"over_id": p["over_id"]}),
            "delete_task": lambda p: self._send("DELETE", f"/tasks/{p['task_id']}"),
            "add_comment": lambda p: self._send("POST", f"/tasks/{p['task_id']}/comments", p["comment"]),
            "toggle_subtask": lambda p: self._send("PATCH", f"/tasks/subtasks/{p['subtask_id']}",
                                                   {"completed": p["completed"]}),
            "mark_notification_read": lambda p: self._send("POST", f"/notifications/{p['notification_id']}/read"),
        }

    def close(self) -> None:
        self.http.close()

    @property
    def is_online(self) -> bool:
        return self.queue.is_online

    def set_online(self, online: bool) -> Optional[SyncResult]:
        """Switch connectivity; going online replays the queued writes"""
        self.queue.set_online(online)
        if online:
            return self.sync()
        return None

    def sync(self) -> SyncResult:
        return self.queue.sync_pending_actions(self._replay)

    # Reads

    def list_projects(self):
        return self._read("projects", "/projects")

    def get_board(self, project_id: str):
        return self._read(f"board:{project_id}", f"/tasks/board/{project_id}")

    def get_task(self, task_id: str):
        return self._read(f"task:{task_id}", f"/tasks/{task_id}")

    def my_tasks(self):
        return self._read("my_tasks", "/tasks/mine")

    def list_notifications(self):
        return self._read("notifications", "/notifications")

    def list_activity(self):
        return self._read("activity", "/activity")

    # Writes

    def create_task(self, task: Dict[str, Any]):
        return self._write("create_task", task)

    def update_task(self, task_id: str, changes: Dict[str, Any]):
        return self._write("update_task", {"task_id": task_id, "changes": changes})

    def move_task(self, task_id: str, over_id: str):
        return self._write("move_task", {"task_id": task_id, "over_id": over_id})

    def delete_task(self, task_id: str):
        return self._write("delete_task", {"task_id": task_id})

    def add_comment(self, task_id: str, content: str, parent_id: Optional[str] = None):
        return self._write("add_comment", {"task_id": task_id, "comment": {"content": content, "parent_id": parent_id}})

    def toggle_subtask(self, subtask_id: str, completed: bool):
        return self._write("toggle_subtask", {"subtask_id": subtask_id, "completed": completed})

    def mark_notification_read(self, notification_id: str):
        return self._write("mark_notification_read", {"notification_id": notification_id})

    # Internals

    def _send(self, method: str, path: str, json: Optional[Dict[str, Any]] = None):
        response = self.http.request(method, path, json=json)
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _read(self, key: str, path: str):
        if not self.is_online:
            return self._cached(key)
        try:
            data = self._send("GET", path)
        except httpx.TransportError as e:
            logger.warning(f"API unreachable, serving {key} from cache: {e}")
            self.queue.set_online(False)
            return self._cached(key)
        self.cache.set(key, data)
        return data

    def _cached(self, key: str):
        cached = self.cache.get(key)
        return cached.data if cached else None

    def _write(self, action_type: str, payload: Dict[str, Any]):
        """Perform a write, or queue it; returns the response body or the queued action id"""
        if not self.is_online:
            return {"queued": True, "action_id": self.queue.queue_action(action_type, payload)}
        try:
            return self._handlers[action_type](payload)
        except httpx.TransportError as e:
            logger.warning(f"API unreachable, queueing {action_type}: {e}")
            self.queue.set_online(False)
            return {"queued": True, "action_id": self.queue.queue_action(action_type, payload)}

    def _replay(self, action: PendingAction):
        handler = self._handlers.get(action.type)
        if handler is None:
            raise ValueError(f"Unknown action type: {action.type}")
        return handler(action.payload)
