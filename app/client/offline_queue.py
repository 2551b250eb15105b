"""
Queue of mutations made while the API is unreachable.

Actions are replayed in insertion order when the client reconnects. A failing
action is retried on later syncs until it has failed max_retries times, then
dropped.
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional
from app.config import settings
from app.core.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class PendingAction:
    id: str
    type: str
    payload: Dict[str, Any]
    timestamp: str
    retries: int = 0


@dataclass
class SyncFailure:
    action_id: str
    error: str


@dataclass
class SyncResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[SyncFailure] = field(default_factory=list)


class OfflineQueue:
    def __init__(self, path: Optional[str] = None, max_retries: Optional[int] = None):
        self.path = path
        self.max_retries = max_retries if max_retries is not None else settings.offline_max_retries
        self.is_online = True
        self.sync_in_progress = False
        self.error: Optional[str] = None
        self.last_sync: Optional[str] = None
        self._actions: List[PendingAction] = []
        self._load()

    @property
    def pending_actions(self) -> List[PendingAction]:
        return list(self._actions)

    @property
    def count(self) -> int:
        return len(self._actions)

    def set_online(self, online: bool) -> None:
        self.is_online = online
        logger.info("Client is online" if online else "Client is offline - actions will be queued")

    def queue_action(self, action_type: str, payload: Dict[str, Any]) -> str:
        action = PendingAction(
            id=f"{int(utc_now().timestamp() * 1000)}-{uuid.uuid4().hex[:9]}",
            type=action_type,
            payload=payload,
            timestamp=utc_now().isoformat(),
        )
        self._actions.append(action)
        self._save()
        logger.info(f"Queued offline action {action.type} ({action.id})")
        return action.id

    def remove(self, action_id: str) -> None:
        self._actions = [a for a in self._actions if a.id != action_id]
        self._save()

    def remove_many(self, action_ids: List[str]) -> None:
        ids = set(action_ids)
        self._actions = [a for a in self._actions if a.id not in ids]
        self._save()

    def increment_retry(self, action_id: str) -> None:
        for action in self._actions:
            if action.id == action_id:
                action.retries += 1
        self._save()

    def has_pending_type(self, action_type: str) -> bool:
        return any(a.type == action_type for a in self._actions)

    def clear(self) -> None:
        self._actions = []
        self.error = None
        self._save()

    def sync_pending_actions(self, handler: Callable[[PendingAction], Any]) -> SyncResult:
        """
        Replay every pending action through handler.

        Skipped (empty result) when the queue is empty or a sync is already
        running. A handler exception counts as a failure for that action; error
        summarizes the failures of the last run, or holds the reason the run itself broke.
        """
        result = SyncResult()
        if not self._actions:
            return result
        if self.sync_in_progress:
            logger.info("Sync already in progress, skipping")
            return result

        self.sync_in_progress = True
        self.error = None
        try:
            for action in self.pending_actions:
                try:
                    handler(action)
                except Exception as e:
                    logger.error(f"Failed to sync action {action.id}: {e}")
                    if action.retries < self.max_retries:
                        self.increment_retry(action.id)
                        result.failed.append(SyncFailure(action.id, str(e)))
                    else:
                        logger.warning(f"Max retries reached for action {action.id}, removing from queue")
                        self.remove(action.id)
                        result.failed.append(SyncFailure(action.id, "Max retries exceeded"))
                    continue
                self.remove(action.id)
                result.succeeded.append(action.id)
                logger.info(f"Synced action {action.id}")
            if result.failed:
                self.error = f"{len(result.failed)} action(s) failed to sync"
            self.last_sync = utc_now().isoformat()
            self._save()
        except Exception as e:
            self.error = str(e)
            raise
        finally:
            self.sync_in_progress = False
        return result

    def _load(self) -> None:
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path) as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read offline queue {self.path}: {e}")
            return
        self._actions = [PendingAction(**a) for a in state.get("pending_actions", [])]
        self.last_sync = state.get("last_sync")

    def _save(self) -> None:
        # Only the queue and last sync survive a restart
        if not self.path:
            return
        try:
            with open(self.path, "w") as f:
                json.dump({
                    "pending_actions": [asdict(a) for a in self._actions],
                    "last_sync": self.last_sync,
                }, f)
        except OSError as e:
            logger.error(f"Could not write offline queue {self.path}: {e}")
