import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from app.core.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class CachedValue:
    data: Any
    timestamp: str
    is_cached: bool = True


class OfflineCache:
    """Last successful response per key, served while the API is unreachable"""

    def __init__(self):
        self._entries: Dict[str, CachedValue] = {}

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CachedValue(data=data, timestamp=utc_now().isoformat())

    def get(self, key: str) -> Optional[CachedValue]:
        return self._entries.get(key)

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_all(self) -> None:
        self._entries.clear()

    def status(self) -> Dict[str, Dict[str, Any]]:
        return {
            key: {"cached": True, "timestamp": value.timestamp}
            for key, value in self._entries.items()
        }
