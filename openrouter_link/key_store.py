"""
In-memory store for OpenRouter keys linked through the PKCE flow, one per user.
Lost on restart; the user re-links.
"""
import threading
import time
from dataclasses import dataclass


@dataclass
class LinkedKey:
    api_key: str
    linked_at: float


_keys: dict[str, LinkedKey] = {}
_lock = threading.Lock()


def upsert_key(user_id: str, api_key: str) -> str:
    """Store the key for user_id. Returns "created" or "updated"."""
    with _lock:
        action = "updated" if user_id in _keys else "created"
        _keys[user_id] = LinkedKey(api_key=api_key, linked_at=time.time())
    return action


def get_key(user_id: str) -> LinkedKey | None:
    with _lock:
        return _keys.get(user_id)


def clear_keys() -> None:
    with _lock:
        _keys.clear()
