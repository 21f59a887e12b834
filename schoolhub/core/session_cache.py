from threading import Lock
from uuid import uuid4
import time
from typing import Optional

from schoolhub.core.config import settings

# In-memory TTL cache mapping bearer tokens to user ids. Lost on restart.

_lock = Lock()
_sessions = {}  # token -> (user_id, expires_at)


def create_session(user_id: str, ttl: Optional[int] = None) -> str:
    """Create a session token for the given user_id and return the token."""
    token = uuid4().hex
    expires_at = time.time() + (ttl if ttl is not None else settings.SESSION_TTL)
    with _lock:
        _purge_expired(time.time())
        _sessions[token] = (user_id, expires_at)
    return token


def get_user_id_for_token(token: str) -> Optional[str]:
    """Return user_id if token is valid and not expired, else None."""
    now = time.time()
    with _lock:
        data = _sessions.get(token)
        if not data:
            return None
        user_id, expires_at = data
        if expires_at < now:
            del _sessions[token]
            return None
        return user_id


def invalidate_session(token: str) -> bool:
    with _lock:
        return _sessions.pop(token, None) is not None


def _purge_expired(now: float) -> None:
    expired = [t for t, (_, e) in _sessions.items() if e < now]
    for t in expired:
        del _sessions[t]
