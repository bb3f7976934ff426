"""
Admin sessions.

An admin session is opened by presenting the configured admin code and is
closed explicitly (or expires). Every admin route receives the AdminSession it
runs under instead of reading ambient state.
"""

from __future__ import annotations

import hmac
import json
import secrets
import time
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Protocol

import redis


@dataclass
class AdminSession:
    token: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at


class AdminSessionStore(Protocol):
    def open(self, ttl_seconds: int) -> AdminSession:
        ...

    def get(self, token: str) -> Optional[AdminSession]:
        ...

    def close(self, token: str) -> None:
        ...


def check_admin_code(expected: str | None, presented: str) -> bool:
    if not expected or not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def _new_session(ttl_seconds: int) -> AdminSession:
    now = time.time()
    return AdminSession(
        token=secrets.token_urlsafe(32), created_at=now, expires_at=now + ttl_seconds
    )


class InMemoryAdminSessionStore:
    def __init__(self):
        self.sessions: Dict[str, AdminSession] = {}

    def open(self, ttl_seconds: int) -> AdminSession:
        session = _new_session(ttl_seconds)
        self.sessions[session.token] = session
        return session

    def get(self, token: str) -> Optional[AdminSession]:
        session = self.sessions.get(token)
        if session and session.is_expired():
            del self.sessions[token]
            return None
        return session

    def close(self, token: str) -> None:
        self.sessions.pop(token, None)


class RedisAdminSessionStore:
    """Sessions stored as expiring Redis keys so every worker sees them."""

    def __init__(self, url: str, key_prefix: str = "portal:admin-sessions"):
        self.client = redis.Redis.from_url(url)
        self.key_prefix = key_prefix

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}:{token}"

    def open(self, ttl_seconds: int) -> AdminSession:
        session = _new_session(ttl_seconds)
        self.client.setex(self._key(session.token), ttl_seconds, json.dumps(asdict(session)))
        return session

    def get(self, token: str) -> Optional[AdminSession]:
        raw = self.client.get(self._key(token))
        if raw is None:
            return None
        session = AdminSession(**json.loads(raw))
        return None if session.is_expired() else session

    def close(self, token: str) -> None:
        self.client.delete(self._key(token))
