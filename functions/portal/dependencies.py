"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from portal.admin import (
    AdminSession,
    AdminSessionStore,
    InMemoryAdminSessionStore,
    RedisAdminSessionStore,
)
from portal.config import get_settings
from portal.db import DbClient, InMemoryDbClient, SqlDbClient
from portal.realtime import ChangeFeed, InMemoryChangeFeed, RedisChangeFeed
from portal.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_change_feed: ChangeFeed | None = None
_admin_sessions: AdminSessionStore | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so recipient state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    return _storage_client


def get_change_feed() -> ChangeFeed:
    """
    Return a singleton feed used to notify editors of saved changes.
    """
    global _change_feed
    if _change_feed:
        return _change_feed

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _change_feed = RedisChangeFeed(
            url=settings.redis_url,
            channel_prefix=settings.realtime_channel_prefix,
        )
    else:
        _change_feed = InMemoryChangeFeed()
    return _change_feed


def get_admin_sessions() -> AdminSessionStore:
    global _admin_sessions
    if _admin_sessions:
        return _admin_sessions

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _admin_sessions = RedisAdminSessionStore(settings.redis_url)
    else:
        _admin_sessions = InMemoryAdminSessionStore()
    return _admin_sessions


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_admin(
    authorization: str | None = Header(default=None),
    sessions: AdminSessionStore = Depends(get_admin_sessions),
) -> AdminSession:
    token = _bearer_token(authorization)
    session = sessions.get(token) if token else None
    if session is None:
        raise HTTPException(status_code=401, detail="Admin session required")
    return session
