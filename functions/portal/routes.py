"""
HTTP routes for the portal API.
"""

from __future__ import annotations

import logging
import re
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from portal.access import verify_access
from portal.admin import AdminSession, AdminSessionStore, check_admin_code
from portal.config import Settings, get_settings
from portal.db import DbClient, SlugTakenError
from portal.dependencies import (
    get_admin_sessions,
    get_change_feed,
    get_db_client,
    get_storage_client,
    require_admin,
)
from portal.realtime import ChangeFeed
from portal.recipients import (
    RecipientNotFound,
    change_password,
    create_recipient,
    delete_recipient,
    get_recipient,
    get_site_config,
    media_prefix,
    update_recipient,
    update_site_config,
)
from portal.schemas import (
    AdminSessionRequest,
    AdminSessionResponse,
    CreateRecipientRequest,
    DeleteResponse,
    ListRecipientsResponse,
    PasswordUpdateResponse,
    RecipientConfigResponse,
    RecipientResponse,
    RecipientSummary,
    RecipientUpdate,
    SignUrlResponse,
    UpdatePasswordRequest,
    VerifyPasswordRequest,
    VerifyPasswordResponse,
)
from portal.storage import StorageClient
from shared.errors import BackendUnavailable, InvalidCredentials, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

DATABASE_ERROR = "Database error"
INTERNAL_ERROR = "Internal server error"


def _safe_filename(filename: str) -> str:
    name = re.sub(r"[^A-Za-z0-9._-]+", "-", filename).strip("-.")
    return name[-100:] or "upload"


def _not_found(recipient_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Recipient {recipient_id} not found")


@router.post("/verify-recipient-password", response_model=VerifyPasswordResponse)
def verify_recipient_password(
    payload: VerifyPasswordRequest, db: DbClient = Depends(get_db_client)
):
    """
    Exchange a slug and password for the recipient's config.
    """
    try:
        config = verify_access(db, payload.slug, payload.password)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except InvalidCredentials as e:
        return JSONResponse(
            status_code=401, content={"success": False, "error": e.message}
        )
    except BackendUnavailable:
        return JSONResponse(status_code=500, content={"error": DATABASE_ERROR})
    except Exception:
        logger.exception("Password verification failed")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})
    return VerifyPasswordResponse(
        success=True, recipient=RecipientConfigResponse.from_config(config)
    )


@router.get("/site-config", response_model=RecipientConfigResponse)
def site_config(db: DbClient = Depends(get_db_client)):
    return RecipientConfigResponse.from_config(get_site_config(db))


@router.post("/admin/sessions", response_model=AdminSessionResponse, status_code=201)
def open_admin_session(
    payload: AdminSessionRequest,
    settings: Settings = Depends(get_settings),
    sessions: AdminSessionStore = Depends(get_admin_sessions),
):
    if not check_admin_code(settings.admin_code, payload.code):
        logger.info("Rejected admin code")
        raise HTTPException(status_code=401, detail="Invalid admin code")
    session = sessions.open(settings.admin_session_ttl_seconds)
    return AdminSessionResponse(token=session.token, expires_at=session.expires_at)


@router.delete("/admin/sessions", response_model=DeleteResponse)
def close_admin_session(
    admin: AdminSession = Depends(require_admin),
    sessions: AdminSessionStore = Depends(get_admin_sessions),
):
    sessions.close(admin.token)
    return DeleteResponse(success=True)


@router.get("/admin/recipients", response_model=ListRecipientsResponse)
def list_recipients(
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    rows = db.list_recipients()
    return ListRecipientsResponse(
        recipients=[RecipientSummary.model_validate(row) for row in rows]
    )


@router.post("/admin/recipients", response_model=RecipientResponse, status_code=201)
def create_recipient_route(
    payload: CreateRecipientRequest,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    try:
        config = create_recipient(
            db,
            payload.recipient_name,
            payload.password,
            hash_method=settings.password_hash_method,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except SlugTakenError:
        raise HTTPException(status_code=409, detail="Could not allocate a unique slug")
    return RecipientResponse(recipient=RecipientConfigResponse.from_config(config))


@router.get("/admin/recipients/{recipient_id}", response_model=RecipientConfigResponse)
def get_recipient_route(
    recipient_id: str,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    try:
        return RecipientConfigResponse.from_config(get_recipient(db, recipient_id))
    except RecipientNotFound:
        raise _not_found(recipient_id)


@router.patch("/admin/recipients/{recipient_id}", response_model=RecipientConfigResponse)
def update_recipient_route(
    recipient_id: str,
    payload: RecipientUpdate,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    feed: ChangeFeed = Depends(get_change_feed),
):
    try:
        config = update_recipient(db, feed, recipient_id, payload)
    except RecipientNotFound:
        raise _not_found(recipient_id)
    return RecipientConfigResponse.from_config(config)


@router.delete("/admin/recipients/{recipient_id}", response_model=DeleteResponse)
def delete_recipient_route(
    recipient_id: str,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    feed: ChangeFeed = Depends(get_change_feed),
    storage: StorageClient = Depends(get_storage_client),
):
    try:
        delete_recipient(db, feed, storage, recipient_id)
    except RecipientNotFound:
        raise _not_found(recipient_id)
    return DeleteResponse(success=True)


@router.post(
    "/update-recipient-password",
    response_model=PasswordUpdateResponse,
    response_model_exclude_none=True,
)
def update_recipient_password(
    payload: UpdatePasswordRequest,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    try:
        change_password(
            db,
            payload.recipient_id,
            payload.new_password,
            min_length=settings.min_password_length,
            hash_method=settings.password_hash_method,
        )
    except ValidationError as e:
        return JSONResponse(
            status_code=400, content={"success": False, "error": e.message}
        )
    except RecipientNotFound:
        return JSONResponse(
            status_code=404, content={"success": False, "error": "Recipient not found"}
        )
    return PasswordUpdateResponse(success=True)


@router.patch("/admin/site-config", response_model=RecipientConfigResponse)
def update_site_config_route(
    payload: RecipientUpdate,
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    feed: ChangeFeed = Depends(get_change_feed),
):
    return RecipientConfigResponse.from_config(update_site_config(db, feed, payload))


@router.get("/admin/uploads/sign-url", response_model=SignUrlResponse)
def sign_upload_url(
    recipient_id: str = Query(..., alias="recipientId"),
    filename: str | None = Query(None, max_length=255),
    path: str | None = Query(None, description="Existing object path to read"),
    op: str = Query("put", pattern="^(get|put)$"),
    content_type: str | None = Query(None, alias="contentType"),
    expires_in: int = Query(3600, alias="expiresIn", ge=60, le=86400),
    admin: AdminSession = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    if db.get_recipient(recipient_id) is None:
        raise _not_found(recipient_id)
    prefix = media_prefix(recipient_id)
    if op == "get":
        if not path or not path.startswith(prefix):
            raise HTTPException(status_code=400, detail="path must belong to the recipient")
        return SignUrlResponse(url=storage.presign_get(path, expires_in=expires_in), path=path)

    if not filename:
        raise HTTPException(status_code=400, detail="filename is required for uploads")
    object_path = f"{prefix}{uuid4().hex[:12]}-{_safe_filename(filename)}"
    url = storage.presign_put(object_path, expires_in=expires_in, content_type=content_type)
    return SignUrlResponse(url=url, path=object_path)
