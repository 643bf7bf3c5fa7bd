# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin API - upload, delete, settings. Every route requires the x-admin-password header."""

import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from mymusicapi_server.api.schemas import (
    DeleteResponse,
    SettingsResponse,
    SettingsUpdate,
    SettingsUpdateResponse,
    TrackCreate,
    TrackEnvelope,
    TrackResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from mymusicapi_server.auth import require_admin
from mymusicapi_server.database import get_db
from mymusicapi_server.errors import NotFoundError, StorageError, ValidationError
from mymusicapi_server.models.admin_settings import DEFAULT_ADMIN_SETTINGS
from mymusicapi_server.services import tracks as track_store
from mymusicapi_server.services.admin_settings import (
    get_admin_settings,
    settings_view,
    update_admin_settings,
)
from mymusicapi_server.services.storage import ObjectStore, get_object_store, make_storage_key
from mymusicapi_server.services.uploads import (
    MAX_UPLOAD_BYTES,
    clean_title,
    normalize_tags,
    resolve_mime_type,
    validate_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


async def _record_uploaded_metadata(data: TrackCreate, db: AsyncSession) -> TrackResponse:
    """Metadata-only variant: the client already put the file in the bucket."""
    if not data.title or not data.file_name or not data.file_url:
        raise ValidationError("Missing required fields", hint="title, file_name and file_url are required")
    title = clean_title(data.title)
    validate_upload(data.file_name, data.file_size, data.mime_type)
    track = await track_store.create_track(
        db,
        title=title,
        file_name=data.file_name,
        file_url=data.file_url,
        tags=normalize_tags(data.tags),
        file_size=data.file_size or 0,
        mime_type=resolve_mime_type(data.mime_type, data.file_name),
    )
    return TrackResponse.model_validate(track)


async def _store_uploaded_file(form, db: AsyncSession, store: ObjectStore) -> TrackResponse:
    """Multipart variant: the server writes the file to the bucket, then records it."""
    upload = form.get("file")
    if not isinstance(upload, UploadFile) or not upload.filename:
        raise ValidationError("No file uploaded")
    title_field, tags_field = form.get("title"), form.get("tags")
    if isinstance(title_field, UploadFile) or isinstance(tags_field, UploadFile):
        raise ValidationError("title and tags must be text fields")
    tags = normalize_tags(tags_field or "")
    title = clean_title(title_field, upload.filename)
    # Declared size first so obviously oversized uploads are rejected unread.
    validate_upload(upload.filename, upload.size, upload.content_type)
    content = await upload.read(MAX_UPLOAD_BYTES + 1)
    validate_upload(upload.filename, len(content), upload.content_type)
    mime_type = resolve_mime_type(upload.content_type, upload.filename)

    key = make_storage_key(upload.filename)
    file_url = await store.put(key, content, mime_type)
    try:
        track = await track_store.create_track(
            db,
            title=title,
            file_name=key,
            file_url=file_url,
            tags=tags,
            file_size=len(content),
            mime_type=mime_type,
        )
    except SQLAlchemyError:
        logger.exception("Track record not saved; blob %s is orphaned", key)
        raise
    return TrackResponse.model_validate(track)


@router.post("/upload", response_model=TrackEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_track(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
) -> TrackEnvelope:
    """Create a track. Accepts JSON metadata for a file already in the bucket,
    or multipart/form-data with `file` (plus optional `title`, `tags`)."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        async with request.form(max_files=1) as form:
            track = await _store_uploaded_file(form, db, store)
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body must be JSON or multipart/form-data")
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            data = TrackCreate.model_validate(payload)
        except SchemaError as e:
            raise ValidationError(f"Invalid track metadata: {e.error_count()} error(s)", hint=str(e))
        track = await _record_uploaded_metadata(data, db)
    await db.commit()
    logger.info("Track uploaded: id=%s file=%s", track.id, track.file_name)
    return TrackEnvelope(track=track)


@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    body: UploadUrlRequest,
    store: ObjectStore = Depends(get_object_store),
) -> UploadUrlResponse:
    """Presigned URL for uploading a file straight to the bucket.
    Record it afterwards with POST /upload (JSON) using the returned file_name and file_url."""
    validate_upload(body.file_name, body.file_size, body.mime_type)
    mime_type = resolve_mime_type(body.mime_type, body.file_name)
    key = make_storage_key(body.file_name)
    upload_url = await store.presign_upload(key, mime_type)
    return UploadUrlResponse(
        file_name=key,
        upload_url=upload_url,
        file_url=store.public_url(key),
        mime_type=mime_type,
    )


@router.delete("/delete/{track_id}", response_model=DeleteResponse)
async def delete_track(
    track_id: int,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
) -> DeleteResponse:
    """Delete a track record and its file. A storage failure does not keep the record."""
    track = await track_store.get_track(db, track_id)
    if not track:
        raise NotFoundError("Track not found")
    try:
        await store.delete(track.file_name)
    except StorageError as e:
        logger.warning("Storage delete failed for %s (track %s): %s", track.file_name, track_id, e)
    await track_store.delete_track(db, track)
    await db.commit()
    logger.info("Track deleted: id=%s", track_id)
    return DeleteResponse(message="Track deleted", id=track_id)


@router.get("/settings", response_model=SettingsResponse)
async def read_settings(db: AsyncSession = Depends(get_db)) -> SettingsResponse:
    """Current display name and public API switch."""
    try:
        current = await get_admin_settings(db)
    except SQLAlchemyError as e:
        logger.warning("Settings unreadable, returning defaults: %s", e.__class__.__name__)
        await db.rollback()
        current = dict(DEFAULT_ADMIN_SETTINGS)
    return SettingsResponse(**current)


@router.put("/settings", response_model=SettingsUpdateResponse)
async def write_settings(
    body: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> SettingsUpdateResponse:
    """Update any of username, new_password, api_enabled. Omitted fields keep their value.
    A new password replaces the current one for all following requests."""
    row = await update_admin_settings(
        db,
        username=body.username,
        new_password=body.new_password,
        api_enabled=body.api_enabled,
    )
    await db.commit()
    return SettingsUpdateResponse(
        success=True,
        password_changed=bool(body.new_password),
        **settings_view(row),
    )
