# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Public track API - list, single, random, tags. Called by game clients; gated by the public API switch."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mymusicapi_server.api.schemas import (
    TagListResponse,
    TrackEnvelope,
    TrackListResponse,
    TrackResponse,
)
from mymusicapi_server.auth import require_public_api
from mymusicapi_server.database import get_db
from mymusicapi_server.errors import NotFoundError
from mymusicapi_server.services import tracks as track_store

router = APIRouter(tags=["tracks"], dependencies=[Depends(require_public_api)])


@router.get("/tracks", response_model=TrackListResponse)
async def list_tracks(
    tag: str | None = Query(None, description="Only tracks carrying this tag"),
    search: str | None = Query(None, description="Case-insensitive title substring"),
    limit: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
) -> TrackListResponse:
    """List tracks, newest first. Example: /tracks?tag=battle&limit=10"""
    rows = await track_store.list_tracks(db, tag=tag, search=search, limit=limit)
    return TrackListResponse(tracks=[TrackResponse.model_validate(t) for t in rows])


@router.get("/tracks/{track_id}", response_model=TrackEnvelope)
async def get_track(
    track_id: int,
    db: AsyncSession = Depends(get_db),
) -> TrackEnvelope:
    """Get a single track by ID."""
    track = await track_store.get_track(db, track_id)
    if not track:
        raise NotFoundError("Track not found")
    return TrackEnvelope(track=TrackResponse.model_validate(track))


@router.get("/random", response_model=TrackEnvelope)
async def random_track(
    tag: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> TrackEnvelope:
    """Random track, optionally by tag. Example: /random?tag=battle"""
    track = await track_store.random_track(db, tag=tag)
    if not track:
        raise NotFoundError("No tracks found")
    return TrackEnvelope(track=TrackResponse.model_validate(track))


@router.get("/tags", response_model=TagListResponse)
async def list_tags(db: AsyncSession = Depends(get_db)) -> TagListResponse:
    """All tags in use, for building tag filters."""
    return TagListResponse(tags=await track_store.list_tags(db))
