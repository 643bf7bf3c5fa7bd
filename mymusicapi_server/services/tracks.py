# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Track persistence: create, filtered listing, lookup, random pick, delete."""

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mymusicapi_server.models import Track, TrackTag
from mymusicapi_server.models.track import DEFAULT_MIME_TYPE


def _filtered(q, tag: str | None = None, search: str | None = None):
    """Apply tag membership and case-insensitive title search. Tags are stored lower-cased."""
    if tag:
        q = q.where(Track.id.in_(select(TrackTag.track_id).where(TrackTag.tag == tag)))
    if search:
        q = q.where(Track.title.icontains(search, autoescape=True))
    return q


async def list_tracks(
    db: AsyncSession,
    tag: str | None = None,
    search: str | None = None,
    limit: int | None = None,
) -> list[Track]:
    """Tracks matching all given filters, newest first."""
    q = _filtered(select(Track), tag, search).order_by(desc(Track.created_at), desc(Track.id))
    if limit:
        q = q.limit(limit)
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_track(db: AsyncSession, track_id: int) -> Track | None:
    result = await db.execute(select(Track).where(Track.id == track_id))
    return result.scalar_one_or_none()


async def random_track(db: AsyncSession, tag: str | None = None) -> Track | None:
    """Uniformly random track, optionally restricted to a tag. None when nothing matches."""
    q = _filtered(select(Track), tag).order_by(func.random()).limit(1)
    result = await db.execute(q)
    return result.scalars().first()


async def list_tags(db: AsyncSession) -> list[str]:
    """Distinct tags across all tracks, alphabetical."""
    result = await db.execute(select(TrackTag.tag).distinct().order_by(TrackTag.tag))
    return list(result.scalars().all())


async def create_track(
    db: AsyncSession,
    title: str,
    file_name: str,
    file_url: str,
    tags: list[str],
    file_size: int = 0,
    mime_type: str | None = None,
) -> Track:
    """Insert one track with its tags. Inputs must already be validated and normalised."""
    track = Track(
        title=title,
        file_name=file_name,
        file_url=file_url,
        file_size=file_size or 0,
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        tag_links=[TrackTag(tag=t, position=i) for i, t in enumerate(tags)],
    )
    db.add(track)
    await db.flush()
    await db.refresh(track, attribute_names=["created_at"])
    return track


async def delete_track(db: AsyncSession, track: Track) -> None:
    await db.delete(track)
    await db.flush()
