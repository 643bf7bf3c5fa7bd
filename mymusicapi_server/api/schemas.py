# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# Tracks
class TrackResponse(BaseModel):
    id: int
    title: str
    file_url: str
    file_name: str
    tags: list[str] = []
    file_size: int = 0
    mime_type: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TrackEnvelope(BaseModel):
    track: TrackResponse


class TrackListResponse(BaseModel):
    tracks: list[TrackResponse]


class TagListResponse(BaseModel):
    tags: list[str]


class TrackCreate(BaseModel):
    """Metadata-only upload: the file is already in the bucket."""

    title: str | None = None
    file_name: str | None = None
    file_url: str | None = None
    tags: list[str] | str | None = None
    file_size: int | None = None
    mime_type: str | None = None


class UploadUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1)
    mime_type: str | None = None
    file_size: int | None = None


class UploadUrlResponse(BaseModel):
    file_name: str
    upload_url: str
    file_url: str
    mime_type: str


class DeleteResponse(BaseModel):
    message: str
    id: int


# Auth / settings
class AuthRequest(BaseModel):
    password: str | None = None


class AuthResponse(BaseModel):
    success: bool = True
    username: str
    api_enabled: bool


class SettingsResponse(BaseModel):
    username: str
    api_enabled: bool


class SettingsUpdate(BaseModel):
    username: str | None = None
    new_password: str | None = None
    api_enabled: bool | None = None


class SettingsUpdateResponse(BaseModel):
    success: bool = True
    username: str
    api_enabled: bool
    password_changed: bool
