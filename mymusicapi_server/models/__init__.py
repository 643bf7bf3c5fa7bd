# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from mymusicapi_server.models.base import Base
from mymusicapi_server.models.track import Track, TrackTag
from mymusicapi_server.models.admin_settings import AdminSettings

__all__ = [
    "Base",
    "Track",
    "TrackTag",
    "AdminSettings",
]
