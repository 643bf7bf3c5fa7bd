# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin settings - singleton row holding the password override and kill switch."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from mymusicapi_server.models.base import Base

SETTINGS_ROW_ID = 1

# Returned whenever the row (or the whole table) is missing.
DEFAULT_ADMIN_SETTINGS = {
    "username": "Admin",
    "api_enabled": True,
}


class AdminSettings(Base):
    """Admin display name, password override and public API switch. Only row id=1 is used."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(primary_key=True, default=SETTINGS_ROW_ID)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_override: Mapped[str | None] = mapped_column(Text, nullable=True)
    api_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
