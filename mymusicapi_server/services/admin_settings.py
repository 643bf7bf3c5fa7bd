# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin settings (display name, password override, public API switch) from DB."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from mymusicapi_server.models.admin_settings import (
    DEFAULT_ADMIN_SETTINGS,
    SETTINGS_ROW_ID,
    AdminSettings,
)

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def load_settings_row(db: AsyncSession) -> AdminSettings | None:
    """Return the settings row, or None when it has not been written yet.

    Database errors (e.g. the table was never created) propagate; callers decide
    whether to fall back.
    """
    result = await db.execute(
        select(AdminSettings).where(AdminSettings.id == SETTINGS_ROW_ID)
    )
    return result.scalar_one_or_none()


def settings_view(row: AdminSettings | None) -> dict:
    """Public view of the settings row: username and api_enabled, defaults filled in."""
    if row is None:
        return dict(DEFAULT_ADMIN_SETTINGS)
    return {
        "username": row.username or DEFAULT_ADMIN_SETTINGS["username"],
        "api_enabled": row.api_enabled is not False,
    }


async def get_admin_settings(db: AsyncSession) -> dict:
    """Return {username, api_enabled} from DB or defaults."""
    return settings_view(await load_settings_row(db))


async def update_admin_settings(
    db: AsyncSession,
    username: str | None = None,
    new_password: str | None = None,
    api_enabled: bool | None = None,
) -> AdminSettings:
    """Insert or merge-update the settings row in one statement. Arguments left as None are not touched.

    Concurrent writes are resolved by the database; the last writer wins per column.
    """
    changes: dict = {"updated_at": datetime.now(timezone.utc)}
    if username is not None:
        changes["username"] = username
    if new_password:
        changes["password_override"] = new_password
    if api_enabled is not None:
        changes["api_enabled"] = api_enabled

    insert = _UPSERT_INSERTS.get(db.bind.dialect.name)
    if insert is None:
        # No ON CONFLICT support: merge through the ORM.
        row = await load_settings_row(db)
        if row is None:
            row = AdminSettings(id=SETTINGS_ROW_ID, api_enabled=True)
            db.add(row)
        for key, value in changes.items():
            setattr(row, key, value)
        await db.flush()
    else:
        stmt = insert(AdminSettings).values(
            {"id": SETTINGS_ROW_ID, "api_enabled": True, **changes}
        )
        stmt = stmt.on_conflict_do_update(index_elements=[AdminSettings.id], set_=changes)
        await db.execute(stmt)
        row = await db.get(AdminSettings, SETTINGS_ROW_ID, populate_existing=True)
    logger.info(
        "Admin settings updated (username=%s, password_changed=%s, api_enabled=%s)",
        username is not None,
        bool(new_password),
        row.api_enabled,
    )
    return row


async def clear_password_override(db: AsyncSession) -> bool:
    """Remove the stored password so the static ADMIN_PASSWORD applies again. Returns True if one was set."""
    row = await load_settings_row(db)
    if row is None or not row.password_override:
        return False
    row.password_override = None
    row.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return True
