# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin authentication and the public API switch.

The admin secret is the stored password override when one is set, otherwise the
static ADMIN_PASSWORD. Both are re-read on every request since the override can
change at any time.

The two readers fail in opposite directions when the settings store
cannot be read: the admin secret falls back to the static secret (and with none
configured nobody is let in), while the public API switch falls back to enabled.
"""

import enum
import logging
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mymusicapi_server.config import settings
from mymusicapi_server.database import get_db
from mymusicapi_server.errors import AuthError, ServiceDisabledError
from mymusicapi_server.models.admin_settings import DEFAULT_ADMIN_SETTINGS
from mymusicapi_server.services.admin_settings import load_settings_row

logger = logging.getLogger(__name__)

ADMIN_PASSWORD_HEADER = "x-admin-password"


class SecretSource(enum.Enum):
    OVERRIDE = "override"
    STATIC = "static"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True)
class ResolvedSecret:
    """The admin secret in effect and where it came from."""

    source: SecretSource
    secret: str | None = None

    @property
    def configured(self) -> bool:
        return self.source is not SecretSource.UNCONFIGURED


async def _read_password_override(db: AsyncSession) -> str | None:
    try:
        row = await load_settings_row(db)
    except SQLAlchemyError as e:
        logger.warning("Settings unreadable, using static admin password: %s", e.__class__.__name__)
        await db.rollback()
        return None
    return row.password_override if row else None


async def resolve_admin_secret(db: AsyncSession) -> ResolvedSecret:
    """Return the effective admin secret: stored override, else static ADMIN_PASSWORD."""
    override = await _read_password_override(db)
    if override:
        return ResolvedSecret(SecretSource.OVERRIDE, override)
    if settings.admin_password:
        return ResolvedSecret(SecretSource.STATIC, settings.admin_password)
    return ResolvedSecret(SecretSource.UNCONFIGURED)


def authorize(claimed: str | None, resolved: ResolvedSecret) -> bool:
    """Exact comparison of a claimed password against the effective secret. Fails closed."""
    if not claimed:
        return False
    if not resolved.configured or not resolved.secret:
        return False
    return claimed == resolved.secret


async def require_admin(
    x_admin_password: str | None = Header(None, alias=ADMIN_PASSWORD_HEADER),
    db: AsyncSession = Depends(get_db),
) -> ResolvedSecret:
    """Dependency: require the admin password header. Raises 401 before the route body runs."""
    resolved = await resolve_admin_secret(db)
    if not authorize(x_admin_password, resolved):
        if not resolved.configured:
            logger.warning("Admin request rejected: no admin password configured (set ADMIN_PASSWORD)")
        else:
            logger.warning("Admin request rejected: invalid or missing %s header", ADMIN_PASSWORD_HEADER)
        raise AuthError("Unauthorized")
    return resolved


async def is_public_api_enabled(db: AsyncSession) -> bool:
    """Return the public API switch; enabled when settings are missing or unreadable."""
    try:
        row = await load_settings_row(db)
    except SQLAlchemyError as e:
        logger.warning("Settings unreadable, public API stays enabled: %s", e.__class__.__name__)
        await db.rollback()
        return DEFAULT_ADMIN_SETTINGS["api_enabled"]
    if row is None:
        return DEFAULT_ADMIN_SETTINGS["api_enabled"]
    return row.api_enabled is not False


async def require_public_api(db: AsyncSession = Depends(get_db)) -> None:
    """Dependency: raise 503 when the admin has switched the public API off."""
    if not await is_public_api_enabled(db):
        raise ServiceDisabledError("API is currently disabled by the administrator")
