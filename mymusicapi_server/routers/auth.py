# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin login check for the admin console."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mymusicapi_server.api.schemas import AuthRequest, AuthResponse
from mymusicapi_server.auth import authorize, resolve_admin_secret
from mymusicapi_server.database import get_db
from mymusicapi_server.errors import AuthError, NotConfiguredError, ValidationError
from mymusicapi_server.models.admin_settings import DEFAULT_ADMIN_SETTINGS
from mymusicapi_server.services.admin_settings import get_admin_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/auth", response_model=AuthResponse)
async def authenticate(
    data: AuthRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Validate the admin password and return what the console needs to render."""
    if not data.password or not data.password.strip():
        raise ValidationError("Please enter your admin password.")
    resolved = await resolve_admin_secret(db)
    if not resolved.configured:
        raise NotConfiguredError(
            "Admin password not configured.",
            hint="Set ADMIN_PASSWORD in the server environment.",
        )
    if not authorize(data.password, resolved):
        raise AuthError("Invalid admin password. Please try again.")
    try:
        current = await get_admin_settings(db)
    except SQLAlchemyError as e:
        logger.warning("Settings unreadable, returning defaults: %s", e.__class__.__name__)
        await db.rollback()
        current = dict(DEFAULT_ADMIN_SETTINGS)
    return AuthResponse(success=True, **current)
