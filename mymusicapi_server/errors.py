# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""API error types. Rendered as {"detail": ..., "hint": ...} by the app exception handler."""

from fastapi import status


class TrackApiError(Exception):
    """Base for errors that map to an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, hint: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.hint = hint

    def to_dict(self) -> dict:
        body = {"detail": self.detail}
        if self.hint:
            body["hint"] = self.hint
        return body


class ValidationError(TrackApiError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(TrackApiError):
    """Missing or wrong admin credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotConfiguredError(AuthError):
    """No admin secret is configured anywhere, so nobody can authenticate."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundError(TrackApiError):
    """No matching record."""

    status_code = status.HTTP_404_NOT_FOUND


class ServiceDisabledError(TrackApiError):
    """Public API switched off by the admin."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class BackendError(TrackApiError):
    """Database or object storage failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StorageError(BackendError):
    """Object storage call failed."""
