# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Upload input normalisation and validation."""

import mimetypes
from pathlib import PurePosixPath

from mymusicapi_server.errors import ValidationError
from mymusicapi_server.models.track import DEFAULT_MIME_TYPE

MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MiB

EXT_MIME = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "opus": "audio/opus",
    "flac": "audio/flac",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "weba": "audio/webm",
    "webm": "audio/webm",
    "aif": "audio/aiff",
    "aiff": "audio/aiff",
    "mid": "audio/midi",
    "midi": "audio/midi",
}


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name.replace("\\", "/")).suffix.lower().lstrip(".")


def title_from_filename(file_name: str) -> str:
    """'Boss Battle.mp3' -> 'Boss Battle'."""
    return PurePosixPath(file_name.replace("\\", "/")).stem.strip()


def normalize_tags(tags) -> list[str]:
    """Accept a list or a comma-separated string; return trimmed, lower-cased, de-duplicated tags."""
    if tags is None:
        return []
    if isinstance(tags, str):
        raw = tags.split(",")
    elif isinstance(tags, (list, tuple, set)):
        raw = list(tags)
    else:
        raise ValidationError("tags must be a list or a comma-separated string")
    out: list[str] = []
    for tag in raw:
        if not isinstance(tag, str):
            raise ValidationError("tags must be strings")
        t = tag.strip().lower()
        if t and t not in out:
            out.append(t)
    return out


def is_audio(mime_type: str | None, file_name: str) -> bool:
    if mime_type and mime_type.strip().lower().startswith("audio/"):
        return True
    return file_extension(file_name) in EXT_MIME


def resolve_mime_type(mime_type: str | None, file_name: str) -> str:
    """Declared type if any, else guessed from the extension, else audio/mpeg."""
    if mime_type and mime_type.strip():
        return mime_type.strip()
    ext = file_extension(file_name)
    return EXT_MIME.get(ext) or mimetypes.guess_type(file_name)[0] or DEFAULT_MIME_TYPE


def validate_upload(file_name: str, file_size: int | None, mime_type: str | None) -> None:
    """Reject oversized or non-audio uploads. Must run before anything is written to storage."""
    size = file_size or 0
    if size < 0:
        raise ValidationError("file_size must not be negative")
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File too large ({size} bytes). Maximum is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB."
        )
    if not is_audio(mime_type, file_name):
        raise ValidationError(
            "Only audio files are allowed",
            hint=f"Supported extensions: {', '.join(sorted(EXT_MIME))}",
        )


def clean_title(title: str | None, file_name: str | None = None) -> str:
    """Trimmed title; falls back to the file name without extension when given."""
    t = (title or "").strip()
    if not t and file_name:
        t = title_from_filename(file_name)
    if not t:
        raise ValidationError("title is required")
    return t
