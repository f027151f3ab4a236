"""Extension based classification of file entries."""

from __future__ import annotations

import posixpath
from collections.abc import Mapping

DEFAULT_FILE_TYPE = "file"

FILE_TYPES: dict[str, str] = {
    "docx": "doc",
    "xls": "excel",
    "xslx": "excel",
    "txt": "text",
    "md": "text",
    "html": "code",
    "htm": "code",
    "js": "code",
    "json": "code",
    "css": "code",
    "php": "code",
    "sh": "code",
    "mpg": "video",
    "mp4": "video",
    "avi": "video",
    "mkv": "video",
    "png": "image",
    "jpg": "image",
    "gif": "image",
    "mp3": "audio",
    "ogg": "audio",
    "zip": "archive",
    "rar": "archive",
    "7z": "archive",
    "tar": "archive",
    "gz": "archive",
}


def build_type_table(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Merge extension overrides onto the default table.

    Override keys may be given with or without the leading dot.
    """
    table = dict(FILE_TYPES)
    if overrides:
        for ext, file_type in overrides.items():
            table[ext.lstrip(".").lower()] = file_type
    return table


def get_file_type(name: str, table: Mapping[str, str] | None = None) -> str:
    """Classify a file by its last extension.

    Args:
        name: Basename or full key of the file.
        table: Extension table (defaults to FILE_TYPES).

    Returns:
        The mapped type, or "file" when the extension is unknown.
    """
    types = FILE_TYPES if table is None else table
    ext = posixpath.splitext(posixpath.basename(name))[1]
    return types.get(ext[1:].lower(), DEFAULT_FILE_TYPE)
