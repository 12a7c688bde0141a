"""
Filename rules for wiki data files.
Only flat names of letters, digits, underscores and hyphens ending in .json are allowed,
so a name can never address anything outside the data directory.
"""
from __future__ import annotations

import re
from typing import Any

from .errors import InvalidFilenameError

FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+\.json$")
BASENAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
JSON_SUFFIX = ".json"
MIN_FILENAME_LENGTH = 6  # "a.json"
MAX_FILENAME_LENGTH = 100


def validate_filename(filename: Any) -> str:
    """Return the trimmed filename or raise InvalidFilenameError."""
    if not filename or not isinstance(filename, str):
        raise InvalidFilenameError("Filename must be a non-empty string")
    trimmed = filename.strip()
    if not FILENAME_PATTERN.fullmatch(trimmed):
        raise InvalidFilenameError(
            "Filename must contain only letters, numbers, underscores, hyphens, and end with .json"
        )
    if ".." in trimmed or trimmed.startswith("."):
        raise InvalidFilenameError("Invalid filename pattern detected")
    if len(trimmed) < MIN_FILENAME_LENGTH:
        raise InvalidFilenameError("Filename too short (minimum 1 character + .json)")
    if len(trimmed) > MAX_FILENAME_LENGTH:
        raise InvalidFilenameError(f"Filename too long (maximum {MAX_FILENAME_LENGTH} characters)")
    return trimmed


def sanitize_filename(filename: Any) -> str:
    """Like validate_filename, but a bare base name gets .json appended ("weapons" -> "weapons.json")."""
    if isinstance(filename, str):
        trimmed = filename.strip()
        if BASENAME_PATTERN.fullmatch(trimmed):
            filename = trimmed + JSON_SUFFIX
    return validate_filename(filename)


def base_name(filename: str) -> str:
    if not filename or not filename.endswith(JSON_SUFFIX):
        return filename
    return filename[: -len(JSON_SUFFIX)]
