"""
Data admin exceptions. The API maps each to an HTTP status.
"""
from __future__ import annotations


class DataAdminError(Exception):
    """Base for every data admin failure."""


class InvalidFilenameError(DataAdminError, ValueError):
    """Name is not a flat `<letters/digits/_/->.json` filename."""


class InvalidJSONError(DataAdminError, ValueError):
    """Content is not JSON, or its top level is not an object or array."""


class DataFileNotFoundError(DataAdminError, LookupError):
    pass


class DataFileExistsError(DataAdminError):
    """Upload would overwrite an existing file (use save to update)."""


class StorageError(DataAdminError):
    """The storage backend (filesystem or GitHub) failed."""
