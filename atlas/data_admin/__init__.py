"""
Admin CRUD over the wiki's JSON data files.
No HTTP here: the API layer maps these exceptions to status codes.
"""
from .errors import (
    DataAdminError,
    DataFileExistsError,
    DataFileNotFoundError,
    InvalidFilenameError,
    InvalidJSONError,
    StorageError,
)
from .filenames import base_name, sanitize_filename, validate_filename
from .json_validation import item_count, safe_stringify, validate_json
from .service import DataAdminService, SaveResult
from .stores import DataFileInfo, DataStore, GitHubDataStore, LocalDataStore, StoredFile

__all__ = [
    "DataAdminError",
    "DataFileExistsError",
    "DataFileNotFoundError",
    "InvalidFilenameError",
    "InvalidJSONError",
    "StorageError",
    "base_name",
    "sanitize_filename",
    "validate_filename",
    "item_count",
    "safe_stringify",
    "validate_json",
    "DataAdminService",
    "SaveResult",
    "DataFileInfo",
    "DataStore",
    "GitHubDataStore",
    "LocalDataStore",
    "StoredFile",
]
