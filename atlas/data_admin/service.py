"""
Data admin service: list/read/save/upload/delete wiki data files over a DataStore.
Every overwrite or delete is preceded by a timestamped backup of the current content.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .errors import DataFileExistsError, DataFileNotFoundError
from .filenames import sanitize_filename
from .json_validation import safe_stringify, validate_json
from .stores import DataFileInfo, DataStore

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    name: str
    created: bool
    backup: str | None = None
    commit: dict[str, Any] | None = None

    @property
    def message(self) -> str:
        return "File created successfully" if self.created else "File updated successfully"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "created": self.created,
            "message": self.message,
            "backup": self.backup,
        }
        if self.commit is not None:
            d["commit"] = self.commit
        return d


def content_to_text(content: Any) -> str:
    """Editors may send the file as a JSON string or as the decoded value itself."""
    if isinstance(content, str):
        return content
    return safe_stringify(content)


class DataAdminService:
    def __init__(self, store: DataStore) -> None:
        self.store = store

    def list_files(self) -> list[DataFileInfo]:
        return self.store.list_files()

    def read_file(self, name: Any) -> dict[str, Any]:
        filename = sanitize_filename(name)
        stored = self.store.get(filename)
        if stored is None:
            raise DataFileNotFoundError("File not found")
        checked = validate_json(stored.content)
        return {
            "name": filename,
            "data": checked.parsed,
            "meta": {
                "is_array": checked.is_array,
                "item_count": checked.item_count,
                "sha": stored.sha,
            },
        }

    def read_data(self, name: str) -> Any:
        """Parsed content only (used by the build lab and wiki reads)."""
        return self.read_file(name)["data"]

    def save_file(self, name: Any, content: Any) -> SaveResult:
        """Create or update; the current version is backed up first."""
        filename = sanitize_filename(name)
        text = content_to_text(content)
        validate_json(text)

        existing = self.store.get(filename)
        backup = None
        if existing is not None:
            backup = self.store.backup(filename, existing.content)
        verb = "Update" if existing is not None else "Create"
        commit = self.store.put(
            filename,
            text,
            sha=existing.sha if existing is not None else None,
            message=f"{verb} {filename} via admin API",
        )
        logger.info("%sd %s (backup=%s)", verb, filename, backup)
        return SaveResult(name=filename, created=existing is None, backup=backup, commit=commit)

    def upload_file(self, name: Any, content: Any) -> SaveResult:
        """Create a new file; refuses to replace an existing one."""
        filename = sanitize_filename(name)
        text = content_to_text(content)
        validate_json(text)
        if self.store.get(filename) is not None:
            raise DataFileExistsError(
                f"A file named {filename} already exists. Use the save endpoint to update it."
            )
        commit = self.store.put(filename, text, message=f"Create {filename} via admin API")
        logger.info("Uploaded %s", filename)
        return SaveResult(name=filename, created=True, commit=commit)

    def delete_file(self, name: Any) -> str:
        """Back up then delete. Returns the backup filename."""
        filename = sanitize_filename(name)
        existing = self.store.get(filename)
        if existing is None:
            raise DataFileNotFoundError("File not found")
        backup = self.store.backup(filename, existing.content)
        self.store.remove(filename, sha=existing.sha, message=f"Delete {filename} via admin API")
        logger.info("Deleted %s (backup=%s)", filename, backup)
        return backup
