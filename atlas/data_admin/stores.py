"""
Storage backends for wiki data files.

LocalDataStore keeps files in a directory (atomic writes via temp file + rename).
GitHubDataStore commits them to a repository through the GitHub contents API.
Both write backups to a `backups/` location; the service decides when to back up.
No validation here: names and content are checked by the service before they arrive.
"""
from __future__ import annotations

import base64
import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from .errors import StorageError
from .json_validation import validate_json

logger = logging.getLogger(__name__)

BACKUP_DIRNAME = "backups"


@dataclass
class StoredFile:
    """One data file as held by a store."""
    name: str
    content: str
    size: int
    sha: str | None = None  # GitHub blob sha; None for local files
    modified: datetime | None = None


@dataclass
class DataFileInfo:
    """Listing entry: size plus record count when the file parses."""
    name: str
    size: int
    record_count: int = 0
    is_array: bool = False
    valid: bool = False
    modified: datetime | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "size": self.size,
            "record_count": self.record_count,
            "is_array": self.is_array,
            "valid": self.valid,
        }
        if self.modified is not None:
            d["modified"] = self.modified.isoformat()
        if self.error is not None:
            d["error"] = self.error
        return d


def backup_filename(filename: str, now: datetime | None = None) -> str:
    """`weapons.json` -> `weapons.json.bak-2025-01-31T12-00-00-000Z`."""
    ts = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"
    return f"{filename}.bak-{stamp.replace(':', '-').replace('.', '-')}"


def describe_content(name: str, content: str, size: int, modified: datetime | None = None) -> DataFileInfo:
    info = DataFileInfo(name=name, size=size, modified=modified)
    try:
        checked = validate_json(content)
    except ValueError as e:
        info.error = str(e)
        return info
    info.valid = True
    info.is_array = checked.is_array
    info.record_count = checked.item_count
    return info


class DataStore(ABC):
    """Where data files live. Names passed in are already sanitized."""

    @abstractmethod
    def list_files(self) -> list[DataFileInfo]: ...

    @abstractmethod
    def get(self, name: str) -> StoredFile | None: ...

    @abstractmethod
    def put(self, name: str, content: str, *, sha: str | None = None, message: str = "") -> dict[str, Any] | None:
        """Create or replace. Returns backend commit info when there is any."""

    @abstractmethod
    def remove(self, name: str, *, sha: str | None = None, message: str = "") -> None: ...

    @abstractmethod
    def backup(self, name: str, content: str) -> str:
        """Write a timestamped copy of `content`; returns the backup filename."""

    def close(self) -> None:
        pass


# ---------- Local directory ----------


class LocalDataStore(DataStore):
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.backup_dir = self.data_dir / BACKUP_DIRNAME

    def _path(self, name: str) -> Path:
        return self.data_dir / name

    def list_files(self) -> list[DataFileInfo]:
        if not self.data_dir.is_dir():
            return []
        files: list[DataFileInfo] = []
        for path in sorted(self.data_dir.glob("*.json")):
            if not path.is_file():
                continue
            stat = path.stat()
            modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                files.append(DataFileInfo(name=path.name, size=stat.st_size, modified=modified, error=str(e)))
                continue
            files.append(describe_content(path.name, content, stat.st_size, modified))
        return files

    def get(self, name: str) -> StoredFile | None:
        path = self._path(name)
        if not path.is_file():
            return None
        try:
            content = path.read_text(encoding="utf-8")
            stat = path.stat()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read file: {e}") from e
        return StoredFile(
            name=name,
            content=content,
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def put(self, name: str, content: str, *, sha: str | None = None, message: str = "") -> dict[str, Any] | None:
        path = self._path(name)
        tmp = path.with_name(path.name + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Failed to write file: {e}") from e
        return None

    def remove(self, name: str, *, sha: str | None = None, message: str = "") -> None:
        try:
            self._path(name).unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    def backup(self, name: str, content: str) -> str:
        backup_name = backup_filename(name)
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            source = self._path(name)
            if source.is_file():
                shutil.copy2(source, self.backup_dir / backup_name)
            else:
                (self.backup_dir / backup_name).write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Backup failed: {e}") from e
        return backup_name


# ---------- GitHub contents API ----------

GITHUB_API_URL = "https://api.github.com"
GITHUB_USER_AGENT = "SoulFrame-Atlas-Admin"


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _b64decode(data: str) -> str:
    # GitHub wraps base64 content at 60 columns; b64decode skips the newlines.
    return base64.b64decode(data).decode("utf-8")


class GitHubDataStore(DataStore):
    """
    Data files committed to `<data_path>/` on one branch of a GitHub repository.
    Updates and deletes need the current blob sha, which get() returns.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        branch: str = "main",
        data_path: str = "data",
        transport: httpx.BaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.data_path = data_path.strip("/")
        self.backup_path = f"{self.data_path}/{BACKUP_DIRNAME}"
        self._client = httpx.Client(
            base_url=GITHUB_API_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": GITHUB_USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, self._contents_url(path), **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"GitHub API request failed: {e}") from e

    def _fetch(self, path: str) -> Any | None:
        resp = self._request("GET", path, params={"ref": self.branch})
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise StorageError(f"GitHub API error: {resp.status_code} {resp.reason_phrase}")
        return resp.json()

    def _commit(self, method: str, path: str, body: dict[str, Any], action: str) -> dict[str, Any]:
        resp = self._request(method, path, json=body)
        if not resp.is_success:
            raise StorageError(f"{action} failed: {resp.status_code} {resp.text}")
        return resp.json()

    def list_files(self) -> list[DataFileInfo]:
        listing = self._fetch(self.data_path)
        if listing is None:
            return []
        if not isinstance(listing, list):
            raise StorageError(f"Failed to list files: {self.data_path} is not a directory")
        files: list[DataFileInfo] = []
        for entry in listing:
            name = entry.get("name", "")
            if entry.get("type") != "file" or not name.endswith(".json"):
                continue
            size = int(entry.get("size") or 0)
            try:
                resp = self._client.get(entry["download_url"])
                resp.raise_for_status()
            except (httpx.HTTPError, KeyError) as e:
                files.append(DataFileInfo(name=name, size=size, error=str(e)))
                continue
            files.append(describe_content(name, resp.text, size))
        return files

    def get(self, name: str) -> StoredFile | None:
        data = self._fetch(f"{self.data_path}/{name}")
        if data is None:
            return None
        try:
            content = _b64decode(data.get("content") or "")
        except (ValueError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to decode {name}: {e}") from e
        return StoredFile(name=name, content=content, size=int(data.get("size") or 0), sha=data.get("sha"))

    def put(self, name: str, content: str, *, sha: str | None = None, message: str = "") -> dict[str, Any] | None:
        body: dict[str, Any] = {
            "message": message or f"Update {name} via admin API",
            "content": _b64encode(content),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha
        result = self._commit("PUT", f"{self.data_path}/{name}", body, "Save")
        return result.get("commit")

    def remove(self, name: str, *, sha: str | None = None, message: str = "") -> None:
        if not sha:
            current = self.get(name)
            if current is None:
                return
            sha = current.sha
        body = {
            "message": message or f"Delete {name} via admin API",
            "sha": sha,
            "branch": self.branch,
        }
        self._commit("DELETE", f"{self.data_path}/{name}", body, "Delete")

    def backup(self, name: str, content: str) -> str:
        backup_name = backup_filename(name)
        body = {
            "message": f"Backup: {name} at {datetime.now(timezone.utc).isoformat()}",
            "content": _b64encode(content),
            "branch": self.branch,
        }
        self._commit("PUT", f"{self.backup_path}/{backup_name}", body, "Backup")
        logger.info("Backed up %s to %s/%s", name, self.backup_path, backup_name)
        return backup_name

    def close(self) -> None:
        self._client.close()
