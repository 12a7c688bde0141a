"""
Runtime settings, read from the environment.
Tests (and scripts) override them with set_settings() before the first request.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .data_admin import DataStore, GitHubDataStore, LocalDataStore

STORAGE_LOCAL = "local"
STORAGE_GITHUB = "github"
DEFAULT_ACCESS_HEADER = "CF-Access-Jwt-Assertion"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() == "true"


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    """
    Notes
    - storage "local" reads/writes data_dir; "github" commits to github_owner/github_repo.
    - access_check_enabled gates every write endpoint; reads are always open.
    - access_jwt_secret, when set, verifies the access header token instead of
      only checking that it is present.
    """

    data_dir: Path = field(default_factory=lambda: _project_root() / "data")
    storage: str = STORAGE_LOCAL
    github_owner: str = ""
    github_repo: str = ""
    github_branch: str = "main"
    github_data_path: str = "data"
    github_token: str = ""
    access_check_enabled: bool = False
    access_header_name: str = DEFAULT_ACCESS_HEADER
    access_jwt_secret: str = ""
    admin_username: str = ""
    admin_password_hash: str = ""
    cors_allow_origins: tuple[str, ...] = ("*",)
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    @classmethod
    def from_env(cls) -> Settings:
        data_dir = os.environ.get("ATLAS_DATA_DIR", "").strip()
        origins = _env_list("ATLAS_CORS_ORIGINS")
        return cls(
            data_dir=Path(data_dir) if data_dir else _project_root() / "data",
            storage=os.environ.get("ATLAS_STORAGE", STORAGE_LOCAL).strip().lower() or STORAGE_LOCAL,
            github_owner=os.environ.get("ATLAS_GITHUB_OWNER", ""),
            github_repo=os.environ.get("ATLAS_GITHUB_REPO", ""),
            github_branch=os.environ.get("ATLAS_GITHUB_BRANCH", "main"),
            github_data_path=os.environ.get("ATLAS_GITHUB_DATA_PATH", "data"),
            github_token=os.environ.get("GITHUB_TOKEN", ""),
            access_check_enabled=_env_flag("ENABLE_CLOUDFLARE_ACCESS_CHECK"),
            access_header_name=os.environ.get("CLOUDFLARE_ACCESS_HEADER_NAME", DEFAULT_ACCESS_HEADER),
            access_jwt_secret=os.environ.get("ATLAS_ACCESS_JWT_SECRET", ""),
            admin_username=os.environ.get("ATLAS_ADMIN_USERNAME", ""),
            admin_password_hash=os.environ.get("ATLAS_ADMIN_PASSWORD_HASH", ""),
            cors_allow_origins=tuple(origins) if origins else ("*",),
            max_upload_bytes=int(os.environ.get("ATLAS_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
        )

    def create_store(self) -> DataStore:
        if self.storage == STORAGE_GITHUB:
            if not (self.github_owner and self.github_repo and self.github_token):
                raise ValueError(
                    "github storage needs ATLAS_GITHUB_OWNER, ATLAS_GITHUB_REPO and GITHUB_TOKEN"
                )
            return GitHubDataStore(
                self.github_owner,
                self.github_repo,
                self.github_token,
                branch=self.github_branch,
                data_path=self.github_data_path,
            )
        if self.storage != STORAGE_LOCAL:
            raise ValueError(f"Unknown storage backend: {self.storage!r}")
        return LocalDataStore(self.data_dir)


_settings: Settings | None = None


def set_settings(settings: Settings | None) -> None:
    """Override settings (None goes back to reading the environment)."""
    global _settings
    _settings = settings


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
