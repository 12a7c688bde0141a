"""
GitHub contents API store, run against an in-memory fake repository via httpx.MockTransport.
"""
from __future__ import annotations

import base64
import hashlib
import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from atlas.data_admin import DataAdminService, GitHubDataStore, StorageError

CONTENTS_PREFIX = "/repos/atlas-org/atlas-data/contents/"


def _sha(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def _wrapped_b64(text: str) -> str:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"


class FakeGitHub:
    """Just enough of the contents API: directory listing, get, put and delete by path."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = dict(files)
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "boom"})
        if request.url.host == "raw.example":
            return httpx.Response(200, text=self.files["data/" + request.url.path.lstrip("/")])
        assert request.url.path.startswith(CONTENTS_PREFIX)
        path = request.url.path[len(CONTENTS_PREFIX):]
        if request.method == "GET":
            return self._get(path)
        body = json.loads(request.content)
        if request.method == "PUT":
            if path in self.files and body.get("sha") != _sha(self.files[path]):
                return httpx.Response(409, json={"message": "sha mismatch"})
            created = path not in self.files
            self.files[path] = base64.b64decode(body["content"]).decode("utf-8")
            return httpx.Response(201 if created else 200, json={"commit": {"sha": "c0ffee", "message": body["message"]}})
        if request.method == "DELETE":
            if body.get("sha") != _sha(self.files.get(path, "")):
                return httpx.Response(409, json={"message": "sha mismatch"})
            del self.files[path]
            return httpx.Response(200, json={"commit": {"sha": "dead"}})
        return httpx.Response(405)

    def _get(self, path: str) -> httpx.Response:
        if path == "data":
            listing = [
                {
                    "name": p.split("/", 1)[1],
                    "type": "file",
                    "size": len(text),
                    "download_url": "https://raw.example/" + p.split("/", 1)[1],
                }
                for p, text in sorted(self.files.items())
                if p.count("/") == 1
            ]
            listing.append({"name": "backups", "type": "dir", "size": 0})
            return httpx.Response(200, json=listing)
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        text = self.files[path]
        return httpx.Response(200, json={"content": _wrapped_b64(text), "sha": _sha(text), "size": len(text)})


WEAPONS = json.dumps([{"id": "ash-staff", "name": "Ash Staff", "category": "Staff"}] * 30)


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub({"data/weapons.json": WEAPONS, "data/notes.md": "# notes"})


@pytest.fixture
def store(github: FakeGitHub):
    s = GitHubDataStore("atlas-org", "atlas-data", "t0ken", transport=httpx.MockTransport(github))
    yield s
    s.close()


def test_sends_auth_headers(store, github):
    store.get("weapons.json")
    request = github.requests[0]
    assert request.headers["Authorization"] == "Bearer t0ken"
    assert request.headers["User-Agent"] == "SoulFrame-Atlas-Admin"
    assert request.url.params["ref"] == "main"


def test_get_decodes_wrapped_base64(store):
    stored = store.get("weapons.json")
    assert stored.content == WEAPONS
    assert stored.sha == _sha(WEAPONS)


def test_get_missing(store):
    assert store.get("absent.json") is None


def test_api_error_is_storage_error(store, github):
    github.fail_with = 500
    with pytest.raises(StorageError, match="500"):
        store.get("weapons.json")


def test_transport_error_is_storage_error():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    s = GitHubDataStore("atlas-org", "atlas-data", "t0ken", transport=httpx.MockTransport(refuse))
    with pytest.raises(StorageError, match="request failed"):
        s.get("weapons.json")


def test_list_files_skips_dirs_and_non_json(store):
    files = store.list_files()
    assert [f.name for f in files] == ["weapons.json"]
    assert files[0].record_count == 30
    assert files[0].valid is True


def test_save_update_backs_up_then_commits_with_sha(store, github):
    result = DataAdminService(store).save_file("weapons.json", "[]")
    assert result.created is False
    assert result.commit["sha"] == "c0ffee"
    assert github.files["data/weapons.json"] == "[]"
    backup_path = "data/backups/" + result.backup
    assert github.files[backup_path] == WEAPONS
    puts = [r for r in github.requests if r.method == "PUT"]
    assert [r.url.path for r in puts] == [CONTENTS_PREFIX + backup_path, CONTENTS_PREFIX + "data/weapons.json"]
    assert json.loads(puts[1].content)["sha"] == _sha(WEAPONS)


def test_save_new_file_has_no_sha(store, github):
    result = DataAdminService(store).save_file("pacts", '[{"id": "warden"}]')
    assert result.created is True
    put = next(r for r in github.requests if r.method == "PUT")
    body = json.loads(put.content)
    assert "sha" not in body
    assert body["branch"] == "main"
    assert body["message"] == "Create pacts.json via admin API"
    assert github.files["data/pacts.json"] == '[{"id": "warden"}]'


def test_rejected_commit_is_storage_error(store, github):
    with pytest.raises(StorageError, match="Save failed: 409"):
        store.put("weapons.json", "[]", sha="stale")


def test_delete_backs_up_and_removes(store, github):
    backup = DataAdminService(store).delete_file("weapons.json")
    assert "data/weapons.json" not in github.files
    assert github.files["data/backups/" + backup] == WEAPONS
    delete = next(r for r in github.requests if r.method == "DELETE")
    assert json.loads(delete.content)["sha"] == _sha(WEAPONS)


def test_remove_without_sha_looks_it_up(store, github):
    store.remove("weapons.json")
    assert "data/weapons.json" not in github.files
