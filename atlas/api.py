"""
REST API for the atlas backend.
Thin wrappers around the build lab calculator, the wiki catalog and the data admin service.
"""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Generator

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from atlas.auth import AccessDeniedError, authenticate_admin, check_write_access, create_access_token
from atlas.build_lab import BuildCatalog, BuildLabSession, VirtueProfile, compute_metrics
from atlas.build_lab.archetypes import classify_pact, classify_weapon, parse_pact_style, parse_weapon_style
from atlas.build_lab.catalog import BUILDS_FILENAME
from atlas.build_lab.metrics import base_metrics
from atlas.build_lab.modifiers import list_styles
from atlas.config import get_settings
from atlas.data_admin import (
    DataAdminError,
    DataAdminService,
    DataFileExistsError,
    DataFileNotFoundError,
    InvalidFilenameError,
    InvalidJSONError,
    StorageError,
)
from atlas.error_handling import setup_error_handlers
from atlas.wiki import WIKI_CATEGORIES, category_filename, entry_title, extract_entries, filter_by_tag, search_entries

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[DataAdminError], int], ...] = (
    (InvalidFilenameError, 400),
    (InvalidJSONError, 400),
    (DataFileNotFoundError, 404),
    (DataFileExistsError, 409),
    (StorageError, 502),
)


def _status_for(exc: DataAdminError) -> int:
    for exc_type, status in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


@contextmanager
def admin_service() -> Generator[DataAdminService, None, None]:
    """Yield a service over the configured store; data admin errors become HTTP errors."""
    try:
        store = get_settings().create_store()
    except ValueError as e:
        logger.error("Storage is misconfigured: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e
    try:
        yield DataAdminService(store)
    except DataAdminError as e:
        status = _status_for(e)
        if status >= 500:
            logger.error("Storage failure: %s", e)
        else:
            logger.warning("Rejected data request: %s", e)
        raise HTTPException(status_code=status, detail=str(e)) from e
    finally:
        store.close()


def require_write_access(request: Request) -> str | None:
    try:
        return check_write_access(get_settings(), request.headers)
    except AccessDeniedError as e:
        logger.warning("Write denied on %s: %s", request.url.path, e)
        raise HTTPException(status_code=403, detail=str(e)) from e


def _load_catalog(service: DataAdminService) -> BuildCatalog:
    data = service.read_data(BUILDS_FILENAME)
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail=f"{BUILDS_FILENAME} must be an object")
    return BuildCatalog.from_dict(data)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logger.info(
        "Starting atlas API (storage=%s, access check %s)",
        settings.storage,
        "ENABLED" if settings.access_check_enabled else "DISABLED",
    )
    yield
    logger.info("Atlas API stopped")


# ---------- FastAPI app ----------
app = FastAPI(
    title="SoulFrame Atlas API",
    description="Build lab metrics, wiki catalog reads and admin editing of the wiki data files",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_allow_origins),
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", get_settings().access_header_name],
    max_age=86400,
)
setup_error_handlers(app)


# ---------- Request models ----------


class LoginRequest(BaseModel):
    username: str
    password: str


class SaveRequest(BaseModel):
    # Both optional so a missing field gets the API's own 400, not a schema 422.
    name: str | None = None
    content: Any = None


class DeleteRequest(BaseModel):
    name: str | None = None


class MetricsRequest(BaseModel):
    virtues: Any = Field(None, description="courage/grace/spirit, 0-100 each; anything else counts as 0")
    pact_id: str | None = Field(None, description="Pact id from builds.json")
    weapon_id: str | None = Field(None, description="Weapon id from builds.json")
    pact: dict[str, Any] | None = Field(None, description="Inline pact record (role/name/id)")
    weapon: dict[str, Any] | None = Field(None, description="Inline weapon record (type/category/role/name/id)")
    pact_style: str | None = Field(None, description="Explicit pact style key; overrides pact/pact_id")
    weapon_style: str | None = Field(None, description="Explicit weapon style key; overrides weapon/weapon_id")


def _has_content(content: Any) -> bool:
    return content is not None and content != ""


# ---------- Admin endpoints ----------


@app.get("/api/admin/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/api/admin/login")
def login(req: LoginRequest) -> dict[str, Any]:
    """Admin login. Returns a bearer token accepted by the write endpoints."""
    if not authenticate_admin(get_settings(), req.username, req.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return {"success": True, "token": create_access_token(req.username)}


@app.get("/api/admin/data/list")
def list_data_files() -> dict[str, Any]:
    with admin_service() as service:
        files = service.list_files()
    return {"success": True, "files": [f.to_dict() for f in files]}


@app.get("/api/admin/data/read")
def read_data_file(name: str | None = None) -> dict[str, Any]:
    if not name:
        raise HTTPException(status_code=400, detail="Missing filename parameter")
    with admin_service() as service:
        result = service.read_file(name)
    return {"success": True, **result}


@app.post("/api/admin/data/save")
def save_data_file(
    req: SaveRequest,
    _writer: str | None = Depends(require_write_access),
) -> dict[str, Any]:
    if not req.name or not _has_content(req.content):
        raise HTTPException(status_code=400, detail="Missing name or content")
    with admin_service() as service:
        result = service.save_file(req.name, req.content)
    return {"success": True, **result.to_dict()}


def _upload(name: Any, content: Any) -> dict[str, Any]:
    with admin_service() as service:
        result = service.upload_file(name, content)
    return {"success": True, **result.to_dict()}


@app.post("/api/admin/data/upload")
async def upload_data_file(
    request: Request,
    _writer: str | None = Depends(require_write_access),
) -> dict[str, Any]:
    """Create a new data file from a JSON body ({name, content}) or a multipart `file` upload."""
    max_bytes = get_settings().max_upload_bytes
    content_type = request.headers.get("content-type", "")
    name: Any = None
    content: Any = None

    if "application/json" in content_type:
        raw = await request.body()
        if len(raw) > max_bytes:
            raise HTTPException(status_code=413, detail="Upload too large")
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid request body: {e}") from e
        if isinstance(body, dict):
            name, content = body.get("name"), body.get("content")
    elif "multipart/form-data" in content_type:
        form = await request.form()
        name = form.get("name") or None
        upload = form.get("file")
        if isinstance(upload, UploadFile):
            data = await upload.read(max_bytes + 1)
            if len(data) > max_bytes:
                raise HTTPException(status_code=413, detail="Upload too large")
            try:
                content = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise HTTPException(status_code=400, detail="Uploaded file must be UTF-8 text") from e
            name = name or upload.filename
    else:
        raise HTTPException(status_code=400, detail="Unsupported content type")

    if not name or not _has_content(content):
        raise HTTPException(status_code=400, detail="Missing name or content")
    return await run_in_threadpool(_upload, name, content)


@app.delete("/api/admin/data/delete")
def delete_data_file(
    name: str | None = Query(None),
    body: DeleteRequest | None = Body(None),
    _writer: str | None = Depends(require_write_access),
) -> dict[str, Any]:
    filename = name or (body.name if body is not None else None)
    if not filename:
        raise HTTPException(status_code=400, detail="Missing name")
    with admin_service() as service:
        backup = service.delete_file(filename)
    return {"success": True, "message": "File deleted successfully", "backup": backup}


# ---------- Build lab ----------


@app.get("/build-lab/styles")
def get_styles() -> dict[str, Any]:
    """All pact and weapon style keys with their modifier vectors."""
    return list_styles()


@app.get("/build-lab/catalog")
def get_build_catalog() -> dict[str, Any]:
    with admin_service() as service:
        catalog = _load_catalog(service)
    return catalog.to_dict()


@app.get("/build-lab/builds/{build_id}")
def get_build(build_id: str) -> dict[str, Any]:
    """A preset build with the metrics it produces."""
    with admin_service() as service:
        catalog = _load_catalog(service)
    session = BuildLabSession(catalog=catalog)
    try:
        build = session.select_build(build_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Build not found: {build_id}") from None
    return {"build": build.to_dict(), **session.snapshot()}


@app.post("/build-lab/metrics")
def post_metrics(req: MetricsRequest) -> dict[str, Any]:
    """
    Compute metrics for a virtue spread. Styles come from (first match wins):
    explicit style keys, inline pact/weapon records, then catalog ids.
    """
    pact_style = parse_pact_style(req.pact_style) if req.pact_style else None
    if req.pact_style and pact_style is None:
        raise HTTPException(status_code=400, detail=f"Unknown pact style: {req.pact_style}")
    weapon_style = parse_weapon_style(req.weapon_style) if req.weapon_style else None
    if req.weapon_style and weapon_style is None:
        raise HTTPException(status_code=400, detail=f"Unknown weapon style: {req.weapon_style}")

    pact = req.pact
    weapon = req.weapon
    needs_catalog = (pact_style is None and pact is None and req.pact_id) or (
        weapon_style is None and weapon is None and req.weapon_id
    )
    if needs_catalog:
        with admin_service() as service:
            try:
                catalog = _load_catalog(service)
            except DataFileNotFoundError:
                logger.info("No %s; ids resolve to no selection", BUILDS_FILENAME)
                catalog = BuildCatalog()
        if pact is None:
            pact = catalog.find_pact(req.pact_id)
        if weapon is None:
            weapon = catalog.find_weapon(req.weapon_id)

    if pact_style is None:
        pact_style = classify_pact(pact)
    if weapon_style is None:
        weapon_style = classify_weapon(weapon)

    virtues = VirtueProfile.coerce(req.virtues).clamped()
    metrics = compute_metrics(virtues, pact_style, weapon_style)
    return {
        "virtues": virtues.to_dict(),
        "pact_style": pact_style.value,
        "weapon_style": weapon_style.value,
        "base": base_metrics(virtues, weapon_style),
        "metrics": metrics.to_dict(),
    }


# ---------- Wiki ----------


@app.get("/wiki/{category}")
def get_wiki_entries(
    category: str,
    q: str | None = Query(None, description="Case-insensitive text search"),
    tag: str | None = Query(None, description="Tag filter ('all' for none)"),
) -> dict[str, Any]:
    if category not in WIKI_CATEGORIES:
        raise HTTPException(status_code=404, detail=f"Unknown wiki category: {category}")
    with admin_service() as service:
        data = service.read_data(category_filename(category))
    entries = search_entries(filter_by_tag(extract_entries(data, category), tag), q)
    return {
        "category": category,
        "count": len(entries),
        "entries": [{"title": entry_title(e), "entry": e} for e in entries],
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("atlas.api:app", host="127.0.0.1", port=8000, log_level="info")
