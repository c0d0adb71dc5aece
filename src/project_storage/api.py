"""HTTP API for stored projects.

Routes (mounted under ``/api``):
    POST   /projects              - Save a project (multipart, JSON or raw body)
    GET    /projects              - List stored projects
    GET    /projects/{id}         - Download a project archive
    GET    /projects/{id}/info    - Project metadata without the payload
    DELETE /projects/{id}         - Delete a project
    GET    /storage/info          - Storage directory diagnostics

The handlers only translate between HTTP and ``ProjectStorage``. Storage
calls are blocking filesystem I/O and run in the threadpool.
"""

import base64
import binascii
import functools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from project_storage.errors import (
    InvalidProjectDataError,
    NoProjectDataError,
    ProjectStorageError,
)
from project_storage.results import ErrorKind, Failure, Loaded, NotFound, Saved
from project_storage.schemas import (
    DeleteResponse,
    ErrorResponse,
    ListResponse,
    ProjectInfoResponse,
    SaveResponse,
    StorageInfoResponse,
)
from project_storage.storage import ProjectStorage
from project_storage.utils.project_id import PROJECT_SUFFIX

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

UPLOAD_FIELD = "project"
DATA_FIELD = "projectData"
ID_FIELD = "projectId"

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.IO_FAILURE: 500,
}


def get_storage(request: Request) -> ProjectStorage:
    """Dependency returning the store the application was built with."""
    return request.app.state.storage


StorageDep = Annotated[ProjectStorage, Depends(get_storage)]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).to_json(), status_code=status_code)


def failure_response(result: NotFound | Failure) -> JSONResponse:
    return error_response(_STATUS_BY_KIND.get(result.kind, 500), result.message)


def guarded(
    endpoint: Callable[..., Awaitable[Response]],
) -> Callable[..., Awaitable[Response]]:
    """Turn any exception escaping ``endpoint`` into a JSON error response."""

    @functools.wraps(endpoint)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        try:
            return await endpoint(*args, **kwargs)
        except ProjectStorageError as e:
            return error_response(e.status_code, str(e))
        except HTTPException as e:
            return error_response(e.status_code, str(e.detail))
        except Exception as e:
            logger.exception("Error in %s", endpoint.__name__)
            return error_response(500, str(e))

    return wrapper


# ── Upload decoding ───────────────────────────────────────────────────────


def _is_present(value: Any) -> bool:
    # Absent, empty string, null and zero all count as "no data"
    return value not in (None, "", 0)


def decode_project_data(value: Any) -> bytes:
    """Convert a JSON ``projectData`` value into bytes.

    Strings are base64. Lists of byte values and serialized Node buffers
    (``{"type": "Buffer", "data": [...]}``) become those bytes. Anything
    else is stored as its JSON text.
    """
    if isinstance(value, str):
        try:
            return base64.b64decode(value)
        except (binascii.Error, ValueError) as e:
            raise InvalidProjectDataError(f"projectData is not valid base64: {e}") from e

    if isinstance(value, dict) and value.get("type") == "Buffer" and isinstance(value.get("data"), list):
        value = value["data"]

    if isinstance(value, list) and all(isinstance(b, int) and not isinstance(b, bool) for b in value):
        try:
            return bytes(value)
        except ValueError as e:
            raise InvalidProjectDataError("projectData byte values must be in range 0-255") from e

    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def _check_upload(upload: UploadFile) -> None:
    filename = upload.filename or ""
    if not filename.endswith(PROJECT_SUFFIX) and upload.content_type != "application/octet-stream":
        raise InvalidProjectDataError(f"Only {PROJECT_SUFFIX} files are allowed")


async def read_project_upload(request: Request) -> tuple[bytes, Any]:
    """Extract ``(data, project_id)`` from a save request.

    Encodings are tried in order: multipart ``project`` file, JSON (or form)
    ``projectData``, raw ``application/octet-stream`` body.
    """
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    upload: Any = None
    fields: dict[str, Any] = {}
    raw = b""

    if media_type == "multipart/form-data":
        form = await request.form()
        upload = form.get(UPLOAD_FIELD)
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
    elif media_type == "application/json" or media_type.endswith("+json"):
        body = await request.body()
        if body:
            try:
                payload = json.loads(body)
            except ValueError as e:
                raise InvalidProjectDataError(f"Invalid JSON body: {e}") from e
            if isinstance(payload, dict):
                fields = payload
    elif media_type == "application/octet-stream":
        raw = await request.body()

    project_id = fields.get(ID_FIELD) or None

    if isinstance(upload, UploadFile):
        _check_upload(upload)
        return await upload.read(), project_id
    if _is_present(fields.get(DATA_FIELD)):
        return decode_project_data(fields[DATA_FIELD]), project_id
    if raw:
        return raw, project_id
    raise NoProjectDataError("No project data provided")


# ── Routes ────────────────────────────────────────────────────────────────


@router.post("/projects")
@guarded
async def save_project(request: Request, storage: StorageDep) -> Response:
    data, project_id = await read_project_upload(request)
    result = await run_in_threadpool(storage.save, data, project_id)
    if isinstance(result, Saved):
        return JSONResponse(SaveResponse.from_result(result).to_json())
    return failure_response(result)


@router.get("/projects")
@guarded
async def list_projects(storage: StorageDep) -> Response:
    listing = await run_in_threadpool(storage.list)
    return JSONResponse(ListResponse.from_listing(listing).to_json())


@router.get("/projects/{project_id}")
@guarded
async def load_project(project_id: str, storage: StorageDep) -> Response:
    result = await run_in_threadpool(storage.load, project_id)
    if not isinstance(result, Loaded):
        return failure_response(result)
    return Response(
        content=result.data,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="{result.project_id}{PROJECT_SUFFIX}"',
            "Content-Length": str(result.size),
        },
    )


@router.get("/projects/{project_id}/info")
@guarded
async def get_project_info(project_id: str, storage: StorageDep) -> Response:
    result = await run_in_threadpool(storage.load, project_id)
    if not isinstance(result, Loaded):
        return failure_response(result)
    return JSONResponse(
        ProjectInfoResponse(project_id=result.project_id, size=result.size).to_json()
    )


@router.delete("/projects/{project_id}")
@guarded
async def delete_project(project_id: str, storage: StorageDep) -> Response:
    result = await run_in_threadpool(storage.delete, project_id)
    if isinstance(result, (NotFound, Failure)):
        return failure_response(result)
    return JSONResponse(DeleteResponse(project_id=result.project_id).to_json())


@router.get("/storage/info")
@guarded
async def get_storage_info(storage: StorageDep) -> Response:
    info = await run_in_threadpool(storage.stat_storage_dir)
    return JSONResponse(StorageInfoResponse.from_info(info).to_json())
