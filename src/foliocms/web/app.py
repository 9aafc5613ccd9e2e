from __future__ import annotations

import hmac
import json
import logging
import threading
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

from fastapi import Body, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from foliocms.application.services.deletion_protocol import GuardedDeletionProtocol
from foliocms.application.services.project_service import ProjectService
from foliocms.application.wiring import build_services
from foliocms.core.config import AppPaths, AppSettings, load_settings
from foliocms.core.errors import (
    AuthenticationError,
    ConfigurationError,
    DeletionProtocolError,
    FolioError,
    FunctionInvocationError,
    ObjectStoreError,
    ProjectNotInitializedError,
    RecordNotFoundError,
    RemoteDeletionLogicError,
    UnknownResourceGroupError,
    UploadError,
    ValidationError,
)
from foliocms.domain.content_catalog import get_content_table
from foliocms.domain.models.asset import AssetChange, UploadedFile
from foliocms.domain.models.deletion import DeletionStatus
from foliocms.domain.models.session import AdminSession
from foliocms.domain.resource_groups import all_groups
from foliocms.infrastructure.functions.purge_client import PURGE_FUNCTION_NAME
from foliocms.infrastructure.storage.object_store import PUBLIC_OBJECT_ROUTE

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    identifier: str
    password: str


class DeletionSelectRequest(BaseModel):
    group_keys: list[str]


class ReauthenticateRequest(BaseModel):
    password: str


_STATUS_BY_ERROR: tuple[tuple[type[FolioError], int], ...] = (
    (UnknownResourceGroupError, 400),
    (ValidationError, 400),
    (UploadError, 400),
    (AuthenticationError, 401),
    (RecordNotFoundError, 404),
    (DeletionProtocolError, 409),
    (FunctionInvocationError, 502),
    (RemoteDeletionLogicError, 502),
    (ProjectNotInitializedError, 503),
    (ConfigurationError, 503),
)


def status_for_error(exc: FolioError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return _jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


def _status_payload(status: DeletionStatus) -> dict[str, Any]:
    return {"ok": True, "deletion": _jsonable(status)}


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_app(paths: AppPaths, settings: AppSettings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Folio CMS", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    project_service = ProjectService(paths)
    project_service.init_project()
    services = build_services(paths, settings)

    protocols_lock = threading.Lock()
    protocols: dict[str, GuardedDeletionProtocol] = {}

    @app.exception_handler(FolioError)
    async def _folio_error_handler(request: Request, exc: FolioError) -> JSONResponse:
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    def require_session(authorization: str | None) -> AdminSession:
        session = services.sessions.get(_bearer_token(authorization))
        if session is None:
            raise HTTPException(status_code=401, detail="Admin session required.")
        return session

    def protocol_for(session: AdminSession) -> GuardedDeletionProtocol:
        with protocols_lock:
            protocol = protocols.get(session.token)
            if protocol is None:
                protocol = services.new_deletion_protocol()
                protocols[session.token] = protocol
            return protocol

    @app.post("/api/init")
    def api_init(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        require_session(authorization)
        result = project_service.init_project()
        return {
            "ok": True,
            "db_path": str(result.db_path),
            "paths_created": [str(p) for p in result.paths_created],
        }

    @app.post("/api/auth/login")
    def api_login(req: LoginRequest) -> dict[str, Any]:
        session = services.sessions.login(req.identifier, req.password)
        return {"ok": True, "token": session.token, "identifier": session.identifier, "issued_at": session.issued_at}

    @app.post("/api/auth/logout")
    def api_logout(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        with protocols_lock:
            protocols.pop(session.token, None)
        services.sessions.logout(session.token)
        return {"ok": True}

    @app.get("/api/content/{table}")
    def api_public_content(table: str) -> dict[str, Any]:
        content_table = get_content_table(table)
        if not content_table.public:
            raise HTTPException(status_code=404, detail=f"Content table not found: {table}")
        return {"ok": True, "table": table, "records": services.content.public_view(table)}

    @app.get("/api/admin/content/{table}")
    def api_admin_list_content(
        table: str,
        limit: int = Query(default=500, ge=1, le=5000),
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        require_session(authorization)
        records = services.content.list(table, limit=limit)
        return {"ok": True, "table": table, "records": [r.to_dict() for r in records]}

    @app.get("/api/admin/content/{table}/{record_id}")
    def api_admin_get_content(
        table: str,
        record_id: str,
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        require_session(authorization)
        return {"ok": True, "record": services.content.get(table, record_id).to_dict()}

    @app.post("/api/admin/content/{table}")
    async def api_admin_save_content(
        table: str,
        fields: str = Form(default="{}"),
        record_id: str | None = Form(default=None),
        clear_asset: bool = Form(default=False),
        asset_url: str | None = Form(default=None),
        file: UploadFile | None = File(default=None),
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        session = require_session(authorization)
        try:
            parsed_fields = json.loads(fields)
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail=f"fields must be a JSON object: {exc}") from exc
        if not isinstance(parsed_fields, dict):
            raise HTTPException(status_code=400, detail="fields must be a JSON object")

        asset_change: AssetChange | None = None
        if file is not None and file.filename:
            asset_change = AssetChange(
                new_file=UploadedFile(
                    data=await file.read(),
                    filename=file.filename,
                    content_type=file.content_type or "application/octet-stream",
                )
            )
        elif clear_asset:
            asset_change = AssetChange(cleared_url_field=True)
        elif asset_url:
            asset_change = AssetChange(manual_url=asset_url)

        result = services.content.save(
            table,
            parsed_fields,
            actor=session.identifier,
            record_id=record_id or None,
            asset_change=asset_change,
        )
        return {
            "ok": True,
            "action": result.action,
            "record": result.record.to_dict(),
            "asset_url": result.asset_url,
            "old_asset_deleted": result.old_asset_deleted,
        }

    @app.delete("/api/admin/content/{table}/{record_id}")
    def api_admin_delete_content(
        table: str,
        record_id: str,
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        session = require_session(authorization)
        result = services.content.delete(table, record_id, actor=session.identifier)
        return {"ok": True, "record": result.record.to_dict(), "asset_deleted": result.asset_deleted}

    @app.get("/api/admin/resource-groups")
    def api_resource_groups(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        require_session(authorization)
        return {"ok": True, "groups": _jsonable(all_groups())}

    @app.get("/api/admin/deletion")
    def api_deletion_status(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        return _status_payload(protocol_for(session).status())

    @app.post("/api/admin/deletion/select")
    def api_deletion_select(
        req: DeletionSelectRequest,
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.select(req.group_keys)
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/initiate")
    def api_deletion_initiate(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.initiate(session)
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/reauthenticate")
    def api_deletion_reauthenticate(
        req: ReauthenticateRequest,
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.reauthenticate(req.password)
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/confirm")
    def api_deletion_confirm(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.confirm()
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/cancel")
    def api_deletion_cancel(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.cancel()
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/dismiss")
    def api_deletion_dismiss(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.dismiss()
        return _status_payload(protocol.status())

    @app.post("/api/admin/deletion/retry")
    def api_deletion_retry(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        session = require_session(authorization)
        protocol = protocol_for(session)
        protocol.retry()
        return _status_payload(protocol.status())

    @app.get("/api/admin/activity")
    def api_activity(
        limit: int = Query(default=50, ge=1, le=1000),
        action_type: str | None = Query(default=None),
        authorization: str | None = Header(default=None),
    ) -> dict[str, Any]:
        require_session(authorization)
        entries = services.activity_log.recent(limit=limit, action_type=action_type)
        return {"ok": True, "entries": _jsonable(entries)}

    @app.get(PUBLIC_OBJECT_ROUTE + "/{bucket}/{path:path}")
    def api_public_object(bucket: str, path: str) -> FileResponse:
        try:
            abspath = services.object_store.object_abspath(bucket, path)
        except ObjectStoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if not abspath.is_file():
            raise HTTPException(status_code=404, detail=f"Object not found: {bucket}/{path}")
        return FileResponse(abspath)

    @app.post(f"/functions/v1/{PURGE_FUNCTION_NAME}")
    def api_purge_function(
        payload: Any = Body(default=None),
        authorization: str | None = Header(default=None),
    ) -> JSONResponse:
        expected = settings.purge_function_token
        if not expected:
            return JSONResponse(
                status_code=503,
                content={"error": "Purge function is disabled: FOLIO_PURGE_FUNCTION_TOKEN is not set."},
            )
        presented = _bearer_token(authorization) or ""
        if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
            return JSONResponse(status_code=401, content={"error": "Unauthorized"})
        status_code, body = services.purge.handle(payload)
        return JSONResponse(status_code=status_code, content=body)

    return app
