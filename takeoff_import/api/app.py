from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from ..db.persistence import ComponentStore
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary
from ..models.config_models import ImportConfig
from ..models.context import ImportContext
from ..models.fields import ErrorKind
from ..models.import_result import ImportErrorDetail, ImportResult
from ..services.orchestrator import PERSISTENCE_FAILURE_REASON, import_takeoff
from ..services.summary import render_summary_line

"""HTTP boundary for takeoff imports.

POST /import-takeoff  {projectId, csvContent, userId}
    Authorization: Bearer <token>
    401 missing / invalid token, 403 no access to the project,
    400 malformed body, 200 with the ImportResult otherwise
    (validation failures included, success=false).
GET  /health

Token verification and project access are injected so the app can sit behind
any identity provider; the store is opened per request by persistence_factory
(None = dry run).
"""

__all__ = [
    "AuthError",
    "ImportRequest",
    "CORS_HEADERS",
    "create_app",
]

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

MISSING_AUTH = "Missing authorization header"
INVALID_TOKEN = "Invalid or expired authentication token"
ACCESS_DENIED = "Project not found or access denied"

Authenticator = Callable[[str], str]
Authorizer = Callable[[str, str], bool]
PersistenceFactory = Callable[[], AbstractContextManager[ComponentStore]]


class AuthError(Exception):
    """Raised by an authenticator for a missing, invalid or expired token."""


class ImportRequest(BaseModel):
    projectId: str
    csvContent: str
    userId: str | None = None


def _error_response(status_code: int, reason: str, row: int | None = None) -> JSONResponse:
    error: dict[str, object] = {"reason": reason}
    if row is not None:
        error = {"row": row, "column": None, "reason": reason}
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "errors": [error]},
        headers=CORS_HEADERS,
    )


def _reject_all_tokens(token: str) -> str:
    raise AuthError("no authenticator configured")


def _allow_all(user_id: str, project_id: str) -> bool:
    return True


def create_app(
    config: ImportConfig | None = None,
    authenticate: Authenticator | None = None,
    authorize: Authorizer | None = None,
    persistence_factory: PersistenceFactory | None = None,
) -> FastAPI:
    """Build the import API.

    Args:
        config: Import configuration (built-in defaults if None)
        authenticate: token -> user id; raises AuthError when the token is not
            accepted. Default rejects every token.
        authorize: (user_id, project_id) -> bool. Default allows every project.
        persistence_factory: returns a context manager yielding a ComponentStore
            for one request. None = dry run, nothing is written.
    """
    cfg = config or ImportConfig.default()
    authenticate = authenticate or _reject_all_tokens
    authorize = authorize or _allow_all

    app = FastAPI(title="Takeoff Import API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.middleware("http")
    async def apply_cors_headers(request: Request, call_next):
        """Answer bare preflights and stamp CORS headers on every response."""
        if request.method == "OPTIONS":
            return PlainTextResponse("ok", headers=CORS_HEADERS)
        response = await call_next(request)
        for k, v in CORS_HEADERS.items():
            response.headers.setdefault(k, v)
        return response

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in e["loc"][1:]) or "body" for e in exc.errors())
        return _error_response(400, f"Invalid request payload: {fields}", row=0)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_: Request, exc: Exception):
        logger.exception("unhandled error in import API")
        return _error_response(500, "Internal server error")

    def require_user(authorization: str | None = Header(default=None)) -> str:
        if not authorization:
            raise HTTPException(status_code=401, detail=MISSING_AUTH)
        token = authorization.removeprefix("Bearer ").strip()
        try:
            user_id = authenticate(token)
        except AuthError as e:
            logger.info("token rejected: %s", e)
            raise HTTPException(status_code=401, detail=INVALID_TOKEN) from e
        if not user_id:
            raise HTTPException(status_code=401, detail=INVALID_TOKEN)
        return user_id

    @app.get("/health", tags=["system"])
    def health():
        return {"status": "ok", "mock_mode": persistence_factory is None}

    @app.post("/import-takeoff", tags=["import"])
    def import_takeoff_endpoint(payload: ImportRequest, user_id: str = Depends(require_user)):
        if not authorize(user_id, payload.projectId):
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)
        if payload.userId and payload.userId != user_id:
            # components are always attributed to the token's user
            logger.warning("body userId %s ignored for authenticated user %s", payload.userId, user_id)

        context = ImportContext(project_id=payload.projectId, user_id=user_id, source="api")
        error_log = ErrorLogBuffer(cfg.error_log_dir)
        try:
            store_cm = persistence_factory() if persistence_factory is not None else nullcontext(None)
            with store_cm as store:
                result = import_takeoff(
                    payload.csvContent,
                    context,
                    persistence=store,
                    config=cfg,
                    error_log=error_log,
                    show_progress=False,
                )
        except Exception:
            # store could not be opened or closed cleanly
            logger.exception("persistence unavailable project=%s", payload.projectId)
            result = ImportResult.failed(
                [ImportErrorDetail(0, None, PERSISTENCE_FAILURE_REASON, ErrorKind.PERSISTENCE_ERROR)]
            )
        error_log.flush()
        log_summary(render_summary_line(result)[len("SUMMARY "):])
        return JSONResponse(status_code=200, content=result.to_dict(), headers=CORS_HEADERS)

    return app
