import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, NoResultFound, ProgrammingError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router
from .config import settings
from .database import AsyncSessionLocal, engine
from .errors import (
    AppError,
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    PermissionError,
    ValidationError,
    error_payload,
    resolve_error_code,
)
from .services.admin import seed_roles
from .storage.local import PUBLIC_PREFIX

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


log_level = _resolve_log_level(log_level_name)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("secure_admin")
logger.setLevel(log_level)


def _health_response(status_text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_text})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application environment=%s", settings.environment)
    if settings.debug:
        logger.warning("DEBUG=true, do not use in production")
    logger.info(
        "Blob storage: %s",
        "cloudinary" if settings.use_cloud_storage else f"local ({settings.upload_dir})",
    )

    if settings.seed_roles_on_startup:
        async with AsyncSessionLocal() as session:
            await seed_roles(session)

    yield

    await engine.dispose()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
)

if not settings.use_cloud_storage:
    UPLOAD_DIR = Path(settings.upload_dir).resolve()
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=UPLOAD_DIR, html=False),
        name="uploads",
    )

app.include_router(api_router)

SAFE_HTTP_MESSAGES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.message,
    status.HTTP_401_UNAUTHORIZED: AuthError.message,
    status.HTTP_403_FORBIDDEN: PermissionError.message,
    status.HTTP_404_NOT_FOUND: NotFoundError.message,
    status.HTTP_409_CONFLICT: ConflictError.message,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ValidationError.message,
}


def _log_error(request: Request, status_code: int, code: str, message: str, exc: Exception | None = None) -> None:
    request_id = request.headers.get("x-request-id")
    log_message = f"[{code}] path={request.url.path} request_id={request_id or 'n/a'} message={message}"
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message)


def _error_response(status_code: int, code: str, message: str, details: Any | None = None) -> JSONResponse:
    # Server-side failures never echo internals back to the caller
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        details = None
    return JSONResponse(
        status_code=status_code,
        content=error_payload(code, message, details),
    )


def _validation_details(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in errors
    ]


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    _log_error(request, exc.status_code, exc.code, exc.message, exc)
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(HTTPException)
async def handle_http_exception(
    request: Request, exc: HTTPException | StarletteHTTPException
) -> JSONResponse:
    safe_message = SAFE_HTTP_MESSAGES.get(
        exc.status_code,
        InternalError.message if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else "Request failed",
    )
    detail = exc.detail
    detail_message = detail if isinstance(detail, str) else ""
    code = resolve_error_code(exc.status_code)
    _log_error(request, exc.status_code, code, detail_message.strip() or safe_message)
    return _error_response(exc.status_code, code, safe_message)


@app.exception_handler(StarletteHTTPException)
async def handle_starlette_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return await handle_http_exception(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = "Request validation failed"
    _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, message)
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        ValidationError.code,
        message,
        _validation_details(exc.errors()),
    )


@app.exception_handler(PydanticValidationError)
async def handle_model_validation_error(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    message = "Request validation failed"
    _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, message)
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        ValidationError.code,
        message,
        _validation_details(exc.errors()),
    )


@app.exception_handler(IntegrityError)
async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    message = "Request could not be completed due to a conflict"
    _log_error(request, status.HTTP_409_CONFLICT, ConflictError.code, message, exc)
    return _error_response(status.HTTP_409_CONFLICT, ConflictError.code, message)


@app.exception_handler(NoResultFound)
async def handle_no_result_found(request: Request, exc: NoResultFound) -> JSONResponse:
    message = "Requested resource was not found"
    _log_error(request, status.HTTP_404_NOT_FOUND, NotFoundError.code, message, exc)
    return _error_response(status.HTTP_404_NOT_FOUND, NotFoundError.code, message)


@app.exception_handler(ProgrammingError)
async def handle_programming_error(request: Request, exc: ProgrammingError) -> JSONResponse:
    _log_error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        "Database not initialized. Ensure migrations are applied.",
        exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.code, InternalError.message
    )


@app.exception_handler(Exception)
async def handle_unhandled_exception(
    request: Request, exc: Exception
) -> JSONResponse:
    _log_error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        InternalError.message,
        exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.code, InternalError.message
    )


@app.get("/health", tags=["health"])
async def healthcheck() -> Response:
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Healthcheck database probe failed: %s", exc)
        return _health_response("error", status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.debug("Healthcheck passed")
    return _health_response("ok", status.HTTP_200_OK)
