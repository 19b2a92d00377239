"""Entry point for the Fragments service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.constants import SERVICE_NAME, SERVICE_VERSION
from common.logging_config import setup_logging
from fragments.config import Settings, load_settings
from fragments.conversion import FormatConverter
from fragments.exceptions import (
    ContentValidationError,
    ConversionError,
    EmptyBodyError,
    FragmentNotFoundError,
    FragmentsException,
    InvalidCredentialsError,
    InvalidFragmentDataError,
    InvalidFragmentError,
    MalformedContentTypeError,
    PayloadTooLargeError,
    TypeMismatchError,
    UnsupportedMediaTypeError,
    UnsupportedTypeError,
)
from fragments.fragment import FragmentStore
from fragments.repositories import FragmentBackend, MemoryBackend, SQLiteBackend
from fragments.resolver import RetrievalResolver
from fragments.routes.fragment_routes import router as fragment_router
from fragments.schemas.common import ErrorResponse, HealthResponse
from fragments.services.auth_service import AuthService
from fragments.services.fragment_service import FragmentService
from fragments.type_registry import default_registry
from fragments.validation import ContentValidator

logger = setup_logging(SERVICE_NAME)


def build_backend(settings: Settings) -> FragmentBackend:
    """
    Instantiate the storage backend selected in settings.
    """
    if settings.storage_backend == "sqlite":
        return SQLiteBackend(settings.database_path, settings.data_dir)
    return MemoryBackend()


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.build(status_code, message).model_dump(),
        headers=headers,
    )


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time
    user_id = getattr(request.state, 'user_id', None)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s "
        f"[request_id={request_id}] [user_id={user_id or 'anonymous'}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    logger.warning(
        f"Invalid credentials error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(
        status.HTTP_401_UNAUTHORIZED,
        "Unauthorized",
        headers={"WWW-Authenticate": 'Basic realm="fragments"'},
    )


async def fragment_not_found_handler(request: Request, exc: FragmentNotFoundError):
    logger.warning(
        f"Fragment not found error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def empty_body_handler(request: Request, exc: EmptyBodyError):
    logger.warning(
        f"Empty body error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def type_mismatch_handler(request: Request, exc: TypeMismatchError):
    logger.warning(
        f"Type mismatch error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def invalid_fragment_handler(request: Request, exc: FragmentsException):
    logger.warning(
        f"Invalid fragment error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def unsupported_type_handler(request: Request, exc: UnsupportedTypeError):
    logger.warning(
        f"Unsupported type error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))


async def content_validation_handler(request: Request, exc: ContentValidationError):
    logger.warning(
        f"Content validation error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))


async def unsupported_media_type_handler(request: Request, exc: UnsupportedMediaTypeError):
    logger.warning(
        f"{type(exc).__name__}: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))


async def payload_too_large_handler(request: Request, exc: PayloadTooLargeError):
    logger.warning(
        f"Payload too large error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))


async def malformed_content_type_handler(request: Request, exc: MalformedContentTypeError):
    # Unparseable Content-Type headers map to 500.
    logger.error(
        f"Malformed Content-Type error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def conversion_error_handler(request: Request, exc: ConversionError):
    logger.error(
        f"Conversion error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def fragments_exception_handler(request: Request, exc: FragmentsException):
    logger.error(
        f"Fragments exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "not found"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "method not allowed"
    else:
        message = str(exc.detail)
    logger.warning(
        f"HTTP error {exc.status_code}: {message} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def create_app(settings: Optional[Settings] = None, backend: Optional[FragmentBackend] = None) -> FastAPI:
    """
    Build the application and wire its components.

    Args:
        settings: Configuration; read from the environment when omitted
        backend: Storage backend override; built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or load_settings()
    registry = default_registry()
    backend = backend or build_backend(settings)

    store = FragmentStore(backend, registry)
    fragment_service = FragmentService(
        store=store,
        validator=ContentValidator(registry),
        converter=FormatConverter(registry),
        resolver=RetrievalResolver(registry),
        max_fragment_size=settings.max_fragment_size,
    )

    app = FastAPI(
        title="Fragments",
        description="Typed fragment store with on-read format conversion",
        version=SERVICE_VERSION,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.backend = backend
    app.state.fragment_service = fragment_service
    app.state.auth_service = AuthService(settings.htpasswd_file)

    app.middleware("http")(log_requests)

    app.add_exception_handler(InvalidCredentialsError, invalid_credentials_handler)
    app.add_exception_handler(FragmentNotFoundError, fragment_not_found_handler)
    app.add_exception_handler(EmptyBodyError, empty_body_handler)
    app.add_exception_handler(TypeMismatchError, type_mismatch_handler)
    app.add_exception_handler(InvalidFragmentError, invalid_fragment_handler)
    app.add_exception_handler(InvalidFragmentDataError, invalid_fragment_handler)
    app.add_exception_handler(UnsupportedTypeError, unsupported_type_handler)
    app.add_exception_handler(ContentValidationError, content_validation_handler)
    app.add_exception_handler(UnsupportedMediaTypeError, unsupported_media_type_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_handler)
    app.add_exception_handler(MalformedContentTypeError, malformed_content_type_handler)
    app.add_exception_handler(ConversionError, conversion_error_handler)
    app.add_exception_handler(FragmentsException, fragments_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(fragment_router)

    @app.get("/", response_model=HealthResponse)
    async def root(request: Request):
        """
        Root endpoint for health check. Clients should not cache it.
        """
        logger.debug("Health check requested")
        response = HealthResponse(service=SERVICE_NAME, version=SERVICE_VERSION)
        return JSONResponse(
            content=response.model_dump(),
            headers={"Cache-Control": "no-cache"},
        )

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for Docker healthcheck.
        """
        return {"status": "healthy", "service": SERVICE_NAME}

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"Fragments service starting up [backend={settings.storage_backend}] "
            f"[max_size={settings.max_fragment_size}]"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Fragments service shutting down...")
        backend.close()

    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    settings = load_settings()
    uvicorn.run(
        "fragments.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
