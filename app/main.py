import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.errors import EngineError, ErrorKind
from app.core.logging import configure_logging
from app.core.middleware import RequestIdMiddleware
from app.api.v1.router import v1_router

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.WRITER_AT_CAPACITY: 409,
    ErrorKind.STALE_STATUS: 409,
    ErrorKind.EXHAUSTED_RETRIES: 503,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TOO_MANY_ATTEMPTS: 429,
    ErrorKind.VALIDATION_FAILED: 422,
}


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    status = ERROR_STATUS.get(exc.kind, 400)
    body = exc.to_dict()
    body["request_id"] = getattr(request.state, "request_id", None)

    log = logger.warning if status >= 500 else logger.info
    log(
        "engine error",
        extra={"kind": exc.kind.value, "status": status, "request_id": body["request_id"]},
    )
    return JSONResponse(status_code=status, content=body)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    app.add_exception_handler(EngineError, engine_error_handler)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
