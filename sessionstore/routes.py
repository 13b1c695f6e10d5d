import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.memory_routes import router as memory_router
from .deps import get_session_store
from .errors import ErrorResponse, InvalidArgument, StoreUnavailable
from .logging_config import logger
from .models import HealthStatus
from .redis_client import close_redis_client
from .settings import settings
from .store import SessionStore


async def handle_store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.warning("Store unavailable while serving %s %s: %s", request.method, request.url.path, exc)
    payload = ErrorResponse(
        error="service_unavailable",
        message="Session store is unavailable, try again later",
        code=status.HTTP_503_SERVICE_UNAVAILABLE,
        details={"operation": exc.operation},
    )
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload.model_dump())


async def handle_invalid_argument(request: Request, exc: InvalidArgument) -> JSONResponse:
    payload = ErrorResponse(
        error="bad_request",
        message=str(exc),
        code=status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload.model_dump())


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    error_id = uuid.uuid4().hex
    logger.exception(
        "Unhandled error %s %s (error_id=%s)",
        request.method,
        request.url.path,
        error_id,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "internal_error",
            "message": "Internal server error, please try again later",
            "error_id": error_id,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Session store admin API starting (environment=%s)", settings.environment)
    yield
    await close_redis_client()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chat Session Store",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(StoreUnavailable, handle_store_unavailable)
    app.add_exception_handler(InvalidArgument, handle_invalid_argument)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health", response_model=HealthStatus)
    async def health(store: SessionStore = Depends(get_session_store)) -> JSONResponse:
        result = await store.health_check()
        code = status.HTTP_200_OK if result.status == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(status_code=code, content=result.model_dump())

    app.include_router(memory_router)
    return app


__all__ = ["create_app"]
