import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from board_app import settings
from board_app.api import comments, health, likes, posts
from board_app.database import engine
from board_app.exceptions import BoardError, ConflictError
from board_app.models import Base
from board_app.schemas import ErrorResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Board API started (version %s)", settings.APP_VERSION)
    yield
    await engine.dispose()
    logger.info("Board API shut down")


def error_response(status_code: int, error: str, message: str, errors=None) -> JSONResponse:
    body = ErrorResponse(status=status_code, error=error, message=message, errors=errors or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


async def handle_board_error(request: Request, exc: BoardError):
    if isinstance(exc, ConflictError):
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.error, exc.message)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        # drop the leading "body"/"query"/"path" segment
        loc = error["loc"][1:] or error["loc"]
        errors[".".join(str(part) for part in loc)] = error["msg"]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Validation Failed", "Request validation failed", errors
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    # ServerErrorMiddleware still re-raises after this, so the server logs the traceback too
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "Internal server error"
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Board API", version=settings.APP_VERSION, lifespan=lifespan)

    app.state.request_counter = health.RequestCounter()
    app.state.deployed_at = datetime.now()

    app.add_exception_handler(BoardError, handle_board_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(posts.router, prefix="/posts")
    app.include_router(comments.router, prefix="/posts/{post_id}/comments")
    app.include_router(likes.router, prefix="/posts/{post_id}/likes")
    app.include_router(comments.author_router, prefix="/comments")
    app.include_router(likes.user_router, prefix="/users")
    app.include_router(health.router, prefix="/health")
    return app


app = create_app()
