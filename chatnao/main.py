"""
FastAPI application bootstrap with: \n
- An application factory (`create_app`) that owns the settings and every collaborator \n
- Lifespan-managed database setup (schema creation, session factory binding, engine disposal) \n
- CORS configured for the frontend \n
- Exception handlers that turn `ChatNaoError` and request validation failures into `{error, code}` bodies \n

Environment contract (from `Settings`): \n
- API_KEY: required; startup fails with `ConfigurationError` without it. \n
- FRONTEND_URL: allowed CORS origin. \n
- LOG_LEVEL: root logging level. \n
- HOST / PORT: bind address used by `run()` (the `chatnao-api` script). \n
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from chatnao.api.aws_bucket_funcs.funcs import AudioStorage
from chatnao.api.fast_api import router
from chatnao.api.llm_rewriter import LLMRewriter, Rewriter
from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.config.config import Settings, load_settings
from chatnao.database.config.connection_engine import bind_engine, build_engine, init_schema
from chatnao.errors import (
    AuthError,
    ChatNaoError,
    ExternalServiceError,
    NoContent,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""

ERROR_STATUS = [
    (ValidationError, 400),
    (AuthError, 401),
    (NotFoundError, 404),
    (NoContent, 409),
    (ExternalServiceError, 502),
]
"""HTTP status for each error family; anything else is a 500."""


def status_for(exc: ChatNaoError) -> int:
    for error_cls, status in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status
    return 500


async def chatnao_error_handler(request: Request, exc: ChatNaoError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
    err = ValidationError("Invalid request", fields=fields)
    return JSONResponse(status_code=400, content=err.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    *,
    rewriter: Optional[Rewriter] = None,
    audio_storage: Optional[AudioStorage] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    settings : Settings | None
        Application settings; loaded from the environment when omitted.
    rewriter : Rewriter | None
        Rewrite capability; defaults to `LLMRewriter(settings)`.
    audio_storage : AudioStorage | None
        Audio clip storage; defaults to an S3-backed `AudioStorage(settings)`.
    engine : Engine | None
        Database engine; built from the settings when omitted.

    Notes
    -----
    - On startup: creates missing tables and binds the session factory to the engine.
    - On shutdown: disposes the engine's connection pool when the engine was built here.

    Raises
    ------
    ConfigurationError
        If the settings cannot be loaded.
    """
    settings = settings or load_settings()
    logging.getLogger().setLevel(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_engine = engine or build_engine(settings)
        init_schema(db_engine)
        bind_engine(db_engine)

        app.state.settings = settings
        app.state.rewriter = rewriter or LLMRewriter(settings)
        app.state.audio_storage = audio_storage or AudioStorage(settings)
        app.state.enc = EncryptionDec(rounds=settings.BCRYPT_ROUNDS)
        logger.info("ChatNao API ready (database: %s)", db_engine.url.get_backend_name())

        try:
            yield
        finally:
            if engine is None:
                db_engine.dispose()
            logger.info("ChatNao API shut down")

    app = FastAPI(title="ChatNao API", lifespan=lifespan)

    # -----------------------
    # CORS configuration
    # -----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------
    # Error mapping
    # -----------------------
    app.add_exception_handler(ChatNaoError, chatnao_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # -----------------------
    # API routes
    # -----------------------
    app.include_router(router)

    return app


def run():
    """Entry point for the `chatnao-api` script."""
    settings = load_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run("chatnao.main:create_app", factory=True, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
