from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import JWTTokenVerifier, TokenVerifier
from .db import SQLTaskRepository, create_db_engine
from .errors import InvalidArgument, ServiceError, Unauthenticated
from .routers import tasks as tasks_router
from .service import TaskService
from .settings import Settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Admin-only CRUD operations for patient tasks with id pagination.",
    },
]


# PUBLIC_INTERFACE
def create_app(settings: Settings, verifier: Optional[TokenVerifier] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The database engine, the schema bootstrap and the TaskService are set up
    in the application lifespan, once, before the first request is served.
    A schema bootstrap failure aborts startup.

    Args:
        settings: loaded application settings.
        verifier: token verifier to use; defaults to a JWT verifier built from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = create_db_engine(settings)
        repository = SQLTaskRepository(engine)
        try:
            repository.create_schema()
        except Exception:
            logger.critical("Failed to create the task schema", exc_info=True)
            engine.dispose()
            raise
        app.state.task_service = TaskService(
            repository=repository,
            verifier=verifier or JWTTokenVerifier.from_settings(settings),
        )
        logger.info("Tasks service ready")
        try:
            yield
        finally:
            engine.dispose()

    app = FastAPI(
        title="Tasks Service",
        description="Admin-only registry of patient tasks backed by a relational database.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """
        Render a ServiceError as ``{"error": <code>, "message": <text>}``.
        """
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Report malformed request shapes as InvalidArgument.

        Response format:
            {
                "error": "InvalidArgument",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=InvalidArgument.status_code,
            content={
                "error": InvalidArgument.code,
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy"}

    app.include_router(tasks_router.router)
    return app
