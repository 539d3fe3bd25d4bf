from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .settings import Settings, get_settings
from .storage import KeyValueStorage, get_storage
from .store import TodoStore
from .routers import todos as todos_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Add, toggle, delete and annotate todos persisted as a single list.",
    },
    {"name": "priorities", "description": "Priority levels and their display metadata."},
]


def configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("todolist").setLevel(level)


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorage] = None,
) -> FastAPI:
    """
    Build the FastAPI application around one shared TodoStore.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        storage: Storage backend override; chosen from settings when omitted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    storage = storage or get_storage(settings)
    store = TodoStore(storage, key=settings.storage_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.load()
        logger.info(
            "Loaded %d todos from %s storage (key %r)",
            store.total_count,
            storage.name,
            settings.storage_key,
        )
        yield

    app = FastAPI(
        title="Todo List",
        description="Todo list service persisting all todos as one serialized list.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
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
        return {"message": "Healthy", "backend": storage.name}

    app.include_router(todos_router.router)
    app.include_router(todos_router.priorities_router)
    return app


app = create_app()
