import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.cli import parse_args
from core.config import Settings, settings as default_settings
from core.exceptions import IOFailure, NotFound, ValidationError
from core.logging_config import configure_logging
from db.database import create_registry
from routers.forms import router as forms_router
from routers.inventory import router as inventory_router

logger = logging.getLogger("inventory")


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(
    cache_dir: Union[str, Path],
    settings: Optional[Settings] = None,
    server_url: Optional[str] = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        app.state.registry = create_registry(cache_dir)
        if server_url:
            logger.info("Server running at %s", server_url)
        logger.info("Cache directory: %s", app.state.registry.store.root)
        yield

    app = FastAPI(
        title="Inventory API",
        description="API for registering inventory items and their photos",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %d %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    app.add_exception_handler(ValidationError, _error_handler(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(NotFound, _error_handler(status.HTTP_404_NOT_FOUND))
    app.add_exception_handler(IOFailure, _error_handler(status.HTTP_500_INTERNAL_SERVER_ERROR))

    app.include_router(inventory_router, tags=["inventory"])
    app.include_router(forms_router, tags=["forms"])
    return app


# For `uvicorn main:app`; the CLI below builds its own app from -c
app = create_app(default_settings.cache_dir or "cache")


def main(argv=None) -> None:
    options = parse_args(argv)
    app = create_app(options.cache, server_url=f"http://{options.host}:{options.port}/")
    uvicorn.run(app, host=options.host, port=options.port, log_level="warning")


if __name__ == "__main__":
    main()
