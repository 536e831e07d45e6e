"""
Standalone FastAPI app wiring for PlaceGate.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import placegate
import placegate.config as config
from placegate.db import DB, init_db
from placegate.errors import NotFound, ValidationIssue
from app.middleware import configure_middleware
from app.routes.health import router as health_router
from app.routes.resolve import router as resolve_router
from app.routes.root import router as root_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    try:
        yield
    finally:
        if DB.engine:
            DB.engine.dispose()


async def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    config.logger.info(
        "resolve_not_found",
        extra={"path": request.url.path, "kind": exc.kind},
    )
    return JSONResponse(
        status_code=404,
        content={
            "status": "error",
            "error": "not_found",
            "kind": exc.kind,
            "field": exc.field,
            "message": str(exc),
        },
    )


async def _validation_issue_handler(request: Request, exc: ValidationIssue) -> JSONResponse:
    config.logger.info(
        "request_validation_error",
        extra={"path": request.url.path, "field": exc.field, "error_type": exc.error_type},
    )
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "error": "validation_error",
            "field": exc.field,
            "error_type": exc.error_type,
            "message": str(exc),
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="PlaceGate",
        version=placegate.__version__,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    configure_middleware(app)
    app.add_exception_handler(NotFound, _not_found_handler)
    app.add_exception_handler(ValidationIssue, _validation_issue_handler)

    app.include_router(health_router)
    app.include_router(root_router)
    app.include_router(resolve_router)
    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8080")))
