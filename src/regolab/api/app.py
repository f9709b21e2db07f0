from __future__ import annotations

from fastapi import FastAPI

from regolab.api.lifespan import lifespan
from regolab.api.routes.analysis import router as analysis_router
from regolab.api.routes.evaluate import router as evaluate_router
from regolab.api.routes.health import router as health_router
from regolab.api.routes.lint import router as lint_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="regolab API",
        description="Lint, evaluate and analyse Rego policies.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router, include_in_schema=False)
    app.include_router(lint_router)
    app.include_router(evaluate_router)
    app.include_router(analysis_router)

    return app
