# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from core.config_validation import validate_config
from core.providers import init_providers
from core.settings import get_settings
from operations.acceptor import WorkAcceptor
from operations.status import Sleep, StatusCoordinator
from providers.factory import Providers

# Routers
from files.router import router as files_router
from health.router import router as health_router
from operations.router import router as operations_router

log = logging.getLogger(__name__)


def create_app(providers: Optional[Providers] = None, sleep: Optional[Sleep] = None) -> FastAPI:
    """
    Build the app. `providers` / `sleep` are injected by tests; in deployment
    both come from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = providers.settings if providers is not None else get_settings()
        logging.basicConfig(level=settings.service.log_level)

        # ConfigurationError here aborts startup
        validate_config(settings)

        if providers is not None:
            app.state.providers = providers
        else:
            init_providers(app, settings)

        p = app.state.providers
        app.state.acceptor = WorkAcceptor(
            storage=p.storage,
            queue=p.queue,
            service=settings.service,
            valet=settings.valet,
        )
        app.state.coordinator = StatusCoordinator(
            storage=p.storage,
            service=settings.service,
            valet=settings.valet,
            polling=settings.polling,
            sleep=sleep,
        )
        log.info("Async operations service ready at %s", settings.service.base_url)
        yield

    app = FastAPI(title="Async Request-Reply Service", lifespan=lifespan)

    app.include_router(operations_router)
    app.include_router(files_router)
    app.include_router(health_router)

    @app.get("/")
    async def root():
        return {"status": "ok", "message": "async operations service running"}

    return app


app = create_app()


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
