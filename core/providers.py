from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request

from core.settings import Settings
from providers.factory import Providers, get_providers


def providers_from_request(request: Request) -> Providers:
    """
    Canonical provider accessor for ALL routers.

    Providers are attached once during app startup as request.app.state.providers.
    """
    try:
        return request.app.state.providers
    except Exception as exc:
        raise RuntimeError("Providers not initialized on app.state (startup/lifespan not executed).") from exc


def init_providers(app: FastAPI, settings: Optional[Settings] = None) -> Providers:
    """
    Canonical provider initialization.
    Called once during app startup/lifespan. Attaches Providers onto app.state.
    """
    app.state.providers = get_providers(settings)
    return app.state.providers
