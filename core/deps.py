from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Request

from core.providers import providers_from_request


# -----------------------------
# Canonical provider access
# -----------------------------

def get_providers(request: Request) -> Any:
    """
    Canonical runtime provider resolver.

    Source of truth: request.app.state.providers
    """
    return providers_from_request(request)


ProvidersDep = Annotated[Any, Depends(get_providers)]


def get_storage(request: Request) -> Any:
    return get_providers(request).storage


StorageDep = Annotated[Any, Depends(get_storage)]


# -----------------------------
# Operation services
# -----------------------------

def get_acceptor(request: Request) -> Any:
    """
    WorkAcceptor built at startup.
    EXPECTS: app.state.acceptor
    """
    try:
        return request.app.state.acceptor
    except AttributeError as exc:
        raise RuntimeError("WorkAcceptor not initialized on app.state (startup/lifespan not executed).") from exc


AcceptorDep = Annotated[Any, Depends(get_acceptor)]


def get_coordinator(request: Request) -> Any:
    """
    StatusCoordinator built at startup.
    EXPECTS: app.state.coordinator
    """
    try:
        return request.app.state.coordinator
    except AttributeError as exc:
        raise RuntimeError("StatusCoordinator not initialized on app.state (startup/lifespan not executed).") from exc


CoordinatorDep = Annotated[Any, Depends(get_coordinator)]
