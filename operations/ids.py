from __future__ import annotations

import uuid

STATUS_ROUTE = "/status"
RESULT_SUFFIX = ".blobdata"


def new_operation_id() -> str:
    return str(uuid.uuid4())


def is_valid_operation_id(value: str) -> bool:
    # Canonical lowercase form only; result keys are case-sensitive
    try:
        return str(uuid.UUID(value)) == value
    except (ValueError, AttributeError, TypeError):
        return False


def result_key(operation_id: str) -> str:
    """Object-store key the processor writes the result to."""
    return f"{operation_id}{RESULT_SUFFIX}"


def status_url(base_url: str, operation_id: str) -> str:
    return f"{(base_url or '').rstrip('/')}{STATUS_ROUTE}/{operation_id}"
