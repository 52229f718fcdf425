from __future__ import annotations


class AsyncOpsError(RuntimeError):
    pass


class ConfigurationError(AsyncOpsError):
    """Signing key, base address or provider identity missing. Fatal at startup."""


class InvalidMode(AsyncOpsError):
    """Unrecognized OnComplete / OnPending value (client error)."""

    def __init__(self, param: str, value: str, allowed) -> None:
        self.param = param
        self.value = value
        self.allowed = list(allowed)
        super().__init__(f"Invalid {param} value {value!r}; expected one of: {', '.join(self.allowed)}")


class SubmissionFailed(AsyncOpsError):
    """Queue write failed. Nothing was handed back; caller may retry the submission."""


class StoreUnavailable(AsyncOpsError):
    """Object store could not be reached (transient)."""
