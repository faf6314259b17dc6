"""Service-level exceptions translated into HTTP responses by :mod:`git_ssh_manager.app`."""

from __future__ import annotations

from typing import Any


class ServiceError(RuntimeError):
    """Base error carrying the HTTP status the boundary should answer with."""

    status_code = 500

    def __init__(self, message: str, *, details: Any = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationFailure(ServiceError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFoundError(ServiceError):
    """The requested record does not exist for the calling user."""

    status_code = 404


class UpstreamError(ServiceError):
    """An external provider rejected the request or could not be reached."""

    status_code = 400


class ConfigurationError(ServiceError):
    """The server is missing configuration needed for the operation."""

    status_code = 500


class PipelineTriggerError(ServiceError):
    """The orchestrator did not accept the pipeline run."""

    status_code = 500
