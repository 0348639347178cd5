"""Custom exceptions shared across services."""

from dataclasses import dataclass


@dataclass(eq=False)
class ServiceError(Exception):
    """Base exception for chat and relay failures."""

    message: str
    code: str = "service_error"
    status_code: int | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class ValidationError(ServiceError):
    """Raised when caller input is malformed; nothing is sent upstream."""

    code: str = "validation_error"


@dataclass(eq=False)
class InferenceError(ServiceError):
    """Raised when the inference server reports an error or an unusable reply."""

    code: str = "inference_error"


@dataclass(eq=False)
class UpstreamError(InferenceError):
    """Raised on a non-2xx upstream status or a malformed upstream payload."""

    code: str = "upstream_error"
    body: str | None = None


@dataclass(eq=False)
class NetworkError(ServiceError):
    """Raised when the inference server cannot be reached."""

    code: str = "network_error"
