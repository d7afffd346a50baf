"""Normalized failures raised by the remote gateway."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

CONNECTIVITY_MESSAGE = "Could not connect to the server"
DEFAULT_SERVICE_MESSAGE = "An unexpected error occurred"
DEFAULT_LOCAL_MESSAGE = "Unknown error"


class ErrorBody(BaseModel):
    """Error document returned by the service on non-2xx responses."""

    model_config = ConfigDict(extra="ignore")

    status: int | None = None
    error: str | None = None
    message: str | None = None
    details: list[str] | None = None
    timestamp: str | None = None
    path: str | None = None

    @field_validator("details", mode="before")
    @classmethod
    def _stringify_details(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        if isinstance(value, str):
            return [value]
        return value


class GatewayError(Exception):
    """Base failure with the uniform ``http_status``/``message``/``raw_details`` shape."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        http_status: int = 0,
        raw_details: tuple[str, ...] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.raw_details = raw_details

    def to_dict(self) -> dict[str, object]:
        return {
            "httpStatus": self.http_status,
            "message": self.message,
            "rawDetails": list(self.raw_details) if self.raw_details is not None else None,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(http_status={self.http_status}, message={self.message!r})"


class TransportError(GatewayError):
    """The request was sent but no response arrived."""

    kind = "transport"

    def __init__(self, message: str = CONNECTIVITY_MESSAGE) -> None:
        super().__init__(message, http_status=0)


class ServiceError(GatewayError):
    """The service answered with a failure status."""

    kind = "service"

    def __init__(
        self,
        message: str,
        *,
        http_status: int,
        raw_details: tuple[str, ...] | None = None,
        body: ErrorBody | None = None,
    ) -> None:
        super().__init__(message, http_status=http_status, raw_details=raw_details)
        self.body = body

    @classmethod
    def from_body(cls, http_status: int, body: ErrorBody | None) -> "ServiceError":
        message = (body.message if body else None) or DEFAULT_SERVICE_MESSAGE
        details = tuple(body.details) if body and body.details else None
        if details:
            message = f"{message}: {', '.join(details)}"
        return cls(message, http_status=http_status, raw_details=details, body=body)


class LocalFailure(GatewayError):
    """Anything that failed on this side before the request went out."""

    kind = "local"

    def __init__(self, message: str) -> None:
        super().__init__(message or DEFAULT_LOCAL_MESSAGE, http_status=0)
