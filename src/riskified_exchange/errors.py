"""Exchange error taxonomy and the result union returned by non-raising calls."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    SERIALIZATION = "serialization"
    NETWORK = "network"
    SERVER = "server"
    DESERIALIZATION = "deserialization"
    EMPTY_BODY = "empty_body"


class ExchangeError(Exception):
    """Any failure of a signed exchange. Catch this to handle every kind at once."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SerializationError(ExchangeError):
    """Payload could not be turned into JSON. Raised before any network I/O."""

    kind = ErrorKind.SERIALIZATION


class NetworkError(ExchangeError):
    """Transport failed without producing an HTTP response."""

    kind = ErrorKind.NETWORK


class ServerError(ExchangeError):
    """An HTTP response arrived with a status outside 2xx."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class DeserializationError(ExchangeError):
    """Body did not match the expected shape."""

    kind = ErrorKind.DESERIALIZATION

    def __init__(self, message: str, body: str, target_type: str):
        super().__init__(message)
        self.body = body
        self.target_type = target_type


class EmptyBodyError(ExchangeError):
    """A response or request was expected to carry a body and did not."""

    kind = ErrorKind.EMPTY_BODY


@dataclass(frozen=True)
class ExchangeResult(Generic[T]):
    """Either a parsed value or a classified error, never both. Build with success() or failure()."""
    ok: bool
    value: Optional[T] = None
    error: Optional[ExchangeError] = None

    def __post_init__(self):
        if self.ok and self.error is not None:
            raise ValueError("A successful ExchangeResult cannot hold an error")
        if not self.ok and (self.error is None or self.value is not None):
            raise ValueError("A failed ExchangeResult must hold an error and no value")

    @classmethod
    def success(cls, value: T) -> "ExchangeResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ExchangeError) -> "ExchangeResult[T]":
        return cls(ok=False, error=error)

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> Optional[T]:
        """Return the value or re-raise the held error."""
        if self.error is not None:
            raise self.error
        return self.value
