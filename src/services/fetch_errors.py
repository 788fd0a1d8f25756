from __future__ import annotations

from typing import Any


class FetchError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class TransportError(FetchError):
    """Host resolution, connection, timeout or other IO failure before a response arrived."""


class ServerError(FetchError):
    """Unsuccessful response that is worth retrying (5xx, 408, 429)."""


class ClientError(FetchError):
    """Unsuccessful response that will not succeed on retry."""


class EmptyBodyError(FetchError):
    pass


class UnexpectedFetchError(FetchError):
    pass


class FetchCancelledError(FetchError):
    pass


RETRYABLE_STATUS_CODES = frozenset({408, 429})


def error_for_status(status_code: int, *, payload: Any | None = None) -> FetchError:
    message = f"API Error: {status_code}"
    if status_code >= 500 or status_code in RETRYABLE_STATUS_CODES:
        return ServerError(message, status_code=status_code, payload=payload)
    return ClientError(message, status_code=status_code, payload=payload)


__all__ = [
    "ClientError",
    "EmptyBodyError",
    "FetchCancelledError",
    "FetchError",
    "RETRYABLE_STATUS_CODES",
    "ServerError",
    "TransportError",
    "UnexpectedFetchError",
    "error_for_status",
]
