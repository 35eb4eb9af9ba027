"""
Error taxonomy for repository calls.

Every failure a repository call can surface is a ``RepositoryError`` carrying
exactly one ``ErrorKind``, so callers may either catch the concrete classes or
switch on ``err.kind``.
"""

import enum
from typing import Any, Optional


class ErrorKind(enum.Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTH_REFRESH_FAILED = "auth_refresh_failed"
    CLIENT = "client"
    SERVER = "server"


class RepositoryError(Exception):
    """Base class for all repository failures."""

    kind: ErrorKind
    default_message = "Something went wrong!"

    def __init__(
        self,
        message: Optional[str] = None,
        status: Optional[int] = None,
        payload: Any = None,
    ):
        self.message = message if message is not None else self.default_message
        self.status = status
        self.payload = payload
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {
            "error": self.message,
            "kind": self.kind.value,
            "status": self.status,
        }


class NetworkError(RepositoryError):
    """Transport or socket failure."""

    kind = ErrorKind.NETWORK
    default_message = "Please check your internet and try again later."


class RequestTimeoutError(RepositoryError):
    """A single network attempt exceeded its timeout."""

    kind = ErrorKind.TIMEOUT
    default_message = (
        "Something went wrong, please check your internet and try again later."
    )


class AuthRefreshFailed(RepositoryError):
    """Got 401 and the refresh endpoint yielded no new token."""

    kind = ErrorKind.AUTH_REFRESH_FAILED
    default_message = "Failed to refresh token. Please login again."


class ClientError(RepositoryError):
    kind = ErrorKind.CLIENT

    def __init__(self, status: int, message: Optional[str] = None, payload: Any = None):
        super().__init__(message, status=status, payload=payload)


class ServerError(RepositoryError):
    kind = ErrorKind.SERVER

    def __init__(self, status: int, message: Optional[str] = None):
        if message is None:
            message = (
                "Something went wrong, please try again later."
                f"\n\nStatus Code : {status}"
            )
        super().__init__(message, status=status)
