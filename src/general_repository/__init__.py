"""
general_repository — authenticated HTTP repository with token refresh.
"""

from .errors import (
    AuthRefreshFailed,
    ClientError,
    ErrorKind,
    NetworkError,
    RepositoryError,
    RequestTimeoutError,
    ServerError,
)
from .repository import GeneralRepository
from .types import ApiConfig, FileField, TokenPair

__all__ = [
    "ApiConfig",
    "AuthRefreshFailed",
    "ClientError",
    "ErrorKind",
    "FileField",
    "GeneralRepository",
    "NetworkError",
    "RepositoryError",
    "RequestTimeoutError",
    "ServerError",
    "TokenPair",
]
__version__ = "0.1.0"
