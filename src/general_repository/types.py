"""
Shared types for the general repository.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_TIMEOUT_SEC = 30.0


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> dict[str, str]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }


@dataclass(frozen=True)
class ApiConfig:
    """Per-repository defaults: base URL, per-attempt timeout, request logs."""

    base_url: str
    timeout: float = DEFAULT_TIMEOUT_SEC
    enable_logs: bool = True


@dataclass(frozen=True)
class FileField:
    """A local file sent as one part of a multipart upload."""

    field_name: str
    file_path: str
    file_name: Optional[str] = None

    @property
    def upload_name(self) -> str:
        return self.file_name or os.path.basename(self.file_path)

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "FileField":
        """Build from the ``{"fieldName", "filePath", "fileName"}`` form."""
        return cls(
            field_name=data["fieldName"],
            file_path=data["filePath"],
            file_name=data.get("fileName"),
        )
