"""
Header composition helpers.

Helpers never mutate the mapping passed in and never overwrite a header the
caller set explicitly. Header names are matched case-insensitively.
"""

from typing import Mapping, Optional

AUTHORIZATION = "Authorization"
CONTENT_TYPE = "Content-Type"
JSON_CONTENT_TYPE = "application/json"


def has_header(headers: Mapping[str, str], name: str) -> bool:
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def bearer(token: str) -> str:
    return f"Bearer {token}"


def add_authorization_header(
    headers: Optional[Mapping[str, str]], token: Optional[str]
) -> dict[str, str]:
    """Return a copy of ``headers`` with a bearer Authorization header.

    Nothing is added when the token is empty or the caller already supplied
    an Authorization header.
    """
    merged = dict(headers or {})
    if token and not has_header(merged, AUTHORIZATION):
        merged[AUTHORIZATION] = bearer(token)
    return merged


def add_content_type_json_header(
    headers: Optional[Mapping[str, str]],
) -> dict[str, str]:
    merged = dict(headers or {})
    if not has_header(merged, CONTENT_TYPE):
        merged[CONTENT_TYPE] = JSON_CONTENT_TYPE
    return merged


def replace_authorization(headers: Mapping[str, str], token: str) -> dict[str, str]:
    """Return a copy of ``headers`` whose Authorization carries ``token``."""
    merged = {k: v for k, v in headers.items() if k.lower() != AUTHORIZATION.lower()}
    merged[AUTHORIZATION] = bearer(token)
    return merged


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    # log-safe copy
    return {
        key: ("Bearer ***" if key.lower() == AUTHORIZATION.lower() else value)
        for key, value in headers.items()
    }
