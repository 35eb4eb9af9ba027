"""
Map a final HTTP response to a decoded value or a typed error.
"""

from typing import Any

import requests

from .errors import ClientError, ServerError

SUCCESS_STATUSES = frozenset({200, 201})
CLIENT_ERROR_STATUSES = frozenset({400, 401, 402, 403, 404, 405, 409})
UNPROCESSABLE_STATUS = 422

_MISSING = object()


def _decode_json(resp: requests.Response) -> Any:
    """Decoded body, ``None`` for an empty body, ``_MISSING`` if not JSON."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return _MISSING


def _error_message(resp: requests.Response, body: Any) -> str:
    if isinstance(body, dict) and body.get("message") is not None:
        return str(body["message"])
    return resp.text or resp.reason or f"HTTP {resp.status_code}"


def decode_response(resp: requests.Response) -> Any:
    status = resp.status_code

    if status in SUCCESS_STATUSES:
        body = _decode_json(resp)
        if body is _MISSING:
            raise ServerError(status, "Malformed response body.")
        return body

    if status in CLIENT_ERROR_STATUSES:
        body = _decode_json(resp)
        raise ClientError(status, _error_message(resp, body))

    if status == UNPROCESSABLE_STATUS:
        body = _decode_json(resp)
        if body is _MISSING:
            body = None
        raise ClientError(status, _error_message(resp, body), payload=body)

    raise ServerError(status)
