"""
Token refresh against the ``refresh-token`` endpoint.
"""

import logging
from typing import Optional

import requests

from .errors import NetworkError, RequestTimeoutError
from .headers import AUTHORIZATION, bearer
from .types import TokenPair

logger = logging.getLogger(__name__)

REFRESH_PATH = "refresh-token"


def _extract_tokens(resp: requests.Response, refresh_token: str) -> Optional[TokenPair]:
    """Pull the new pair out of a refresh response body.

    A missing ``refresh_token`` keeps the current one; a missing
    ``accessToken`` means the refresh did not produce a usable token.
    """
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    access = body.get("accessToken")
    if not access:
        return None
    return TokenPair(
        access_token=access,
        refresh_token=body.get("refresh_token") or refresh_token,
    )


def fetch_new_token(
    client: requests.Session,
    base_url: str,
    refresh_token: str,
    timeout: float,
) -> Optional[TokenPair]:
    """Exchange ``refresh_token`` for a new token pair.

    Returns ``None`` when the server refuses the refresh token. Transport
    failures raise ``NetworkError`` and timeouts raise ``RequestTimeoutError``.
    """
    try:
        resp = client.get(
            f"{base_url}{REFRESH_PATH}",
            headers={AUTHORIZATION: bearer(refresh_token)},
            timeout=timeout,
        )
    except requests.Timeout as exc:
        raise RequestTimeoutError("Token refresh request timed out.") from exc
    except requests.RequestException as exc:
        raise NetworkError("Network error while refreshing token.") from exc

    if resp.status_code != 200:
        logger.debug("Failed to refresh token: %s", resp.status_code)
        return None

    tokens = _extract_tokens(resp, refresh_token)
    if tokens is None:
        logger.debug("Refresh response carried no access token")
        return None

    logger.debug("Token successfully refreshed: %s", resp.status_code)
    return tokens
