"""
Shared fixtures for the general_repository test suite.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from general_repository.repository import GeneralRepository
from general_repository.types import ApiConfig, TokenPair

BASE_URL = "https://api.example.test/"


def make_response(status, body=None, reason=None):
    """Build a real ``requests.Response`` with the given status and body."""
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp.encoding = "utf-8"
    if body is None:
        resp._content = b""
    elif isinstance(body, bytes):
        resp._content = body
    elif isinstance(body, str):
        resp._content = body.encode("utf-8")
    else:
        resp._content = json.dumps(body).encode("utf-8")
    return resp


# ── Token fixtures ───────────────────────────────────────────

@pytest.fixture
def access_token():
    return "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9.access.test"


@pytest.fixture
def refresh_token():
    return "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9.refresh.test"


@pytest.fixture
def token_pair(access_token, refresh_token):
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
    )


# ── Repository fixtures ──────────────────────────────────────

@pytest.fixture
def config():
    return ApiConfig(base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def update_tokens():
    return MagicMock()


@pytest.fixture
def clear_session():
    return MagicMock()


@pytest.fixture
def repo(config, token_pair, update_tokens, clear_session, session):
    return GeneralRepository(
        config,
        token_pair,
        update_tokens=update_tokens,
        clear_session=clear_session,
        client=session,
    )


@pytest.fixture
def response():
    return make_response
