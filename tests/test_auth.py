"""
Tests for general_repository.auth module.

Covers:
- fetch_new_token request shape (URL, header, timeout)
- token extraction from the refresh body
- refusal, malformed bodies, transport failures
"""

import pytest
import requests

from general_repository.auth import fetch_new_token
from general_repository.errors import NetworkError, RequestTimeoutError
from general_repository.types import TokenPair

BASE_URL = "https://api.example.test/"


class TestFetchNewToken:

    def test_calls_refresh_endpoint(self, session, response):
        session.get.return_value = response(
            200, {"accessToken": "A2", "refresh_token": "R2"}
        )

        fetch_new_token(session, BASE_URL, "R1", 7.5)

        session.get.assert_called_once_with(
            "https://api.example.test/refresh-token",
            headers={"Authorization": "Bearer R1"},
            timeout=7.5,
        )

    def test_no_separator_normalization(self, session, response):
        session.get.return_value = response(200, {"accessToken": "A2"})

        fetch_new_token(session, "https://api.example.test/v1/", "R1", 1)

        assert session.get.call_args[0][0] == "https://api.example.test/v1/refresh-token"

    def test_returns_new_pair(self, session, response):
        session.get.return_value = response(
            200, {"accessToken": "A2", "refresh_token": "R2"}
        )

        assert fetch_new_token(session, BASE_URL, "R1", 1) == TokenPair("A2", "R2")

    def test_keeps_refresh_token_when_missing(self, session, response):
        session.get.return_value = response(200, {"accessToken": "A2"})

        assert fetch_new_token(session, BASE_URL, "R1", 1) == TokenPair("A2", "R1")

    @pytest.mark.parametrize("status", [400, 401, 403, 500])
    def test_refused_returns_none(self, session, response, status):
        session.get.return_value = response(status, {"message": "expired"})

        assert fetch_new_token(session, BASE_URL, "R1", 1) is None

    def test_missing_access_token_returns_none(self, session, response):
        session.get.return_value = response(200, {"refresh_token": "R2"})

        assert fetch_new_token(session, BASE_URL, "R1", 1) is None

    def test_malformed_body_returns_none(self, session, response):
        session.get.return_value = response(200, "not json")

        assert fetch_new_token(session, BASE_URL, "R1", 1) is None

    def test_connection_error_raises_network_error(self, session):
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc_info:
            fetch_new_token(session, BASE_URL, "R1", 1)

        assert exc_info.value.message == "Network error while refreshing token."
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout_raises_timeout_error(self, session):
        session.get.side_effect = requests.ReadTimeout("slow")

        with pytest.raises(RequestTimeoutError) as exc_info:
            fetch_new_token(session, BASE_URL, "R1", 1)

        assert exc_info.value.message == "Token refresh request timed out."

    def test_connect_timeout_is_a_timeout(self, session):
        session.get.side_effect = requests.ConnectTimeout("slow connect")

        with pytest.raises(RequestTimeoutError):
            fetch_new_token(session, BASE_URL, "R1", 1)
