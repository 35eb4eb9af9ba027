"""
General Repository
Authenticated GET/POST/PUT/PATCH/DELETE and multipart calls with a single
token refresh on 401.
"""

import argparse
import contextlib
import enum
import errno
import json
import logging
import os
import sys
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import requests
from urllib3.filepost import encode_multipart_formdata

from .auth import fetch_new_token
from .errors import AuthRefreshFailed, NetworkError, RepositoryError, RequestTimeoutError
from .headers import (
    CONTENT_TYPE,
    add_authorization_header,
    add_content_type_json_header,
    redact_headers,
    replace_authorization,
)
from .response import decode_response
from .types import DEFAULT_TIMEOUT_SEC, ApiConfig, FileField, TokenPair

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401

SendFn = Callable[[dict[str, str], float], requests.Response]
FileSpec = Union[FileField, Mapping[str, str]]


class _Attempt(enum.Enum):
    INITIAL = "initial"
    RETRYING = "retrying"


def _encode_body(body: Any) -> Union[str, bytes, None]:
    if body is None or isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)


class GeneralRepository:
    """HTTP repository with bearer auth and automatic token refresh on 401.

    ``update_tokens(access, refresh)`` is called after every successful
    refresh and ``clear_session()`` when the refresh token is rejected;
    persisting or discarding credentials is left to those callbacks.
    """

    def __init__(
        self,
        config: ApiConfig,
        tokens: TokenPair,
        update_tokens: Callable[[str, str], None],
        clear_session: Callable[[], None],
        client: Optional[requests.Session] = None,
    ):
        self._config = config
        self._tokens = tokens
        self._update_tokens = update_tokens
        self._clear_session = clear_session
        self._owns_client = client is None
        self._client = client if client is not None else requests.Session()

    @property
    def tokens(self) -> TokenPair:
        return self._tokens

    @property
    def token(self) -> str:
        return self._tokens.access_token

    @property
    def config(self) -> ApiConfig:
        return self._config

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ── Headers ───────────────────────────────────────────

    def add_authorization_header(
        self, headers: Optional[Mapping[str, str]]
    ) -> dict[str, str]:
        return add_authorization_header(headers, self.token)

    def add_content_type_json_header(
        self, headers: Optional[Mapping[str, str]]
    ) -> dict[str, str]:
        return add_content_type_json_header(headers)

    # ── Refresh ───────────────────────────────────────────

    def refresh(self) -> Optional[str]:
        """Fetch a new token pair; return the new access token or ``None``.

        ``None`` means the session was cleared and the user must sign in
        again.
        """
        tokens = fetch_new_token(
            self._client,
            self._config.base_url,
            self._tokens.refresh_token,
            self._config.timeout,
        )
        if tokens is None:
            self._clear_session()
            return None

        self._tokens = tokens
        self._update_tokens(tokens.access_token, tokens.refresh_token)
        return tokens.access_token

    # ── Execution ─────────────────────────────────────────

    @staticmethod
    def _send_once(
        send: SendFn, headers: dict[str, str], timeout: float
    ) -> requests.Response:
        try:
            return send(headers, timeout)
        except requests.Timeout as exc:
            raise RequestTimeoutError() from exc
        except requests.RequestException as exc:
            raise NetworkError() from exc

    def _execute(
        self,
        send: SendFn,
        headers: dict[str, str],
        timeout: float,
        handle: str,
        enable_logs: bool,
    ) -> Any:
        if enable_logs:
            logger.debug(
                "[%s] Request header: %s", handle, json.dumps(redact_headers(headers))
            )

        resp: Optional[requests.Response] = None
        attempt = _Attempt.INITIAL
        try:
            while True:
                resp = self._send_once(send, headers, timeout)
                if resp.status_code != UNAUTHORIZED or attempt is _Attempt.RETRYING:
                    break

                new_token = self.refresh()
                if new_token is None:
                    raise AuthRefreshFailed()
                headers = replace_authorization(headers, new_token)
                attempt = _Attempt.RETRYING

            return decode_response(resp)
        finally:
            if enable_logs:
                logger.debug(
                    "[%s] Request response status: %s",
                    handle,
                    resp.status_code if resp is not None else None,
                )
                logger.debug(
                    "[%s] Request raw response: %s",
                    handle,
                    resp.text if resp is not None else "",
                )

    def _url(self, handle: str, base_url: Optional[str]) -> str:
        return (base_url if base_url is not None else self._config.base_url) + handle

    def _resolve(
        self, timeout: Optional[float], enable_logs: Optional[bool]
    ) -> tuple[float, bool]:
        return (
            timeout if timeout is not None else self._config.timeout,
            enable_logs if enable_logs is not None else self._config.enable_logs,
        )

    def _request(
        self,
        method: str,
        handle: str,
        body: Any = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
        json_content: bool = True,
    ) -> Any:
        merged = self.add_authorization_header(headers)
        if json_content:
            merged = self.add_content_type_json_header(merged)
        url = self._url(handle, base_url)
        final_timeout, logs = self._resolve(timeout, enable_logs)
        data = _encode_body(body)

        if logs and body is not None:
            logger.debug("[%s] Request body: %s", handle, body)

        def send(hdrs: dict[str, str], t: float) -> requests.Response:
            return self._client.request(method, url, headers=hdrs, data=data, timeout=t)

        return self._execute(send, merged, final_timeout, handle, logs)

    # ── Verbs ─────────────────────────────────────────────

    def get(
        self,
        handle: str,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        return self._request(
            "GET", handle, None, base_url, headers, timeout, enable_logs,
            json_content=False,
        )

    def post(
        self,
        handle: str,
        body: Any = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        return self._request(
            "POST", handle, body, base_url, headers, timeout, enable_logs
        )

    def put(
        self,
        handle: str,
        body: Any = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        return self._request(
            "PUT", handle, body, base_url, headers, timeout, enable_logs
        )

    def patch(
        self,
        handle: str,
        body: Any = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        return self._request(
            "PATCH", handle, body, base_url, headers, timeout, enable_logs
        )

    def delete(
        self,
        handle: str,
        body: Any = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        return self._request(
            "DELETE", handle, body, base_url, headers, timeout, enable_logs
        )

    # ── Multipart ─────────────────────────────────────────

    def multipart_post(
        self,
        handle: str,
        fields: Optional[Mapping[str, str]] = None,
        files: Optional[Iterable[FileSpec]] = None,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        enable_logs: Optional[bool] = None,
    ) -> Any:
        """POST a multipart form built from ``fields`` and local ``files``.

        Fields and files always travel as multipart parts, even when both are
        empty. Files are opened per attempt; the multipart Content-Type (with
        its boundary) comes from the encoder, never ``application/json``.
        """
        merged = self.add_authorization_header(headers)
        url = self._url(handle, base_url)
        final_timeout, logs = self._resolve(timeout, enable_logs)
        form = dict(fields or {})
        parts = [
            f if isinstance(f, FileField) else FileField.from_dict(f)
            for f in files or []
        ]
        for part in parts:
            if not os.path.isfile(part.file_path):
                raise FileNotFoundError(
                    errno.ENOENT, os.strerror(errno.ENOENT), part.file_path
                )

        if logs:
            logger.debug("[%s] Multipart request fields: %s", handle, form)
            logger.debug("[%s] Multipart request files: %s", handle, parts)

        def send(hdrs: dict[str, str], t: float) -> requests.Response:
            with contextlib.ExitStack() as stack:
                upload: list[tuple[str, tuple[Optional[str], Any]]] = [
                    (name, (None, value)) for name, value in form.items()
                ]
                upload += [
                    (
                        part.field_name,
                        (part.upload_name, stack.enter_context(open(part.file_path, "rb"))),
                    )
                    for part in parts
                ]
                if upload:
                    return self._client.request(
                        "POST", url, headers=hdrs, files=upload, timeout=t
                    )

                # requests only builds multipart bodies for non-empty files=
                body, content_type = encode_multipart_formdata([])
                return self._client.request(
                    "POST",
                    url,
                    headers={**hdrs, CONTENT_TYPE: content_type},
                    data=body,
                    timeout=t,
                )

        return self._execute(send, merged, final_timeout, handle, logs)


# ── CLI ───────────────────────────────────────────────────


def _split_pair(value: str, sep: str, label: str) -> tuple[str, str]:
    key, found, rest = value.partition(sep)
    if not found or not key:
        raise argparse.ArgumentTypeError(f"expected {label}, got {value!r}")
    return key.strip(), rest.strip()


def _parse_header(value: str) -> tuple[str, str]:
    return _split_pair(value, ":", "KEY:VALUE")


def _parse_field(value: str) -> tuple[str, str]:
    return _split_pair(value, "=", "KEY=VALUE")


def _parse_file(value: str) -> FileField:
    field, path = _split_pair(value, "=", "FIELD=PATH[:NAME]")
    # NAME is the text after the last colon, and only if it is a bare file name
    head, found, tail = path.rpartition(":")
    if found and head and tail and not any(sep in tail for sep in ("/", "\\")):
        return FileField(field_name=field, file_path=head, file_name=tail)
    return FileField(field_name=field, file_path=path)


def _parse_json(value: str) -> Any:
    try:
        return json.loads(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid JSON body: {exc}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Authenticated HTTP repository")
    parser.add_argument("--base-url", required=True)
    parser.add_argument("--access-token", required=True)
    parser.add_argument("--refresh-token", required=True)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SEC)
    parser.add_argument(
        "--header", type=_parse_header, action="append", default=[]
    )
    parser.add_argument("--quiet", action="store_true", help="disable request logs")
    parser.add_argument("--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("get")
    p.add_argument("path")

    for verb in ("post", "put", "patch", "delete"):
        p = sub.add_parser(verb)
        p.add_argument("path")
        p.add_argument("--body", type=_parse_json)

    p = sub.add_parser("upload")
    p.add_argument("path")
    p.add_argument("--field", type=_parse_field, action="append", default=[])
    p.add_argument("--file", type=_parse_file, action="append", default=[])

    return parser


_DISPATCH = {
    "get": lambda r, a, h: r.get(a.path, headers=h),
    "post": lambda r, a, h: r.post(a.path, body=a.body, headers=h),
    "put": lambda r, a, h: r.put(a.path, body=a.body, headers=h),
    "patch": lambda r, a, h: r.patch(a.path, body=a.body, headers=h),
    "delete": lambda r, a, h: r.delete(a.path, body=a.body, headers=h),
    "upload": lambda r, a, h: r.multipart_post(
        a.path, fields=dict(a.field), files=a.file, headers=h
    ),
}


def _report_tokens(access: str, refresh: str) -> None:
    print(
        json.dumps({"tokens": TokenPair(access, refresh).to_dict()}),
        file=sys.stderr,
    )


def _report_cleared() -> None:
    print("[!] Session cleared, sign in again", file=sys.stderr)


def main() -> None:
    """CLI entry point for repository calls."""
    args = _build_parser().parse_args()
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    repo = GeneralRepository(
        ApiConfig(args.base_url, timeout=args.timeout, enable_logs=not args.quiet),
        TokenPair(args.access_token, args.refresh_token),
        update_tokens=_report_tokens,
        clear_session=_report_cleared,
    )

    handler = _DISPATCH[args.command]

    try:
        result = handler(repo, args, dict(args.header))
        json.dump(result, sys.stdout, ensure_ascii=False, indent=2)
        print()
    except RepositoryError as exc:
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)
    finally:
        repo.close()
