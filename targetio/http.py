"""HTTP requests issued from the host or from the target.

Local mode talks to the URL with httpx. Remote mode runs curl on the target
through the session, so the request originates from the target's network.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field

import httpx

from targetio.commands import TranslatedCommand
from targetio.context import TargetContext
from targetio.diagnostics import caller_location, record_call
from targetio.errors import HTTPStatusError, TargetIOError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class HTTPResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    method: str = "GET"
    url: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> HTTPResponse:
        if not self.ok:
            raise HTTPStatusError(self.method, self.url, self.status_code)
        return self


def join_url(base: str, path: str = "") -> str:
    if not path:
        return base
    if "://" in path:
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _split_head(raw: str) -> tuple[str, str]:
    for sep in ("\r\n\r\n", "\n\n"):
        head, found, rest = raw.partition(sep)
        if found:
            return head, rest
    return raw, ""


def parse_curl_response(raw: str, *, method: str = "GET", url: str = "") -> HTTPResponse:
    """Parse ``curl -i`` output, skipping interim (1xx) and proxy blocks."""
    rest = raw
    while True:
        head, rest = _split_head(rest)
        lines = head.splitlines()
        if not lines or not lines[0].startswith("HTTP/"):
            raise TargetIOError(f"Unparseable HTTP response from curl: {raw[:80]!r}")
        parts = lines[0].split(None, 2)
        try:
            status = int(parts[1])
        except (IndexError, ValueError) as e:
            raise TargetIOError(f"Bad HTTP status line: {lines[0]!r}") from e

        interim = status < 200 or (status == 200 and "connection established" in lines[0].lower())
        if interim and rest.startswith("HTTP/"):
            continue

        headers: dict[str, str] = {}
        for line in lines[1:]:
            name, sep, value = line.partition(":")
            if sep:
                headers[name.strip().lower()] = value.strip()
        return HTTPResponse(status_code=status, headers=headers, body=rest, method=method, url=url)


class LocalHTTPBackend:
    name = "local"

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.Client(base_url=url, headers=headers or {}, timeout=timeout, transport=transport)

    def request(self, method: str, path: str = "", body: str | bytes | None = None, headers=None) -> HTTPResponse:
        r = self._client.request(method, path, content=body, headers=headers)
        return HTTPResponse(
            status_code=r.status_code,
            headers={k.lower(): v for k, v in r.headers.items()},
            body=r.text,
            method=method,
            url=str(r.request.url),
        )

    def close(self) -> None:
        self._client.close()


class RemoteHTTPBackend:
    name = "remote"

    def __init__(
        self,
        context: TargetContext,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._context = context
        self._url = url
        self._headers = dict(headers or {})
        self._timeout = timeout

    def command(self, method: str, path: str = "", body: str | bytes | None = None, headers=None) -> str:
        url = join_url(self._url, path)
        tokens = ["curl", "-sS", "--max-time", f"{self._timeout:g}"]
        tokens += ["-I"] if method == "HEAD" else ["-i", "-X", method]
        for name, value in {**self._headers, **(headers or {})}.items():
            tokens += ["-H", f"{name}: {value}"]
        if body is not None:
            if isinstance(body, bytes):
                body = body.decode("utf-8")
            tokens += ["--data-binary", body]
        tokens.append(url)
        return " ".join(shlex.quote(t) for t in tokens)

    def request(self, method: str, path: str = "", body: str | bytes | None = None, headers=None) -> HTTPResponse:
        translator = self._context.translator
        translated = translator.run(TranslatedCommand(self.command(method, path, body, headers)))
        return parse_curl_response(translated.stdout, method=method, url=join_url(self._url, path))

    def close(self) -> None:
        pass


class HTTP:
    """Minimal HTTP client bound to a base URL and a context.

    The backend follows the context's mode at each request. Responses with
    an error status are returned as-is; call ``raise_for_status()`` to fail.
    """

    def __init__(
        self,
        context: TargetContext,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._context = context
        self.url = url
        self._headers = headers
        self._timeout = timeout
        self._transport = transport
        self._local: LocalHTTPBackend | None = None
        self._remote: RemoteHTTPBackend | None = None

    def _backend(self, remote: bool):
        if remote:
            if self._remote is None:
                self._remote = RemoteHTTPBackend(self._context, self.url, self._headers, self._timeout)
            return self._remote
        if self._local is None:
            self._local = LocalHTTPBackend(self.url, self._headers, self._timeout, self._transport)
        return self._local

    def request(self, method: str, path: str = "", body=None, headers=None) -> HTTPResponse:
        method = method.upper()
        remote = self._context.is_remote
        backend = self._backend(remote)
        if self._context.config.log_calls:
            record_call(
                self._context.logger,
                f"HTTP.{method.lower()}",
                (join_url(self.url, path),),
                {"headers": headers} if headers else {},
                backend.name,
                caller_location(),
            )
        response = backend.request(method, path, body, headers)
        logger.debug("%s %s -> %d", method, response.url, response.status_code)
        return response

    def get(self, path="", headers=None):
        return self.request("GET", path, headers=headers)

    def head(self, path="", headers=None):
        return self.request("HEAD", path, headers=headers)

    def delete(self, path="", headers=None):
        return self.request("DELETE", path, headers=headers)

    def post(self, path="", body=None, headers=None):
        return self.request("POST", path, body, headers)

    def put(self, path="", body=None, headers=None):
        return self.request("PUT", path, body, headers)

    def patch(self, path="", body=None, headers=None):
        return self.request("PATCH", path, body, headers)

    def close(self) -> None:
        if self._local is not None:
            self._local.close()
            self._local = None

    def __enter__(self) -> HTTP:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
