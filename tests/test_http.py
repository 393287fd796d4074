"""HTTP facade: httpx locally, curl through the session remotely."""

import httpx
import pytest

from targetio.errors import ExecutionFailed, HTTPStatusError, TargetIOError
from targetio.facades import TargetIO
from targetio.http import HTTP, join_url, parse_curl_response

CURL_OK = "HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nX-Request-Id: abc\r\n\r\nhello"


class TestParse:
    def test_simple(self):
        response = parse_curl_response(CURL_OK)

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/plain"
        assert response.body == "hello"

    def test_skips_interim_block(self):
        raw = "HTTP/1.1 100 Continue\r\n\r\nHTTP/1.1 201 Created\r\nLocation: /x\r\n\r\n{}"

        response = parse_curl_response(raw)

        assert response.status_code == 201
        assert response.headers == {"location": "/x"}
        assert response.body == "{}"

    def test_garbage(self):
        with pytest.raises(TargetIOError):
            parse_curl_response("curl: (6) Could not resolve host")

    def test_join_url(self):
        assert join_url("https://example.com/api/", "/health") == "https://example.com/api/health"
        assert join_url("https://example.com", "") == "https://example.com"
        assert join_url("https://example.com", "http://other/x") == "http://other/x"


class TestRemote:
    def test_get(self, remote, session):
        session.respond("curl ", stdout=CURL_OK, prefix=True)

        response = TargetIO(remote).http("https://example.com/api").get("health")

        assert response.status_code == 200
        assert response.body == "hello"
        assert session.commands == ["curl -sS --max-time 10 -i -X GET https://example.com/api/health"]

    def test_head(self, remote, session):
        session.respond("curl ", stdout="HTTP/1.1 204 No Content\r\n\r\n", prefix=True)

        TargetIO(remote).http("https://example.com").head()

        assert session.commands == ["curl -sS --max-time 10 -I https://example.com"]

    def test_post_body_and_headers(self, remote, session):
        session.respond("curl ", stdout=CURL_OK, prefix=True)
        client = HTTP(remote, "https://example.com", headers={"X-Token": "abc"}, timeout=5)

        client.post("/items", '{"a": 1}', headers={"Content-Type": "application/json"})

        assert session.commands == [
            "curl -sS --max-time 5 -i -X POST -H 'X-Token: abc' -H 'Content-Type: application/json' "
            "--data-binary '{\"a\": 1}' https://example.com/items"
        ]

    def test_curl_failure(self, remote, session):
        session.respond("curl ", stderr="curl: (6) Could not resolve host", exit_status=6, prefix=True)

        with pytest.raises(ExecutionFailed) as exc_info:
            TargetIO(remote).http("https://nowhere.invalid").get()

        assert exc_info.value.exit_status == 6

    def test_raise_for_status(self, remote, session):
        session.respond("curl ", stdout="HTTP/1.1 404 Not Found\r\n\r\n", prefix=True)

        response = TargetIO(remote).http("https://example.com").delete("/gone")

        assert not response.ok
        with pytest.raises(HTTPStatusError):
            response.raise_for_status()


class TestLocal:
    def test_get_through_httpx(self, local, session):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, headers={"X-Served-By": "mock"}, text="pong")

        with HTTP(local, "https://example.com/api", transport=httpx.MockTransport(handler)) as client:
            response = client.get("/ping")

        assert response.status_code == 200
        assert response.body == "pong"
        assert response.headers["x-served-by"] == "mock"
        assert seen == [("GET", "https://example.com/api/ping")]
        assert session.commands == []

    def test_put_sends_body(self, local):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200)

        with HTTP(local, "https://example.com", transport=httpx.MockTransport(handler)) as client:
            client.put("/x", b"data")

        assert bodies == [b"data"]
