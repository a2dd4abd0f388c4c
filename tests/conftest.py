import json
import os
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

# Keep test runs from writing log files into the working tree
os.environ.setdefault("RESTSUITE_LOG_DIR", "")

from restsuite.models.test_result import TestResult  # noqa: E402

USER = {
    "id": 1,
    "name": "Alice",
    "age": 30,
    "score": 9.5,
    "active": True,
    "tags": ["admin", "editor"],
    "address": {"city": "Paris"},
}

HTML_PAGE = """<html><body>
<h1 class="title">  Welcome  </h1>
<ul><li class="item">One</li><li class="item">Two</li></ul>
</body></html>"""


def _route(method, path, body):
    """Return (status, headers, payload bytes) for a request"""
    json_type = [("Content-Type", "application/json")]

    if method == "GET" and path == "/users/1":
        headers = json_type + [("X-Request-Id", "req-123"),
                               ("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]
        return 200, headers, json.dumps(USER).encode()
    if method == "POST" and path == "/users":
        payload = {"id": "42", "received": body}
        return 201, json_type + [("Location", "/users/42")], json.dumps(payload).encode()
    if method == "GET" and path.startswith("/posts/"):
        post_id = path[len("/posts/"):]
        return 200, json_type, json.dumps({"id": post_id, "title": "Hello"}).encode()
    if method == "GET" and path == "/html":
        return 200, [("Content-Type", "text/html")], HTML_PAGE.encode()
    if method == "GET" and path == "/text":
        return 200, [("Content-Type", "text/plain")], b"abc"
    if method == "GET" and path.startswith("/status/"):
        return int(path[len("/status/"):]), [], b""
    if method == "GET" and path == "/slow":
        time.sleep(0.3)
        return 200, [], b"slow"
    return 404, json_type, b'{"error": "not found"}'


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def _dispatch(self, method):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode("utf-8") if length else ""
        with self.server.lock:
            self.server.received.append({
                "method": method,
                "path": self.path,
                "headers": {k.lower(): v for k, v in self.headers.items()},
                "body": body,
            })

        status, headers, payload = _route(method, self.path, body)
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")

    def do_PUT(self):
        self._dispatch("PUT")

    def do_DELETE(self):
        self._dispatch("DELETE")


class _Server(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # Clients that time out on /slow close the socket early
        pass


@pytest.fixture(scope="session")
def _server():
    server = _Server(("127.0.0.1", 0), _Handler)
    server.received = []
    server.lock = threading.Lock()
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def http_server(_server):
    """Local API server; `received` holds the requests of the current test"""
    with _server.lock:
        _server.received.clear()
    return _server


@pytest.fixture
def make_result():
    def factory(body="", status_code=200, headers=None, name="sample", response_time_ms=12.5):
        result = TestResult(name=name, success=True, status_code=status_code,
                            response_time_ms=response_time_ms, body=body)
        for header, values in (headers or {}).items():
            result.headers[header] = values if isinstance(values, list) else [values]
        return result
    return factory
