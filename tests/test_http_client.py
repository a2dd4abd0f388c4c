import json
import socket

import pytest

from restsuite.core.http_client import RequestExecutor
from restsuite.models.test_case import Test


@pytest.fixture
def executor(http_server):
    executor = RequestExecutor(base_url=http_server.base_url, default_timeout=5)
    yield executor
    executor.close()


@pytest.mark.parametrize("base_url, path, expected", [
    ("http://api.test", "/users", "http://api.test/users"),
    ("http://api.test/", "users", "http://api.test/users"),
    ("http://api.test/v1/", "/users/1", "http://api.test/v1/users/1"),
    ("http://api.test", "https://other.test/x", "https://other.test/x"),
    ("http://api.test", "http://other.test/x", "http://other.test/x"),
])
def test_build_url(base_url, path, expected):
    assert RequestExecutor(base_url=base_url).build_url(path) == expected


def test_get_captures_response(executor):
    result = executor.execute(Test(name="get user", url="/users/1"))

    assert result.success
    assert result.error == ""
    assert result.status_code == 200
    assert json.loads(result.body)["name"] == "Alice"
    assert result.response_time_ms > 0
    assert result.header_values("x-request-id") == ["req-123"]
    assert result.header_values("Set-Cookie") == ["a=1", "b=2"]


def test_non_2xx_is_still_a_transport_success(executor):
    result = executor.execute(Test(name="missing", url="/status/503"))
    assert result.success
    assert result.status_code == 503


def test_url_headers_and_body_are_interpolated(executor, http_server):
    test = Test(
        name="create",
        method="post",
        url="/${resource}",
        headers={"Authorization": "Bearer ${token}"},
        body='{"name": "${name}"}',
    )
    result = executor.execute(test, {"resource": "users", "token": "t0k", "name": "Bob"})

    assert result.status_code == 201
    request = http_server.received[-1]
    assert request["method"] == "POST"
    assert request["path"] == "/users"
    assert request["headers"]["authorization"] == "Bearer t0k"
    assert request["body"] == '{"name": "Bob"}'


def test_body_file_path_and_contents_are_interpolated(executor, http_server, tmp_path):
    (tmp_path / "payload-7.json").write_text('{"id": "${id}"}', encoding="utf-8")
    test = Test(name="from file", method="POST", url="/users", body_file=str(tmp_path / "payload-${id}.json"))

    result = executor.execute(test, {"id": "7"})

    assert result.success
    assert http_server.received[-1]["body"] == '{"id": "7"}'


def test_body_and_body_file_are_exclusive(executor, http_server):
    test = Test(name="both", method="POST", url="/users", body="{}", body_file="payload.json")
    result = executor.execute(test)

    assert not result.success
    assert result.error == "cannot specify both 'body' and 'body_file' in the same test"
    assert http_server.received == []


def test_unreadable_body_file(executor, tmp_path):
    missing = tmp_path / "missing.json"
    result = executor.execute(Test(name="missing file", method="POST", url="/users", body_file=str(missing)))

    assert not result.success
    assert result.error.startswith(f"failed to read body file '{missing}'")


def test_connection_failure():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    executor = RequestExecutor(base_url=f"http://127.0.0.1:{port}", default_timeout=2)
    result = executor.execute(Test(name="refused", url="/"))

    assert not result.success
    assert result.error.startswith("request failed: ")


def test_per_test_timeout_does_not_leak(executor):
    timed_out = executor.execute(Test(name="slow", url="/slow", timeout=0.05))
    assert not timed_out.success
    assert timed_out.error.startswith("request failed: ")

    result = executor.execute(Test(name="slow again", url="/slow"))
    assert result.success
    assert result.body == "slow"
