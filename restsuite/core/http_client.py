import threading
import time
from typing import List, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from restsuite.core.errors import RestSuiteError
from restsuite.models.test_case import Test
from restsuite.models.test_result import TestResult
from restsuite.utils.interpolation import interpolate_headers, interpolate_variables
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class RequestBuildError(RestSuiteError):
    """The request for a test could not be assembled."""


class RequestExecutor:
    """Builds and sends the HTTP request for one test."""

    def __init__(self, base_url: str = "", default_timeout: float = DEFAULT_TIMEOUT, verify_ssl: bool = True):
        self.base_url = base_url or ""
        self.default_timeout = default_timeout if default_timeout and default_timeout > 0 else DEFAULT_TIMEOUT
        self.verify_ssl = verify_ssl
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _session(self) -> requests.Session:
        # requests.Session is not thread-safe; each worker thread gets its own
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.verify = self.verify_ssl
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def build_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path

        base_url = self.base_url.rstrip("/")
        path = path.lstrip("/")
        if not base_url:
            return path
        return f"{base_url}/{path}"

    def _resolve_body(self, test: Test, variables: Mapping[str, str]) -> Optional[str]:
        if test.body and test.body_file:
            raise RequestBuildError("cannot specify both 'body' and 'body_file' in the same test")

        if test.body:
            return interpolate_variables(test.body, variables)

        if test.body_file:
            body_file_path = interpolate_variables(test.body_file, variables)
            try:
                with open(body_file_path, 'r', encoding='utf-8') as f:
                    content = f.read()
            except OSError as e:
                raise RequestBuildError(f"failed to read body file '{body_file_path}': {e}")
            return interpolate_variables(content, variables)

        return None

    def execute(self, test: Test, variables: Optional[Mapping[str, str]] = None) -> TestResult:
        """
        Send exactly one request for `test` and capture the response.

        Never raises for request-level problems: a conflicting body definition,
        an unreadable body file, a bad URL or a transport error all produce a
        TestResult with success=False and the reason in `error`.

        Args:
            test: Test definition
            variables: Variables available for `${name}` substitution

        Returns:
            TestResult with status, headers, body and elapsed time
        """
        variables = variables or {}
        start_time = time.perf_counter()

        url = interpolate_variables(self.build_url(test.url), variables)
        method = (test.method or "GET").upper()

        try:
            body = self._resolve_body(test, variables)
        except RequestBuildError as e:
            logger.error(f"Test '{test.name}': {e}")
            return TestResult.failure(test.name, str(e))

        headers = interpolate_headers(test.headers, variables)
        timeout = test.timeout if test.timeout and test.timeout > 0 else self.default_timeout

        logger.debug(f"Sending {method} {url} for test '{test.name}' (timeout {timeout}s)")

        try:
            response = self._session().request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=headers,
                timeout=timeout,
                stream=True
            )
        except requests.RequestException as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"Request for test '{test.name}' failed: {e}")
            return TestResult.failure(test.name, f"request failed: {e}", response_time_ms=elapsed_ms)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response_headers = collect_headers(response)

        try:
            response_body = response.text
        except requests.RequestException as e:
            logger.error(f"Reading the response for test '{test.name}' failed: {e}")
            return TestResult.failure(
                test.name,
                f"failed to read response body: {e}",
                status_code=response.status_code,
                response_time_ms=elapsed_ms,
                headers=response_headers
            )
        finally:
            response.close()

        logger.debug(f"Test '{test.name}' got {response.status_code} in {elapsed_ms:.2f}ms")

        return TestResult(
            name=test.name,
            success=True,
            status_code=response.status_code,
            response_time_ms=elapsed_ms,
            body=response_body,
            headers=response_headers
        )

    def close(self) -> None:
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions = []
        self._local = threading.local()


def collect_headers(response: requests.Response) -> CaseInsensitiveDict:
    """
    Response headers as name -> list of values.

    requests folds repeated headers into one comma-joined string, so the raw
    urllib3 header container is used when it is available.
    """
    headers = CaseInsensitiveDict()
    raw_headers = getattr(response.raw, "headers", None)

    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        for name in raw_headers.keys():
            if name not in headers:
                headers[name] = list(raw_headers.getlist(name))
    else:
        for name, value in response.headers.items():
            headers[name] = [value]

    return headers
