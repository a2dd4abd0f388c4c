import json
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from restsuite.models.test_case import Test
from restsuite.utils.durations import parse_duration


@dataclass
class Benchmark:
    """A repeated-request load scenario: either a fixed request count or a fixed duration"""
    name: str
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    concurrent: int = 1
    requests: int = 0
    duration: float = 0.0

    def to_test(self) -> Test:
        """Request template shared by every attempt of this benchmark"""
        return Test(
            name=self.name,
            method=self.method,
            url=self.url,
            headers=dict(self.headers),
            body=self.body
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "method": self.method,
            "url": self.url,
            "headers": self.headers,
            "body": self.body,
            "concurrent": self.concurrent,
            "requests": self.requests,
            "duration": self.duration
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Benchmark':
        body = data.get("body")
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        return cls(
            name=str(data.get("name", "Unnamed Benchmark")),
            method=str(data.get("method") or "GET").upper(),
            url=str(data.get("url") or ""),
            headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
            body=body or None,
            concurrent=int(data.get("concurrent") or 1),
            requests=int(data.get("requests") or 0),
            duration=parse_duration(data.get("duration"))
        )


@dataclass
class RequestResult:
    """One benchmark attempt"""
    success: bool
    duration_ms: float
    status_code: int = 0
    response_size: int = 0


@dataclass
class BenchmarkResult:
    name: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    min_response_time_ms: float = 0.0
    max_response_time_ms: float = 0.0
    avg_response_time_ms: float = 0.0
    total_time_ms: float = 0.0
    requests_per_sec: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "min_response_time_ms": round(self.min_response_time_ms, 2),
            "max_response_time_ms": round(self.max_response_time_ms, 2),
            "avg_response_time_ms": round(self.avg_response_time_ms, 2),
            "total_time_ms": round(self.total_time_ms, 2),
            "requests_per_sec": round(self.requests_per_sec, 2)
        }
