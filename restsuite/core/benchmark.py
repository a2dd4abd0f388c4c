import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Mapping, Optional

from restsuite.core.errors import ConfigurationError
from restsuite.core.http_client import RequestExecutor
from restsuite.models.benchmark import Benchmark, BenchmarkResult, RequestResult
from restsuite.models.test_case import Test
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)


def split_requests(total: int, workers: int) -> List[int]:
    """Even share per worker; the remainder goes one each to the first workers"""
    per_worker, extra = divmod(total, workers)
    return [per_worker + (1 if i < extra else 0) for i in range(workers)]


def validate_benchmark(benchmark: Benchmark) -> None:
    if benchmark.requests > 0 and benchmark.duration > 0:
        raise ConfigurationError(
            f"benchmark {benchmark.name}: specify either requests or duration, not both")
    if benchmark.requests <= 0 and benchmark.duration <= 0:
        raise ConfigurationError(
            f"benchmark {benchmark.name}: either requests or duration must be specified")


class BenchmarkExecutor:
    """Drives repeated requests against one endpoint and aggregates latency and throughput"""

    def __init__(self, base_url: str = "", request_executor: Optional[RequestExecutor] = None):
        self.request_executor = request_executor or RequestExecutor(base_url=base_url)

    def execute_benchmarks(self, benchmarks: List[Benchmark],
                           variables: Optional[Mapping[str, str]] = None) -> List[BenchmarkResult]:
        """
        Run every benchmark in order.

        All benchmarks are validated before the first one starts; a configuration
        error in any of them aborts the whole batch.

        Args:
            benchmarks: Benchmarks to run
            variables: Variables substituted into each request template

        Returns:
            One BenchmarkResult per benchmark
        """
        for benchmark in benchmarks:
            validate_benchmark(benchmark)

        results = []
        for benchmark in benchmarks:
            results.append(self.execute_benchmark(benchmark, variables))
        return results

    def execute_benchmark(self, benchmark: Benchmark,
                          variables: Optional[Mapping[str, str]] = None) -> BenchmarkResult:
        validate_benchmark(benchmark)
        variables = dict(variables or {})
        concurrent = benchmark.concurrent if benchmark.concurrent > 0 else 1
        test = benchmark.to_test()

        if benchmark.requests > 0:
            logger.info(f"Benchmark '{benchmark.name}': {benchmark.requests} requests, {concurrent} workers")
        else:
            logger.info(f"Benchmark '{benchmark.name}': {benchmark.duration}s, {concurrent} workers")

        start_time = time.perf_counter()
        if benchmark.requests > 0:
            attempts = self._run_fixed(test, variables, benchmark.requests, concurrent)
        else:
            attempts = self._run_timed(test, variables, benchmark.duration, concurrent)
        total_time_ms = (time.perf_counter() - start_time) * 1000

        result = aggregate_results(benchmark.name, attempts, total_time_ms)
        logger.info(f"Benchmark '{benchmark.name}' finished: {result.total_requests} requests, "
                    f"{result.failed_requests} failed, {result.requests_per_sec:.2f} req/s")
        return result

    def _attempt(self, test: Test, variables: Mapping[str, str]) -> RequestResult:
        start_time = time.perf_counter()
        result = self.request_executor.execute(test, variables)
        duration_ms = (time.perf_counter() - start_time) * 1000

        return RequestResult(
            success=result.success,
            duration_ms=duration_ms,
            status_code=result.status_code,
            response_size=len(result.body.encode("utf-8"))
        )

    def _run_fixed(self, test: Test, variables: Mapping[str, str], total: int,
                   concurrent: int) -> List[RequestResult]:
        results: queue.Queue = queue.Queue(maxsize=total)

        def worker(count: int) -> None:
            for _ in range(count):
                results.put(self._attempt(test, variables))

        with ThreadPoolExecutor(max_workers=concurrent, thread_name_prefix="restsuite-bench") as pool:
            futures = [pool.submit(worker, count) for count in split_requests(total, concurrent)]
            for future in futures:
                future.result()

        return _drain(results)

    def _run_timed(self, test: Test, variables: Mapping[str, str], duration: float,
                   concurrent: int) -> List[RequestResult]:
        results: queue.Queue = queue.Queue()
        stop = threading.Event()
        timer = threading.Timer(duration, stop.set)

        def worker() -> None:
            while not stop.is_set():
                results.put(self._attempt(test, variables))

        timer.start()
        try:
            with ThreadPoolExecutor(max_workers=concurrent, thread_name_prefix="restsuite-bench") as pool:
                futures = [pool.submit(worker) for _ in range(concurrent)]
                for future in futures:
                    future.result()
        finally:
            timer.cancel()

        return _drain(results)


def _drain(results: queue.Queue) -> List[RequestResult]:
    collected = []
    while True:
        try:
            collected.append(results.get_nowait())
        except queue.Empty:
            return collected


def aggregate_results(name: str, attempts: List[RequestResult], total_time_ms: float) -> BenchmarkResult:
    """
    Fold per-attempt results into a BenchmarkResult.

    The average is wall-clock time divided by attempts, so it reflects pool
    throughput rather than the mean latency of individual requests.
    """
    if not attempts:
        return BenchmarkResult(name=name, total_time_ms=total_time_ms)

    min_ms = attempts[0].duration_ms
    max_ms = attempts[0].duration_ms
    successful = 0
    for attempt in attempts:
        if attempt.success:
            successful += 1
        min_ms = min(min_ms, attempt.duration_ms)
        max_ms = max(max_ms, attempt.duration_ms)

    total = len(attempts)
    seconds = total_time_ms / 1000

    return BenchmarkResult(
        name=name,
        total_requests=total,
        successful_requests=successful,
        failed_requests=total - successful,
        min_response_time_ms=min_ms,
        max_response_time_ms=max_ms,
        avg_response_time_ms=total_time_ms / total,
        total_time_ms=total_time_ms,
        requests_per_sec=total / seconds if seconds > 0 else 0.0
    )
