import os
import json
import sys
from datetime import datetime
from html import escape
from typing import Dict, Any, Optional, TextIO

from restsuite.models.benchmark import BenchmarkResult
from restsuite.models.test_result import TestResult, TestSuiteResult
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)


class ReportGenerator:
    """Generates test reports from suite results."""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = output_dir

    def build_report(self, suite_result: TestSuiteResult) -> Dict[str, Any]:
        """
        Build the serializable report structure

        Args:
            suite_result: The suite result to report on

        Returns:
            Dictionary with timestamp, tests, benchmarks and summary
        """
        return {
            "name": suite_result.name,
            "timestamp": datetime.now().isoformat(),
            "start_time": suite_result.start_time.isoformat(),
            "end_time": suite_result.end_time.isoformat() if suite_result.end_time else None,
            "duration_seconds": round(suite_result.duration_seconds, 3),
            "tests": [result.to_dict() for result in suite_result.test_results],
            "benchmarks": [result.to_dict() for result in suite_result.benchmark_results],
            "summary": {
                "total": suite_result.total_count,
                "passed": suite_result.passed_count,
                "failed": suite_result.failed_count,
                "success_rate": round(suite_result.success_rate * 100, 2)
            }
        }

    def print_console_report(self, suite_result: TestSuiteResult, stream: Optional[TextIO] = None) -> None:
        out = stream or sys.stdout

        print(f"\n=== {suite_result.name} ===\n", file=out)
        for result in suite_result.test_results:
            print(self._format_test_line(result), file=out)
            if result.error:
                print(f"       Error: {result.error}", file=out)
            for key, value in result.variables.items():
                print(f"       {key} = {value}", file=out)

        if suite_result.benchmark_results:
            print("\nBenchmarks:", file=out)
            print(f"  {'Name':<24} {'Total':>7} {'OK':>7} {'Failed':>7} {'Min ms':>9} "
                  f"{'Max ms':>9} {'Avg ms':>9} {'Req/s':>9}", file=out)
            for bench in suite_result.benchmark_results:
                print(self._format_benchmark_line(bench), file=out)

        print(f"\nSummary: {suite_result.passed_count} passed, {suite_result.failed_count} failed, "
              f"{suite_result.total_count} total ({suite_result.duration_seconds:.2f}s)", file=out)

    @staticmethod
    def _format_test_line(result: TestResult) -> str:
        status = "PASS" if result.success else "FAIL"
        return f"[{status}] {result.name} ({result.response_time_ms:.2f}ms, status {result.status_code})"

    @staticmethod
    def _format_benchmark_line(bench: BenchmarkResult) -> str:
        return (f"  {bench.name:<24} {bench.total_requests:>7} {bench.successful_requests:>7} "
                f"{bench.failed_requests:>7} {bench.min_response_time_ms:>9.2f} "
                f"{bench.max_response_time_ms:>9.2f} {bench.avg_response_time_ms:>9.2f} "
                f"{bench.requests_per_sec:>9.2f}")

    def generate_json_report(self, suite_result: TestSuiteResult, filename: Optional[str] = None) -> str:
        """
        Write the report as JSON

        Args:
            suite_result: The suite result to report on
            filename: Target path; defaults to a timestamped file in the output directory

        Returns:
            Path to the generated JSON report
        """
        report_path = filename or os.path.join(self.output_dir, f"api_test_report_{self._get_timestamp()}.json")
        self._ensure_parent(report_path)

        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(self.build_report(suite_result), f, indent=2, ensure_ascii=False)

        logger.info(f"JSON report saved to {report_path}")
        return report_path

    def generate_html_report(self, suite_result: TestSuiteResult, filename: Optional[str] = None) -> str:
        """
        Write a self-contained HTML report

        Returns:
            Path to the generated HTML report
        """
        html_path = filename or os.path.join(self.output_dir, f"api_test_report_{self._get_timestamp()}.html")
        self._ensure_parent(html_path)

        with open(html_path, 'w', encoding='utf-8') as f:
            f.write(self.render_html(suite_result))

        logger.info(f"HTML report saved to {html_path}")
        return html_path

    def render_html(self, suite_result: TestSuiteResult) -> str:
        rows = "\n".join(self._html_test_row(result) for result in suite_result.test_results)
        bench_section = ""
        if suite_result.benchmark_results:
            bench_rows = "\n".join(self._html_benchmark_row(b) for b in suite_result.benchmark_results)
            bench_section = f"""
<h2>Benchmarks</h2>
<table>
<tr><th>Name</th><th>Total</th><th>Successful</th><th>Failed</th><th>Min ms</th><th>Max ms</th><th>Avg ms</th><th>Req/s</th></tr>
{bench_rows}
</table>"""

        return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{escape(suite_result.name)} - API Test Report</title>
<style>
body {{ font-family: sans-serif; margin: 2em; }}
table {{ border-collapse: collapse; width: 100%; margin-bottom: 2em; }}
th, td {{ border: 1px solid #ccc; padding: 6px 10px; text-align: left; vertical-align: top; }}
th {{ background: #f0f0f0; }}
.pass {{ color: #2e7d32; font-weight: bold; }}
.fail {{ color: #c62828; font-weight: bold; }}
</style>
</head>
<body>
<h1>{escape(suite_result.name)}</h1>
<p>{suite_result.passed_count} passed, {suite_result.failed_count} failed, {suite_result.total_count} total
({suite_result.success_rate * 100:.1f}% success, {suite_result.duration_seconds:.2f}s)</p>
<h2>Tests</h2>
<table>
<tr><th>Status</th><th>Name</th><th>HTTP status</th><th>Time ms</th><th>Error</th><th>Variables</th></tr>
{rows}
</table>{bench_section}
</body>
</html>
"""

    @staticmethod
    def _html_test_row(result: TestResult) -> str:
        css_class, status = ("pass", "PASS") if result.success else ("fail", "FAIL")
        variables = "<br>".join(f"{escape(k)} = {escape(v)}" for k, v in result.variables.items())
        return (f'<tr><td class="{css_class}">{status}</td><td>{escape(result.name)}</td>'
                f'<td>{result.status_code}</td><td>{result.response_time_ms:.2f}</td>'
                f'<td>{escape(result.error)}</td><td>{variables}</td></tr>')

    @staticmethod
    def _html_benchmark_row(bench: BenchmarkResult) -> str:
        return (f'<tr><td>{escape(bench.name)}</td><td>{bench.total_requests}</td>'
                f'<td>{bench.successful_requests}</td><td>{bench.failed_requests}</td>'
                f'<td>{bench.min_response_time_ms:.2f}</td><td>{bench.max_response_time_ms:.2f}</td>'
                f'<td>{bench.avg_response_time_ms:.2f}</td><td>{bench.requests_per_sec:.2f}</td></tr>')

    @staticmethod
    def _ensure_parent(path: str) -> None:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)

    def _get_timestamp(self) -> str:
        """Get a timestamp string for file names"""
        return datetime.now().strftime("%Y%m%d_%H%M%S")
