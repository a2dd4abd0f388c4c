#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from typing import Dict, Any, List, Optional

import yaml

from restsuite.core.benchmark import BenchmarkExecutor, validate_benchmark
from restsuite.core.errors import RestSuiteError
from restsuite.core.report_generator import ReportGenerator
from restsuite.core.suite_loader import load_benchmarks, load_test_suite
from restsuite.core.test_runner import TestExecutor
from restsuite.models.test_result import TestSuiteResult
from restsuite.utils.logger import get_logger, set_log_level

logger = get_logger(__name__)

__version__ = "0.1.0"

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "settings.yaml")
OUTPUT_FORMATS = ["console", "json", "html"]


def load_config(config_path: str = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
        return config if isinstance(config, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config from {config_path}: {str(e)}")
        return {}


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="restsuite - declarative REST API testing")

    # Suite file
    parser.add_argument("-c", "--config", required=True, help="Path to the YAML test suite")

    # Report format and destination
    parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS,
                        help="Report format (default from settings, else console)")
    parser.add_argument("--file", help="Report file path for json/html output")

    # Execution overrides
    parser.add_argument("--parallel", action="store_true", help="Run independent tests concurrently")
    parser.add_argument("--workers", type=int, help="Maximum number of concurrent tests")
    parser.add_argument("-u", "--url", help="Override the suite base URL")

    # Settings file
    parser.add_argument("-s", "--settings", default=DEFAULT_SETTINGS_PATH,
                        help="Path to the settings file")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def write_report(suite_result: TestSuiteResult, output_format: str, output_file: Optional[str],
                 output_dir: str) -> None:
    report_generator = ReportGenerator(output_dir=output_dir)

    if output_format == "json":
        path = report_generator.generate_json_report(suite_result, output_file)
        print(f"JSON report written to {path}")
    elif output_format == "html":
        path = report_generator.generate_html_report(suite_result, output_file)
        print(f"HTML report written to {path}")
    else:
        report_generator.print_console_report(suite_result)


def run_suite(args, config: Dict[str, Any]) -> int:
    """Load the suite, run tests then benchmarks, and write the report"""
    http_config = config.get('http') or {}
    execution_config = config.get('execution') or {}
    report_config = config.get('report') or {}

    defaults = {k: execution_config[k] for k in ('parallel', 'max_workers') if k in execution_config}
    suite = load_test_suite(args.config, defaults=defaults)
    benchmarks = load_benchmarks(args.config)
    for benchmark in benchmarks:
        validate_benchmark(benchmark)

    if args.url:
        suite.base_url = args.url
    if args.parallel:
        suite.parallel = True
    if args.workers and args.workers > 0:
        suite.max_workers = args.workers

    executor = TestExecutor(
        base_url=suite.base_url,
        default_timeout=float(http_config.get('default_timeout') or 30),
        verify_ssl=bool(http_config.get('verify_ssl', True))
    )

    try:
        suite_result = executor.run_test_suite(suite)

        if benchmarks:
            benchmark_executor = BenchmarkExecutor(request_executor=executor.request_executor)
            suite_result.benchmark_results = benchmark_executor.execute_benchmarks(benchmarks, suite.variables)
    finally:
        executor.request_executor.close()

    output_format = args.output or report_config.get('format') or "console"
    if output_format not in OUTPUT_FORMATS:
        logger.warning(f"Unknown report format '{output_format}', using console")
        output_format = "console"
    write_report(suite_result, output_format, args.file, report_config.get('output_dir', 'reports'))

    return 0 if suite_result.all_passed else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_arguments(argv)

    if args.verbose:
        set_log_level(logging.DEBUG)

    config = load_config(args.settings)

    try:
        return run_suite(args, config)
    except (RestSuiteError, OSError) as e:
        logger.error(f"Error running suite {args.config}: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
