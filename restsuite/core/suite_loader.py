from typing import Any, Dict, List, Mapping, Optional

import yaml

from restsuite.core.errors import ConfigurationError
from restsuite.models.benchmark import Benchmark
from restsuite.models.test_case import TestSuite
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_document(text: str, source: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse {source}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source} must contain a mapping at the top level")
    return data


def _read(path: str) -> str:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as e:
        raise ConfigurationError(f"failed to read suite file {path}: {e}")


def _list_section(data: Dict[str, Any], key: str) -> List[Any]:
    section = data.get(key)
    if section is None:
        return []
    if not isinstance(section, list):
        raise ConfigurationError(f"'{key}' must be a list")
    for entry in section:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"every entry of '{key}' must be a mapping")
    return section


def parse_test_suite(text: str, source: str = "suite", defaults: Optional[Mapping[str, Any]] = None) -> TestSuite:
    """
    Build a TestSuite from YAML text.

    Args:
        text: YAML document with name, base_url, variables, parallel, max_workers and tests
        source: Name used in error messages
        defaults: Top-level values used when the document does not set them

    Returns:
        The parsed TestSuite
    """
    data = {**(defaults or {}), **_parse_document(text, source)}
    data["tests"] = _list_section(data, "tests")
    if not isinstance(data.get("variables") or {}, dict):
        raise ConfigurationError("'variables' must be a mapping")

    try:
        suite = TestSuite.from_dict(data)
    except ConfigurationError:
        raise
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid suite definition in {source}: {e}")

    logger.info(f"Loaded suite '{suite.name}' with {len(suite.tests)} tests from {source}")
    return suite


def load_test_suite(path: str, defaults: Optional[Mapping[str, Any]] = None) -> TestSuite:
    return parse_test_suite(_read(path), source=path, defaults=defaults)


def parse_benchmarks(text: str, source: str = "suite") -> List[Benchmark]:
    """Benchmarks listed under the `benchmarks` key; an absent key means none"""
    data = _parse_document(text, source)

    benchmarks = []
    for entry in _list_section(data, "benchmarks"):
        try:
            benchmarks.append(Benchmark.from_dict(entry))
        except ConfigurationError:
            raise
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid benchmark definition in {source}: {e}")

    if benchmarks:
        logger.info(f"Loaded {len(benchmarks)} benchmarks from {source}")
    return benchmarks


def load_benchmarks(path: str) -> List[Benchmark]:
    return parse_benchmarks(_read(path), source=path)
