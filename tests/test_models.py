from datetime import datetime, timedelta

import pytest

from restsuite.core.errors import ConfigurationError
from restsuite.models.benchmark import Benchmark, BenchmarkResult
from restsuite.models.expected_value import ExpectedValue, ValueKind
from restsuite.models.test_case import Assertion, AssertionOperator, Test, TestSuite
from restsuite.models.test_result import TestResult, TestSuiteResult
from restsuite.utils.durations import parse_duration


class TestExpectedValue:

    @pytest.mark.parametrize("raw, kind, value", [
        ("abc", ValueKind.STRING, "abc"),
        (3, ValueKind.INTEGER, 3),
        (2.5, ValueKind.FLOAT, 2.5),
        (True, ValueKind.BOOLEAN, True),
        (None, ValueKind.STRING, ""),
        ([1, 2], ValueKind.STRING, "[1, 2]"),
    ])
    def test_from_raw(self, raw, kind, value):
        expected = ExpectedValue.from_raw(raw)
        assert expected.kind is kind
        assert expected.value == value

    def test_as_int(self):
        assert ExpectedValue.from_raw(" 201 ").as_int() == 201
        assert ExpectedValue.from_raw(200.0).as_int() == 200
        with pytest.raises(ConfigurationError):
            ExpectedValue.from_raw(True).as_int()
        with pytest.raises(ConfigurationError):
            ExpectedValue.from_raw(1.5).as_int()
        with pytest.raises(ConfigurationError):
            ExpectedValue.from_raw("abc").as_int()

    def test_as_float_and_str(self):
        assert ExpectedValue.from_raw("1.5").as_float() == 1.5
        assert ExpectedValue.from_raw(2).as_float() == 2.0
        assert ExpectedValue.from_raw(False).as_str() == "false"
        assert str(ExpectedValue.from_raw(3)) == "3"


@pytest.mark.parametrize("raw, seconds", [
    (None, 0.0),
    ("", 0.0),
    (5, 5.0),
    (0.5, 0.5),
    ("2", 2.0),
    ("250ms", 0.25),
    ("1m30s", 90.0),
    ("1.5h", 5400.0),
])
def test_parse_duration(raw, seconds):
    assert parse_duration(raw) == pytest.approx(seconds)


@pytest.mark.parametrize("raw", ["soon", "5 parsecs", -1, True])
def test_parse_duration_rejects_invalid_values(raw):
    with pytest.raises(ConfigurationError):
        parse_duration(raw)


def test_operator_aliases():
    assert AssertionOperator.parse("==") is AssertionOperator.EQUALS
    assert AssertionOperator.parse("not_matches") is AssertionOperator.NOT_MATCHES
    with pytest.raises(ValueError):
        AssertionOperator.parse("like")


def test_test_from_dict_normalizes_fields():
    test = Test.from_dict({
        "name": "t",
        "method": "patch",
        "url": "/x",
        "body": {"a": 1},
        "headers": {"X-Count": 2},
        "assertions": [{"type": "status_code", "expected": "200"}],
    })

    assert test.method == "PATCH"
    assert test.body == '{"a": 1}'
    assert test.headers == {"X-Count": "2"}
    assert test.assertions[0] == Assertion(type="status_code", expected="200")
    assert Test.from_dict(test.to_dict()) == test


def test_suite_defaults():
    suite = TestSuite(name="s", max_workers=-1)
    assert suite.max_workers == 10
    assert suite.parallel is False


def test_benchmark_to_test():
    benchmark = Benchmark.from_dict({"name": "b", "url": "/x", "method": "post", "body": {"k": "v"},
                                     "requests": 5})
    test = benchmark.to_test()

    assert (test.name, test.method, test.url, test.body) == ("b", "POST", "/x", '{"k": "v"}')
    assert benchmark.concurrent == 1


def test_test_result_helpers():
    result = TestResult(name="r", success=True)
    result.headers["Content-Type"] = ["text/plain"]
    assert result.header_values("content-type") == ["text/plain"]
    assert result.header_values("missing") == []

    result.mark_failed("boom")
    assert not result.success
    assert result.to_dict()["error"] == "boom"
    assert result.to_dict()["headers"] == {"Content-Type": ["text/plain"]}


def test_suite_result_counts():
    start = datetime(2024, 1, 1, 12, 0, 0)
    suite_result = TestSuiteResult(
        name="s",
        start_time=start,
        end_time=start + timedelta(seconds=3),
        test_results=[TestResult(name="a", success=True), TestResult(name="b"), TestResult(name="c", success=True)],
        benchmark_results=[BenchmarkResult(name="bench")],
    )

    assert suite_result.total_count == 3
    assert suite_result.passed_count == 2
    assert suite_result.failed_count == 1
    assert suite_result.success_rate == pytest.approx(2 / 3)
    assert not suite_result.all_passed
    assert suite_result.duration_seconds == 3.0


def test_empty_suite_result():
    suite_result = TestSuiteResult(name="s", start_time=datetime.now())
    assert suite_result.success_rate == 0.0
    assert suite_result.all_passed
    assert suite_result.duration_seconds == 0.0


def test_assertion_rejects_null_expected_value():
    with pytest.raises(ConfigurationError, match="must not be null"):
        Assertion.from_dict({"type": "json_path", "path": "deleted_at", "expected": None})

    assert Assertion.from_dict({"type": "status_code"}).expected == ExpectedValue.string("")
