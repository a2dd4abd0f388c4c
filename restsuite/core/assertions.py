import json
import re
from typing import Any, List, Mapping, Optional

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from restsuite.core.errors import AssertionFailure, ConfigurationError, PathResolutionError
from restsuite.models.expected_value import ExpectedValue
from restsuite.models.test_case import Assertion, AssertionOperator, AssertionType
from restsuite.models.test_result import TestResult
from restsuite.utils.interpolation import interpolate_expected, interpolate_variables, stringify_value
from restsuite.utils.json_path import resolve_path
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)

_DEFAULT_OPERATORS = {
    AssertionType.STATUS_CODE: AssertionOperator.EQUALS,
    AssertionType.JSON_PATH: AssertionOperator.EQUALS,
    AssertionType.XPATH: AssertionOperator.EQUALS,
    AssertionType.CSS_SELECTOR: AssertionOperator.EQUALS,
    AssertionType.HEADER: AssertionOperator.EQUALS,
    AssertionType.BODY_CONTAINS: AssertionOperator.CONTAINS,
    AssertionType.REGEX: AssertionOperator.MATCHES,
    AssertionType.RESPONSE_TIME: AssertionOperator.LESS_THAN,
}


def _normalize_numbers(actual: Any, expected: Any):
    """If one side is a float and the other an int, compare both as floats."""
    actual_is_int = isinstance(actual, int) and not isinstance(actual, bool)
    expected_is_int = isinstance(expected, int) and not isinstance(expected, bool)
    if isinstance(actual, float) and expected_is_int:
        return actual, float(expected)
    if actual_is_int and isinstance(expected, float):
        return float(actual), expected
    return actual, expected


def values_equal(actual: Any, expected: Any) -> bool:
    """
    Equality after numeric normalization.

    Booleans never equal numbers, strings never equal numbers, lists compare
    element by element with the same rules.
    """
    if isinstance(actual, list) or isinstance(expected, list):
        if not (isinstance(actual, list) and isinstance(expected, list)):
            return False
        if len(actual) != len(expected):
            return False
        return all(values_equal(a, e) for a, e in zip(actual, expected))

    if isinstance(actual, bool) != isinstance(expected, bool):
        return False

    actual, expected = _normalize_numbers(actual, expected)
    if type(actual) is not type(expected):
        return False
    return actual == expected


class AssertionEngine:
    """Evaluates assertions against a test result."""

    def run_assertions(
        self,
        result: TestResult,
        assertions: List[Assertion],
        variables: Optional[Mapping[str, str]] = None
    ) -> List[str]:
        """
        Evaluate every assertion and collect the failures.

        Evaluation does not stop at the first failure.

        Args:
            result: The response to check
            assertions: Assertions in declaration order
            variables: Variables substituted into assertion paths and expected values

        Returns:
            One message per failed assertion; empty when everything passed
        """
        errors = []
        for assertion in assertions:
            try:
                self.run_single_assertion(result, assertion, variables)
            except (AssertionFailure, ConfigurationError) as e:
                logger.debug(f"Assertion {assertion.type} failed for '{result.name}': {e}")
                errors.append(str(e))
        return errors

    def run_single_assertion(
        self,
        result: TestResult,
        assertion: Assertion,
        variables: Optional[Mapping[str, str]] = None
    ) -> None:
        """Raise AssertionFailure or ConfigurationError if `assertion` does not hold."""
        assertion = self.interpolate_assertion(assertion, variables)

        try:
            assertion_type = AssertionType(assertion.type)
        except ValueError:
            raise ConfigurationError(f"unknown assertion type: {assertion.type}")

        operator = self._operator(assertion, assertion_type)

        handlers = {
            AssertionType.STATUS_CODE: self._assert_status_code,
            AssertionType.JSON_PATH: self._assert_json_path,
            AssertionType.XPATH: self._assert_html_selector,
            AssertionType.CSS_SELECTOR: self._assert_html_selector,
            AssertionType.HEADER: self._assert_header,
            AssertionType.BODY_CONTAINS: self._assert_body_contains,
            AssertionType.REGEX: self._assert_regex,
            AssertionType.RESPONSE_TIME: self._assert_response_time,
        }
        handlers[assertion_type](result, assertion, operator)

    def interpolate_assertion(self, assertion: Assertion, variables: Optional[Mapping[str, str]]) -> Assertion:
        if not variables:
            return assertion
        return Assertion(
            type=assertion.type,
            path=interpolate_variables(assertion.path, variables),
            expected=interpolate_expected(assertion.expected, variables),
            operator=assertion.operator
        )

    @staticmethod
    def _operator(assertion: Assertion, assertion_type: AssertionType) -> AssertionOperator:
        if not assertion.operator:
            return _DEFAULT_OPERATORS[assertion_type]
        try:
            return AssertionOperator.parse(assertion.operator)
        except ValueError:
            raise ConfigurationError(f"unsupported operator: {assertion.operator}")

    @staticmethod
    def _unsupported(kind: str, operator: AssertionOperator) -> ConfigurationError:
        return ConfigurationError(f"unsupported operator for {kind}: {operator.value}")

    def _assert_status_code(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        try:
            expected = assertion.expected.as_int()
        except ConfigurationError:
            raise ConfigurationError(f"invalid status code format: {assertion.expected}")
        actual = result.status_code

        if operator is AssertionOperator.EQUALS:
            if actual != expected:
                raise AssertionFailure(f"status code assertion failed: expected {expected}, got {actual}")
        elif operator is AssertionOperator.NOT_EQUALS:
            if actual == expected:
                raise AssertionFailure(f"status code assertion failed: expected not {expected}, got {actual}")
        elif operator is AssertionOperator.GREATER_THAN:
            if actual <= expected:
                raise AssertionFailure(f"status code assertion failed: expected > {expected}, got {actual}")
        elif operator is AssertionOperator.LESS_THAN:
            if actual >= expected:
                raise AssertionFailure(f"status code assertion failed: expected < {expected}, got {actual}")
        else:
            raise self._unsupported("status code", operator)

    def _assert_json_path(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        try:
            data = json.loads(result.body)
        except ValueError as e:
            raise AssertionFailure(f"failed to parse JSON response: {e}")

        try:
            value = resolve_path(data, assertion.path)
        except PathResolutionError as e:
            raise AssertionFailure(f"failed to extract JSON path {assertion.path}: {e}")

        self.compare_values(value, assertion.expected, operator, "JSON path")

    def _assert_html_selector(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        soup = BeautifulSoup(result.body, "html.parser")
        try:
            elements = soup.select(assertion.path)
        except SelectorSyntaxError as e:
            raise ConfigurationError(f"invalid CSS selector {assertion.path}: {e}")

        if not elements:
            value = None
        elif len(elements) == 1:
            value = elements[0].get_text().strip()
        else:
            value = [element.get_text().strip() for element in elements]

        self.compare_values(value, assertion.expected, operator, "HTML selector")

    def _assert_header(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        values = result.header_values(assertion.path)
        if not values:
            raise AssertionFailure(f"header {assertion.path} not found")

        value = values[0] if len(values) == 1 else values
        self.compare_values(value, assertion.expected, operator, "header")

    def _assert_body_contains(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        expected = assertion.expected.as_str()

        if operator is AssertionOperator.CONTAINS:
            if expected not in result.body:
                raise AssertionFailure(f"body does not contain expected text: {expected}")
        elif operator is AssertionOperator.NOT_CONTAINS:
            if expected in result.body:
                raise AssertionFailure(f"body contains unexpected text: {expected}")
        else:
            raise self._unsupported("body_contains", operator)

    def _assert_regex(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        pattern = assertion.expected.as_str()
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"invalid regex pattern: {e}")

        if operator is AssertionOperator.MATCHES:
            if not regex.search(result.body):
                raise AssertionFailure(f"response does not match regex pattern: {pattern}")
        elif operator is AssertionOperator.NOT_MATCHES:
            if regex.search(result.body):
                raise AssertionFailure(f"response matches regex pattern (should not): {pattern}")
        else:
            raise self._unsupported("regex", operator)

    def _assert_response_time(self, result: TestResult, assertion: Assertion, operator: AssertionOperator):
        try:
            expected_ms = assertion.expected.as_int()
        except ConfigurationError:
            raise ConfigurationError(f"invalid response time format: {assertion.expected}")
        actual_ms = int(result.response_time_ms)

        if operator is AssertionOperator.LESS_THAN:
            if actual_ms >= expected_ms:
                raise AssertionFailure(f"response time assertion failed: expected < {expected_ms}ms, got {actual_ms}ms")
        elif operator is AssertionOperator.GREATER_THAN:
            if actual_ms <= expected_ms:
                raise AssertionFailure(f"response time assertion failed: expected > {expected_ms}ms, got {actual_ms}ms")
        elif operator is AssertionOperator.EQUALS:
            if actual_ms != expected_ms:
                raise AssertionFailure(f"response time assertion failed: expected {expected_ms}ms, got {actual_ms}ms")
        else:
            raise self._unsupported("response_time", operator)

    def compare_values(self, actual: Any, expected: ExpectedValue, operator: AssertionOperator, context: str) -> None:
        """Generic comparator shared by json_path, selector and header assertions"""
        expected_value = expected.to_python()
        shown_actual = stringify_value(actual)

        if operator is AssertionOperator.EQUALS:
            if not values_equal(actual, expected_value):
                raise AssertionFailure(f"{context} assertion failed: expected {expected}, got {shown_actual}")
        elif operator is AssertionOperator.NOT_EQUALS:
            if values_equal(actual, expected_value):
                raise AssertionFailure(f"{context} assertion failed: expected not {expected}, got {shown_actual}")
        elif operator is AssertionOperator.CONTAINS:
            if expected.as_str() not in shown_actual:
                raise AssertionFailure(f"{context} assertion failed: {shown_actual} does not contain {expected}")
        elif operator is AssertionOperator.NOT_CONTAINS:
            if expected.as_str() in shown_actual:
                raise AssertionFailure(f"{context} assertion failed: {shown_actual} contains {expected}")
        else:
            raise ConfigurationError(f"unsupported operator: {operator.value}")


def summarize_failures(errors: List[str]) -> str:
    return "assertions failed: " + "; ".join(errors)
