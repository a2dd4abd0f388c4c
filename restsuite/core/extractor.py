import json
import re
from typing import Mapping

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from restsuite.core.errors import ExtractionError, PathResolutionError
from restsuite.models.test_result import TestResult
from restsuite.utils.interpolation import stringify_value
from restsuite.utils.json_path import resolve_path
from restsuite.utils.logger import get_logger

logger = get_logger(__name__)


class _RuleError(Exception):
    pass


class VariableExtractor:
    """
    Pulls named values out of a response for later tests.

    Each rule is `<type>:<argument>`:

    - `json:<path>`: value at a dotted/bracket path in the JSON body
    - `header:<name>`: first value of a response header
    - `regex:<pattern>`: first capture group, or the whole match without groups
    - `css:<selector>`: trimmed text of the first matching element
    - `status:` the status code
    - `response_time:` elapsed milliseconds with two decimals
    """

    def extract_variables(self, result: TestResult, extractions: Mapping[str, str]) -> None:
        """
        Store every extracted value in `result.variables` as a string.

        Raises ExtractionError naming the variable on the first rule that fails;
        variables extracted before it stay on the result.
        """
        for variable, expression in extractions.items():
            try:
                value = self.extract_value(result, expression)
            except _RuleError as e:
                raise ExtractionError(variable, str(e))
            result.variables[variable] = value
            logger.debug(f"Extracted {variable}={value!r} from '{result.name}'")

    def extract_value(self, result: TestResult, expression: str) -> str:
        extractor_type, separator, argument = expression.partition(":")
        if not separator:
            raise _RuleError(f"invalid extraction expression format: {expression}")

        if extractor_type == "json":
            return self._from_json(result.body, argument)
        if extractor_type == "header":
            return self._from_header(result, argument)
        if extractor_type == "regex":
            return self._from_regex(result.body, argument)
        if extractor_type == "css":
            return self._from_css(result.body, argument)
        if extractor_type == "status":
            return str(result.status_code)
        if extractor_type == "response_time":
            return f"{result.response_time_ms:.2f}"
        raise _RuleError(f"unsupported extractor type: {extractor_type}")

    @staticmethod
    def _from_json(body: str, path: str) -> str:
        try:
            data = json.loads(body)
        except ValueError as e:
            raise _RuleError(f"failed to parse JSON response: {e}")
        try:
            return stringify_value(resolve_path(data, path))
        except PathResolutionError as e:
            raise _RuleError(str(e))

    @staticmethod
    def _from_header(result: TestResult, name: str) -> str:
        values = result.header_values(name)
        if not values:
            raise _RuleError(f"header {name} not found")
        return values[0]

    @staticmethod
    def _from_regex(body: str, pattern: str) -> str:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise _RuleError(f"invalid regex pattern: {e}")

        match = regex.search(body)
        if match is None:
            raise _RuleError("regex pattern did not match")
        if regex.groups:
            return match.group(1) or ""
        return match.group(0)

    @staticmethod
    def _from_css(body: str, selector: str) -> str:
        soup = BeautifulSoup(body, "html.parser")
        try:
            element = soup.select_one(selector)
        except SelectorSyntaxError as e:
            raise _RuleError(f"invalid CSS selector: {e}")
        if element is None:
            raise _RuleError("CSS selector did not match any elements")
        return element.get_text().strip()
