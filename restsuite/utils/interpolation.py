import json
import re
from typing import Any, Dict, Mapping, Optional

from restsuite.models.expected_value import ExpectedValue

PLACEHOLDER_PATTERN = re.compile(r'\$\{([^{}]+)\}')
_BARE_PLACEHOLDER = re.compile(r'^\$\{[^{}]+\}$')
_INTEGER_PATTERN = re.compile(r'^[+-]?[0-9]+\Z')
_FLOAT_PATTERN = re.compile(r'^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?\Z')
_BOOLEANS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def interpolate_variables(text: str, variables: Optional[Mapping[str, str]]) -> str:
    """
    Replace every `${name}` placeholder in `text` with `variables[name]`.

    Placeholders without a matching variable are left untouched. Replacement is
    a single pass: substituted values are not scanned again.
    """
    if not text or not variables:
        return text

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def interpolate_headers(headers: Optional[Mapping[str, str]], variables: Optional[Mapping[str, str]]) -> Dict[str, str]:
    return {name: interpolate_variables(str(value), variables) for name, value in (headers or {}).items()}


def coerce_scalar(text: str) -> ExpectedValue:
    """
    Re-type a substituted string: integer, then float, then boolean, else string.

    Only plain numerals are numbers; digit separators and surrounding
    whitespace keep the value a string.
    """
    if _INTEGER_PATTERN.match(text):
        return ExpectedValue.from_raw(int(text))
    if _FLOAT_PATTERN.match(text):
        return ExpectedValue.from_raw(float(text))
    if text in _BOOLEANS:
        return ExpectedValue.from_raw(_BOOLEANS[text])
    return ExpectedValue.string(text)


def interpolate_expected(expected: ExpectedValue, variables: Optional[Mapping[str, str]]) -> ExpectedValue:
    """
    Interpolate an assertion's expected value.

    Only string values can hold placeholders. When the whole value was a single
    `${name}` token and it was substituted, the result is re-typed so that
    `"${status}"` can be compared as a number.
    """
    if not expected.is_string or not variables:
        return expected

    original = expected.value
    interpolated = interpolate_variables(original, variables)
    if interpolated != original and _BARE_PLACEHOLDER.match(original):
        return coerce_scalar(interpolated)
    return ExpectedValue.string(interpolated)


def stringify_value(value: Any) -> str:
    """String form used for variables and for contains comparisons."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)
