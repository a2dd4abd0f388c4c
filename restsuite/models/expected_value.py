import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from restsuite.core.errors import ConfigurationError

Scalar = Union[str, int, float, bool]


class ValueKind(Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ExpectedValue:
    """The expected side of an assertion: a string, integer, float or boolean."""
    kind: ValueKind
    value: Scalar

    @classmethod
    def from_raw(cls, raw: Any) -> 'ExpectedValue':
        """Build an ExpectedValue from whatever the suite file decoded to"""
        if isinstance(raw, ExpectedValue):
            return raw
        # bool is a subclass of int, check it first
        if isinstance(raw, bool):
            return cls(ValueKind.BOOLEAN, raw)
        if isinstance(raw, int):
            return cls(ValueKind.INTEGER, raw)
        if isinstance(raw, float):
            return cls(ValueKind.FLOAT, raw)
        if raw is None:
            return cls(ValueKind.STRING, "")
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        return cls(ValueKind.STRING, json.dumps(raw))

    @classmethod
    def string(cls, value: str) -> 'ExpectedValue':
        return cls(ValueKind.STRING, value)

    @property
    def is_string(self) -> bool:
        return self.kind is ValueKind.STRING

    def as_str(self) -> str:
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)

    def as_int(self) -> int:
        """
        Integer view of the value.

        Strings are parsed, integral floats are accepted, booleans are rejected.
        """
        if self.kind is ValueKind.INTEGER:
            return self.value
        if self.kind is ValueKind.STRING:
            try:
                return int(self.value.strip())
            except ValueError:
                raise ConfigurationError(f"invalid integer format: {self.value}")
        if self.kind is ValueKind.FLOAT and float(self.value).is_integer():
            return int(self.value)
        raise ConfigurationError(f"expected an integer, got {self.kind.value} {self.as_str()}")

    def as_float(self) -> float:
        if self.kind in (ValueKind.INTEGER, ValueKind.FLOAT):
            return float(self.value)
        if self.kind is ValueKind.STRING:
            try:
                return float(self.value.strip())
            except ValueError:
                raise ConfigurationError(f"invalid number format: {self.value}")
        raise ConfigurationError(f"expected a number, got boolean {self.as_str()}")

    def to_python(self) -> Scalar:
        return self.value

    def __str__(self) -> str:
        return self.as_str()
