import re
from typing import Any

from restsuite.core.errors import ConfigurationError

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_PART_PATTERN = re.compile(r'(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)')


def parse_duration(value: Any) -> float:
    """
    Convert a duration from a suite file into seconds.

    Accepts plain numbers (seconds) and unit strings such as "250ms", "5s",
    "1m30s" or "1.5h". None and empty strings mean zero.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ConfigurationError(f"invalid duration: {value}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().replace(" ", "")
        try:
            seconds = float(text)
        except ValueError:
            parts = _PART_PATTERN.findall(text)
            if not parts or "".join(number + unit for number, unit in parts) != text:
                raise ConfigurationError(f"invalid duration: {value}")
            seconds = sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)

    if seconds < 0:
        raise ConfigurationError(f"duration must not be negative: {value}")
    return seconds
