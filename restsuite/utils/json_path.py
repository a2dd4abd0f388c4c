import re
from typing import Any, List, Tuple

from restsuite.core.errors import PathResolutionError

# "key", "key[0]", "key[0][2]", "[1]"
_SEGMENT_PATTERN = re.compile(r'^(?P<key>[^\[\]]*)(?P<indexes>(?:\[[^\[\]]*\])*)$')
_INDEX_PATTERN = re.compile(r'\[([^\[\]]*)\]')


def _split_segment(segment: str) -> Tuple[str, List[int]]:
    match = _SEGMENT_PATTERN.match(segment)
    if not match:
        raise PathResolutionError(f"invalid path segment: {segment}")

    indexes = []
    for raw_index in _INDEX_PATTERN.findall(match.group("indexes")):
        try:
            indexes.append(int(raw_index))
        except ValueError:
            raise PathResolutionError(f"invalid array index: {raw_index}")
    return match.group("key"), indexes


def split_path(path: str) -> List[str]:
    """Split a path into its dot-separated segments, dropping a leading `$`."""
    if path.startswith("$."):
        path = path[2:]
    elif path == "$":
        path = ""
    elif path.startswith("$["):
        path = path[1:]
    return [segment for segment in path.split(".") if segment]


def resolve_path(data: Any, path: str) -> Any:
    """
    Walk a decoded JSON document along a dotted path with optional bracket indexes.

    `user.tags[0]` descends into `user`, then `tags`, then takes element 0.
    A segment that is only an index (`[0]`) indexes the current value directly.
    A key missing from an object resolves to None; walking into a non-object,
    indexing a non-array and out-of-range indexes raise PathResolutionError.

    Args:
        data: Decoded JSON value (dict, list or scalar)
        path: Path expression such as `$.items[2].name` or `items[2].name`

    Returns:
        The value found at the path
    """
    current = data

    for segment in split_path(path):
        key, indexes = _split_segment(segment)

        if key:
            if not isinstance(current, dict):
                raise PathResolutionError(f"expected object at path {key}")
            current = current.get(key)

        for index in indexes:
            if not isinstance(current, list):
                raise PathResolutionError(f"expected array at index {index}")
            if index < 0 or index >= len(current):
                raise PathResolutionError(f"array index {index} out of bounds")
            current = current[index]

    return current
