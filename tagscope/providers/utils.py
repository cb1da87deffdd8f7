"""Utilities for beacon decoding: URL splitting, parameter maps and value formatting."""

import json
import math
import re
from functools import lru_cache
from typing import Any, Iterable, Iterator, List, Optional, Pattern, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit

from pydantic import BaseModel, ConfigDict

from .errors import MalformedURLError


class UrlParts(BaseModel):
    """Components of an observed request URL handed to provider hooks."""

    model_config = ConfigDict(frozen=True)

    href: str
    scheme: str
    hostname: str
    netloc: str
    path: str
    query: str
    fragment: str = ""


def split_url(url: Any) -> UrlParts:
    """Split an absolute URL into its components.

    Args:
        url: URL to parse

    Returns:
        UrlParts for the URL

    Raises:
        MalformedURLError: If the URL is not a string, cannot be parsed, or
            lacks a scheme or host
    """
    if not isinstance(url, str):
        raise MalformedURLError(repr(url), "URL must be a string")

    try:
        parsed = urlsplit(url.strip())
        hostname = parsed.hostname or ""
    except ValueError as e:
        raise MalformedURLError(url, f"Invalid URL ({e})")

    if not parsed.scheme or not parsed.netloc:
        raise MalformedURLError(url, "Invalid URL format")

    return UrlParts(
        href=url,
        scheme=parsed.scheme.lower(),
        hostname=hostname,
        netloc=parsed.netloc,
        path=parsed.path or "/",
        query=parsed.query,
        fragment=parsed.fragment,
    )


class QueryParams:
    """Ordered multi-value parameter map.

    Keeps every (key, value) pair in arrival order, so repeated keys and the
    order of URL and body parameters survive decoding.
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[str, str]]] = None):
        self._pairs: List[Tuple[str, str]] = [(str(k), str(v)) for k, v in (pairs or [])]

    @classmethod
    def from_query(cls, query: str) -> "QueryParams":
        """Build a map from a raw query string (without the leading ``?``)."""
        if query.startswith("?"):
            query = query[1:]
        if not query:
            return cls()
        return cls(parse_qsl(query, keep_blank_values=True))

    def append(self, key: str, value: str) -> None:
        self._pairs.append((str(key), str(value)))

    def extend(self, pairs: Iterable[Tuple[str, str]]) -> None:
        for key, value in pairs:
            self.append(key, value)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value for ``key``."""
        for name, value in self._pairs:
            if name == key:
                return value
        return default

    def get_all(self, key: str) -> List[str]:
        return [value for name, value in self._pairs if name == key]

    def has(self, key: str) -> bool:
        return any(name == key for name, _ in self._pairs)

    def keys(self) -> List[str]:
        seen = []
        for name, _ in self._pairs:
            if name not in seen:
                seen.append(name)
        return seen

    def items(self) -> List[Tuple[str, str]]:
        return list(self._pairs)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryParams):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"QueryParams({self._pairs!r})"


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, flags: int = re.IGNORECASE) -> Pattern[str]:
    """Compile and cache a regex pattern.

    Raises:
        re.error: If the pattern is not a valid regular expression
    """
    return re.compile(pattern, flags)


def stringify_value(value: Any) -> str:
    """Render a decoded scalar the way it appears in a browser beacon.

    Booleans become ``true``/``false``, ``None`` becomes ``null``, integral
    floats drop their fractional part and containers are rendered as
    compact JSON.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def parse_json_param(value: str) -> Any:
    """Parse a JSON document embedded in a parameter value.

    The value is tried as-is first and then percent-decoded once more, since
    some pixels double-encode their JSON payloads.

    Raises:
        ValueError: If neither form is valid JSON
    """
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        pass
    return json.loads(unquote(value))


def pretty_json(value: Any) -> str:
    """Render a decoded JSON value with two-space indentation."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def leaf_name(path: str) -> str:
    """Return the last property name of a flattened path.

    ``events[0].xdm.identityMap.ECID[0].id`` -> ``id``;
    ``events[0].xdm.tags[2]`` -> ``tags[2]``.
    """
    return path.rsplit(".", 1)[-1]


def classify_path_group(path: str, default: str = "xdm") -> str:
    """Best-effort semantic group for a flattened schema path.

    Matches substrings of the path, so it is a labelling heuristic rather than
    a schema-aware classification.
    """
    lowered = path.lower()
    leaf = re.sub(r"\[\d+\]$", "", leaf_name(path)).lower()

    if "analytics" in lowered:
        return "analytics"
    if "target" in lowered:
        return "target"
    if "identity" in lowered or leaf == "ecid":
        return "identity"
    return default
