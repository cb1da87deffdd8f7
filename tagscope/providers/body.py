"""POST body decoding into flat parameter pairs.

Beacon bodies arrive either as JSON documents (Measurement Protocol, Web SDK
interact calls) or as form-encoded strings (pixel POST fallbacks). Both are
reduced to the same ``(key, value)`` shape as URL query parameters so the
field catalog can label them uniformly.

JSON is flattened recursively: object members extend the path with
``.name``, array elements with ``[index]``. Empty containers produce a single
pair with an empty value. Containers nested deeper than the configured
maximum are replaced by one truncation sentinel pair, and containers that
reference one of their own ancestors (only possible for in-memory bodies)
are replaced by a circular-reference marker.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, List, Optional, Set, Tuple
from urllib.parse import unquote_plus

from .utils import QueryParams, stringify_value


logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10
TRUNCATION_KEY = "maxDepthExceeded"
TRUNCATION_VALUE = "Object too deep to display fully"
CIRCULAR_VALUE = "[Circular]"

_FORM_SEPARATOR = re.compile(r"[&\r\n]+")

Pair = Tuple[str, str]


def join_path(prefix: str, name: str) -> str:
    """Append an object member name to a flattened path."""
    return f"{prefix}.{name}" if prefix else name


def flatten_json(value: Any, prefix: str = "", max_depth: int = DEFAULT_MAX_DEPTH) -> List[Pair]:
    """Flatten a decoded JSON value into ``(path, value)`` pairs.

    Args:
        value: Decoded JSON value (or any in-memory dict/list structure)
        prefix: Path prefix for every emitted key
        max_depth: Deepest container level that is still expanded; the root
            container is level 0

    Returns:
        Pairs in document order, every leaf scalar appearing exactly once
        unless it sits below the depth cut-off
    """
    pairs: List[Pair] = []
    _walk(value, prefix, 0, max_depth, pairs, set())
    return pairs


def _walk(value: Any, path: str, depth: int, max_depth: int,
          pairs: List[Pair], ancestors: Set[int]) -> None:
    if isinstance(value, Mapping):
        children = [(join_path(path, str(name)), item) for name, item in value.items()]
    elif isinstance(value, (list, tuple)):
        children = [(f"{path}[{index}]", item) for index, item in enumerate(value)]
    else:
        pairs.append((path, stringify_value(value)))
        return

    if not children:
        if path:
            pairs.append((path, ""))
        return

    marker = id(value)
    if marker in ancestors:
        pairs.append((path, CIRCULAR_VALUE))
        return

    if depth > max_depth:
        pairs.append((join_path(path, TRUNCATION_KEY), TRUNCATION_VALUE))
        return

    ancestors.add(marker)
    try:
        for child_path, child in children:
            _walk(child, child_path, depth + 1, max_depth, pairs, ancestors)
    finally:
        ancestors.discard(marker)


def decode_form(body: str) -> List[Pair]:
    """Decode a form-encoded body.

    Segments without ``=`` or with an empty key are not form pairs and are
    dropped, so arbitrary text yields no pairs at all.
    """
    pairs: List[Pair] = []
    for chunk in _FORM_SEPARATOR.split(body):
        if "=" not in chunk:
            continue
        key, _, value = chunk.partition("=")
        key = unquote_plus(key)
        if not key:
            continue
        pairs.append((key, unquote_plus(value)))
    return pairs


class BodyDecoder:
    """Turns raw request bodies into parameter pairs."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def decode(self, body: Any) -> List[Pair]:
        """Decode a body into pairs; never raises.

        Args:
            body: ``str``/``bytes`` payload, an already-decoded ``dict``/``list``,
                or ``None``

        Returns:
            Decoded pairs, empty when the body is missing or unreadable
        """
        if body is None:
            return []

        try:
            if isinstance(body, (bytes, bytearray)):
                body = bytes(body).decode("utf-8", errors="replace")

            if isinstance(body, (Mapping, list, tuple)):
                return flatten_json(body, max_depth=self.max_depth)

            if not isinstance(body, str):
                body = str(body)

            text = body.strip()
            if not text:
                return []

            try:
                parsed = self._load_json(text)
            except RecursionError:
                logger.warning("Request body nests deeper than the JSON parser can follow")
                return [(TRUNCATION_KEY, TRUNCATION_VALUE)]
            if parsed is not None:
                return flatten_json(parsed, max_depth=self.max_depth)

            return decode_form(text)
        except Exception as e:
            logger.warning(f"Unable to decode request body: {e}")
            return []

    def merge_into(self, body: Any, params: QueryParams) -> QueryParams:
        """Append decoded body pairs to ``params`` and return it."""
        params.extend(self.decode(body))
        return params

    @staticmethod
    def _load_json(text: str) -> Optional[Any]:
        """Return the decoded document when ``text`` is a JSON object or array.

        Raises:
            RecursionError: If the document nests deeper than the parser allows
        """
        try:
            parsed = json.loads(text)
        except ValueError:
            return None
        if isinstance(parsed, (dict, list)):
            return parsed
        return None
