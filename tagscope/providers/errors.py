"""Error handling framework for beacon providers.

Every failure inside the parsing engine is recovered at the lowest layer that
can do so and surfaced as data (an ``error`` string on a result, or a sentinel
field). The helpers here give providers and batch processing a consistent way
to log and swallow failures without letting them cross the registry boundary.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple


logger = logging.getLogger(__name__)


class TagscopeError(Exception):
    """Base class for all engine errors."""
    pass


class MalformedURLError(TagscopeError, ValueError):
    """Raised when a request URL cannot be split into scheme, host and path."""

    def __init__(self, url: str, reason: str = "Invalid URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class DuplicateProviderError(TagscopeError, ValueError):
    """Raised when a provider key is registered twice."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Provider {key!r} is already registered")


class ConfigurationError(TagscopeError):
    """Configuration-related errors."""
    pass


def process_isolated(items: Iterable[Any],
                     processor: Callable[[Any], Any],
                     max_failures: Optional[int] = None) -> Tuple[List[Any], int]:
    """Run ``processor`` over each item so that one failure never aborts the batch.

    Args:
        items: Captured requests (or anything else) to process
        processor: Called once per item; ``None`` results are dropped
        max_failures: Stop after this many failures (None = no limit)

    Returns:
        Tuple of (results in input order, number of failed items)
    """
    results: List[Any] = []
    failed = 0

    for index, item in enumerate(items):
        try:
            outcome = processor(item)
        except Exception as e:
            failed += 1
            logger.warning(f"Skipping item {index}: {type(e).__name__}: {e}")
            if max_failures is not None and failed >= max_failures:
                logger.warning(f"Giving up after {failed} failed items")
                break
            continue

        if outcome is not None:
            results.append(outcome)

    return results, failed
