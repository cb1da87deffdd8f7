"""Unit tests for error handling helpers."""

import logging

from tagscope.providers.errors import (
    ConfigurationError,
    DuplicateProviderError,
    MalformedURLError,
    TagscopeError,
    process_isolated,
)


class TestExceptions:
    """Test exception hierarchy and messages."""

    def test_malformed_url_message(self):
        error = MalformedURLError("nope")
        assert str(error) == "Invalid URL: nope"
        assert error.url == "nope"
        assert isinstance(error, TagscopeError)
        assert isinstance(error, ValueError)

    def test_malformed_url_reason(self):
        error = MalformedURLError("nope", "Invalid URL format")
        assert str(error) == "Invalid URL format: nope"
        assert error.reason == "Invalid URL format"

    def test_duplicate_provider(self):
        error = DuplicateProviderError("TIKTOK")
        assert error.key == "TIKTOK"
        assert "TIKTOK" in str(error)
        assert isinstance(error, ValueError)

    def test_configuration_error(self):
        assert issubclass(ConfigurationError, TagscopeError)


class TestProcessIsolated:
    """Test batch processing with failure isolation."""

    def test_failures_skipped_and_counted(self, caplog):
        def process(value):
            if value == 2:
                raise ValueError("bad request")
            return value * 10

        with caplog.at_level(logging.WARNING, logger="tagscope.providers.errors"):
            assert process_isolated([1, 2, 3], process) == ([10, 30], 1)
        assert "Skipping item 1: ValueError: bad request" in caplog.text

    def test_none_results_dropped(self):
        assert process_isolated([1, 2, 3], lambda v: v if v != 2 else None) == ([1, 3], 0)

    def test_accepts_iterables(self):
        assert process_isolated(iter("ab"), str.upper) == (["A", "B"], 0)

    def test_max_failures_stops_processing(self):
        seen = []

        def always_fail(value):
            seen.append(value)
            raise RuntimeError("down")

        assert process_isolated([1, 2, 3, 4], always_fail, max_failures=2) == ([], 2)
        assert seen == [1, 2]
