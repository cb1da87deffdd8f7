"""Shared test fixtures for Tagscope tests."""

import pytest

from tagscope.models import CapturedRequest
from tagscope.providers import EngineConfig, ProviderRegistry, build_registry


@pytest.fixture
def provider_registry() -> ProviderRegistry:
    """Fresh registry with every default provider."""
    return build_registry(EngineConfig())


@pytest.fixture
def empty_registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def sample_requests():
    """Requests captured from a typical page load."""
    return [
        CapturedRequest(
            url="https://www.googletagmanager.com/gtm.js?id=GTM-ABC123",
            method="GET",
            timestamp="2024-05-01T10:00:01Z",
        ),
        CapturedRequest(
            url="https://www.facebook.com/tr/?id=999&ev=Purchase&cd[value]=49.99",
            method="GET",
            timestamp="2024-05-01T10:00:03Z",
        ),
        CapturedRequest(
            url="https://www.google-analytics.com/collect?v=1&tid=UA-12345-1&t=pageview&dl=https%3A%2F%2Fexample.com%2F",
            method="GET",
            timestamp="2024-05-01T10:00:02Z",
        ),
        CapturedRequest(
            url="https://example.com/static/app.js",
            method="GET",
            timestamp="2024-05-01T10:00:00Z",
        ),
    ]
