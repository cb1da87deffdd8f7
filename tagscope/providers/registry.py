"""Provider registry: URL lookup and dispatch over the vendor catalog."""

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Pattern

from .base import NULL_PROVIDER, ParseResult, Provider
from .errors import DuplicateProviderError
from .utils import compile_pattern


logger = logging.getLogger(__name__)

_NEVER_MATCHES = re.compile(r"(?!)")


class ProviderRegistry:
    """Ordered collection of providers.

    Providers are added during start-up and the registry is read-only
    afterwards, so lookups need no locking. When several providers match the
    same URL, registration order is the only tie-break: ``parse`` uses the
    first match and ``parse_all`` returns one result per match.
    """

    def __init__(self):
        self._providers: List[Provider] = []
        self._by_key: Dict[str, Provider] = {}
        self._combined: Pattern[str] = _NEVER_MATCHES

    def add_provider(self, provider: Provider) -> None:
        """Append a provider and rebuild the combined detection pattern.

        Raises:
            DuplicateProviderError: If a provider with the same key exists
        """
        if provider.key in self._by_key:
            raise DuplicateProviderError(provider.key)

        self._providers.append(provider)
        self._by_key[provider.key] = provider
        self._combined = self._build_pattern(self._providers)
        logger.debug(f"Registered provider {provider.key} ({provider.name})")

    @staticmethod
    def _build_pattern(providers: List[Provider]) -> Pattern[str]:
        if not providers:
            return _NEVER_MATCHES
        return compile_pattern("|".join(f"(?:{provider.pattern.pattern})" for provider in providers))

    @property
    def providers(self) -> List[Provider]:
        """Registered providers in registration order."""
        return list(self._providers)

    @property
    def pattern(self) -> Pattern[str]:
        """Combined detection pattern of every registered provider."""
        return self._combined

    def get_provider(self, key: str) -> Optional[Provider]:
        return self._by_key.get(key)

    def get_pattern(self, provider_info: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Pattern[str]:
        """Combined pattern limited to enabled providers.

        Args:
            provider_info: Optional mapping of provider key to settings; a
                provider is skipped when its entry has ``enabled`` set false.
                Providers without an entry are included.

        Returns:
            Case-insensitive compiled pattern
        """
        provider_info = provider_info or {}
        selected = [
            provider for provider in self._providers
            if provider_info.get(provider.key, {}).get("enabled", True)
        ]
        return self._build_pattern(selected)

    def matches(self, url: str) -> bool:
        """Fast pre-filter: does any provider recognise this URL?"""
        return isinstance(url, str) and self._combined.search(url) is not None

    def matching_providers(self, url: str) -> List[Provider]:
        """All providers whose pattern matches ``url``, in registration order."""
        if not self.matches(url):
            return []
        return [provider for provider in self._providers if provider.matches(url)]

    def provider_for_url(self, url: str) -> Provider:
        """First matching provider, or the neutral provider when none match."""
        for provider in self.matching_providers(url):
            return provider
        return NULL_PROVIDER

    def parse(self, url: str, body: Any = None) -> ParseResult:
        """Decode ``url`` with the first matching provider.

        A URL no provider recognises yields the neutral provider identity with
        no data.
        """
        provider = self.provider_for_url(url)
        if provider is NULL_PROVIDER:
            return NULL_PROVIDER.empty_result()
        return provider.parse(url, body)

    def parse_all(self, url: str, body: Any = None) -> List[ParseResult]:
        """Decode ``url`` with every matching provider."""
        return [provider.parse(url, body) for provider in self.matching_providers(url)]

    def search(self, term: str) -> List[Provider]:
        """Providers whose key, name or keywords contain ``term``."""
        needle = term.strip().lower()
        if not needle:
            return []
        found = []
        for provider in self._providers:
            haystack = [provider.key.lower(), provider.name.lower()]
            haystack.extend(keyword.lower() for keyword in provider.keywords)
            if any(needle in item for item in haystack):
                found.append(provider)
        return found

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[Provider]:
        return iter(list(self._providers))

    def __len__(self) -> int:
        return len(self._providers)
