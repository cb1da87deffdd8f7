"""Marketing and analytics beacon providers.

This module provides the provider contract, the registry that dispatches
observed request URLs to vendor providers, the body decoder shared by all of
them, and the default vendor catalog.
"""

from typing import Optional

from .base import (
    NULL_PROVIDER,
    OTHER_GROUP,
    ColumnMapping,
    FieldGroup,
    FieldSpec,
    ParamRule,
    ParsedField,
    ParseResult,
    Provider,
    ProviderInfo,
    ProviderType,
    hidden_field,
    label_rule,
    make_catalog,
    make_groups,
)
from .body import (
    CIRCULAR_VALUE,
    DEFAULT_MAX_DEPTH,
    TRUNCATION_KEY,
    TRUNCATION_VALUE,
    BodyDecoder,
    decode_form,
    flatten_json,
)
from .config import ConfigManager, EngineConfig, ProviderToggle, load_config
from .errors import (
    ConfigurationError,
    DuplicateProviderError,
    MalformedURLError,
    TagscopeError,
    process_isolated,
)
from .platforms import PLATFORMS
from .registry import ProviderRegistry
from .utils import QueryParams, UrlParts, split_url


def build_registry(config: Optional[EngineConfig] = None) -> ProviderRegistry:
    """Create a registry holding every enabled vendor provider.

    Args:
        config: Engine configuration; defaults apply when omitted

    Returns:
        Registry with providers added in catalog order
    """
    config = config or EngineConfig()
    provider_registry = ProviderRegistry()

    for platform in PLATFORMS:
        if not config.is_enabled(platform.KEY):
            continue
        provider_registry.add_provider(platform.create_provider(
            max_depth=config.max_depth,
            mask_user_data=config.mask_user_data,
        ))

    return provider_registry


# Process-wide registry with the default configuration
registry = build_registry()


__all__ = [
    # Contract and models
    "Provider",
    "ProviderType",
    "ProviderInfo",
    "FieldSpec",
    "FieldGroup",
    "ColumnMapping",
    "ParsedField",
    "ParseResult",
    "ParamRule",
    "label_rule",
    "hidden_field",
    "make_catalog",
    "make_groups",
    "NULL_PROVIDER",
    "OTHER_GROUP",

    # Registry
    "ProviderRegistry",
    "build_registry",
    "registry",

    # Body decoding
    "BodyDecoder",
    "flatten_json",
    "decode_form",
    "DEFAULT_MAX_DEPTH",
    "TRUNCATION_KEY",
    "TRUNCATION_VALUE",
    "CIRCULAR_VALUE",

    # Utilities
    "QueryParams",
    "UrlParts",
    "split_url",

    # Configuration
    "EngineConfig",
    "ProviderToggle",
    "ConfigManager",
    "load_config",

    # Errors
    "TagscopeError",
    "MalformedURLError",
    "DuplicateProviderError",
    "ConfigurationError",
    "process_isolated",
]
