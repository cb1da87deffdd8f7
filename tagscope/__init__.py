"""Tagscope - marketing and analytics beacon detection and decoding."""

from .beacons import (
    Beacon,
    BeaconReport,
    BeaconSummary,
    DetectedTechnology,
    detect_technologies,
    process_beacons,
)
from .models import CapturedRequest
from .providers import (
    EngineConfig,
    ParseResult,
    ParsedField,
    Provider,
    ProviderRegistry,
    ProviderType,
    build_registry,
    load_config,
    registry,
)

__version__ = "0.1.0"

__all__ = [
    "Beacon",
    "BeaconReport",
    "BeaconSummary",
    "CapturedRequest",
    "DetectedTechnology",
    "EngineConfig",
    "ParseResult",
    "ParsedField",
    "Provider",
    "ProviderRegistry",
    "ProviderType",
    "build_registry",
    "detect_technologies",
    "load_config",
    "process_beacons",
    "registry",
]
