"""Beacon processing over batches of captured requests.

Turns the raw network traffic of a page into decoded analytics and marketing
beacons, plus per-provider counts and a technology summary.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from .models.capture import CapturedRequest
from .providers import build_registry, registry as default_registry
from .providers.base import FieldGroup, ParsedField, ProviderType
from .providers.config import EngineConfig
from .providers.errors import process_isolated
from .providers.registry import ProviderRegistry


logger = logging.getLogger(__name__)

RequestLike = Union[CapturedRequest, Mapping[str, Any]]


class RawContent(BaseModel):
    """Request content attached to a beacon when raw output is requested."""

    url: str
    post_data: Optional[Union[str, Dict[str, Any], List[Any]]] = None


class Beacon(BaseModel):
    """One request decoded by one provider."""

    url: str = Field(description="Request URL")
    method: str = Field(default="GET", description="HTTP method")
    timestamp: Optional[datetime] = Field(default=None, description="When the request was issued")

    provider: str = Field(description="Provider display name")
    provider_key: str = Field(description="Provider key")
    type: ProviderType = Field(description="Provider type category")
    request_type: str = Field(default="Unknown", description="Request type from the column mapping")
    account: Optional[str] = Field(default=None, description="Account from the column mapping")

    parsed_data: List[ParsedField] = Field(default_factory=list, description="Decoded fields")
    groups: List[FieldGroup] = Field(default_factory=list, description="Provider groups in display order")
    error: Optional[str] = Field(default=None, description="Decoding error, if any")

    raw_content: Optional[RawContent] = Field(default=None, description="Raw request content")


class BeaconSummary(BaseModel):
    """Counts over a processed batch."""

    total_requests: int = Field(default=0, description="Requests in the batch")
    analytics_requests: int = Field(default=0, description="Decoded beacons")
    failed_requests: int = Field(default=0, description="Requests that could not be processed")
    providers: Dict[str, int] = Field(default_factory=dict, description="Beacons per provider name")


class BeaconReport(BaseModel):
    """Result of processing a batch of captured requests."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the batch was processed"
    )
    beacons: List[Beacon] = Field(default_factory=list)
    summary: BeaconSummary = Field(default_factory=BeaconSummary)
    processing_time_ms: Optional[int] = Field(
        default=None,
        description="Time spent processing in milliseconds"
    )

    def beacons_for(self, provider_key: str) -> List[Beacon]:
        return [beacon for beacon in self.beacons if beacon.provider_key == provider_key]


class DetectedTechnology(BaseModel):
    """A provider seen at least once in a set of request URLs."""

    key: str
    name: str
    type: ProviderType
    accounts: List[str] = Field(default_factory=list, description="Distinct account identifiers")
    request_count: int = Field(default=0, description="Matching requests")


def _coerce_request(request: RequestLike) -> CapturedRequest:
    if isinstance(request, CapturedRequest):
        return request
    return CapturedRequest.model_validate(dict(request))


def _sort_key(beacon: Beacon):
    # Missing timestamps sort last; naive and aware datetimes compare by epoch.
    if beacon.timestamp is None:
        return (1, 0.0)
    return (0, beacon.timestamp.timestamp())


def process_beacons(requests: Iterable[RequestLike],
                    registry: Optional[ProviderRegistry] = None,
                    provider_types: Optional[Sequence[Union[ProviderType, str]]] = None,
                    include_raw: Optional[bool] = None,
                    config: Optional[EngineConfig] = None) -> BeaconReport:
    """Decode every beacon found in a batch of captured requests.

    Args:
        requests: Captured requests, as models or plain mappings
        registry: Registry to dispatch with; when omitted, one built from
            ``config``, or the default registry
        provider_types: Only keep beacons from providers of these types
            (empty keeps all); ``None`` falls back to ``config.provider_types``
        include_raw: Attach the raw URL and body to each beacon; ``None``
            falls back to ``config.include_raw``
        config: Engine configuration supplying the defaults above

    Returns:
        BeaconReport with beacons sorted by timestamp, missing timestamps last
    """
    if config is not None:
        if registry is None:
            registry = build_registry(config)
        if provider_types is None:
            provider_types = config.provider_types
        if include_raw is None:
            include_raw = config.include_raw
    if registry is None:
        registry = default_registry
    include_raw = bool(include_raw)
    requests = list(requests)
    wanted = {ProviderType(item) for item in provider_types} if provider_types else None

    start_time = datetime.now(timezone.utc)
    report = BeaconReport(timestamp=start_time)
    report.summary.total_requests = len(requests)

    def process(request: RequestLike) -> List[Beacon]:
        captured = _coerce_request(request)
        if not registry.matches(captured.url):
            return []

        beacons = []
        for provider in registry.matching_providers(captured.url):
            if wanted is not None and provider.type not in wanted:
                continue

            result = provider.parse(captured.url, captured.post_data)
            beacons.append(Beacon(
                url=captured.url,
                method=captured.method,
                timestamp=captured.timestamp,
                provider=provider.name,
                provider_key=provider.key,
                type=provider.type,
                request_type=result.request_type or "Unknown",
                account=result.account,
                parsed_data=list(result.data),
                groups=list(provider.groups),
                error=result.error,
                raw_content=RawContent(url=captured.url, post_data=captured.post_data) if include_raw else None,
            ))
        return beacons

    decoded, failed = process_isolated(requests, process)
    report.summary.failed_requests = failed

    for beacons in decoded:
        for beacon in beacons:
            report.beacons.append(beacon)
            report.summary.analytics_requests += 1
            report.summary.providers[beacon.provider] = report.summary.providers.get(beacon.provider, 0) + 1

    report.beacons.sort(key=_sort_key)

    end_time = datetime.now(timezone.utc)
    report.processing_time_ms = int((end_time - start_time).total_seconds() * 1000)

    logger.info(
        f"Processed {report.summary.total_requests} requests: "
        f"{report.summary.analytics_requests} beacons from {len(report.summary.providers)} providers"
    )
    return report


def detect_technologies(urls: Iterable[str],
                        registry: Optional[ProviderRegistry] = None,
                        config: Optional[EngineConfig] = None) -> List[DetectedTechnology]:
    """Summarize which providers fire across a set of request URLs.

    Args:
        urls: Request URLs observed on one or more pages
        registry: Registry to dispatch with; when omitted, one built from
            ``config``, or the default registry
        config: Engine configuration used to build the registry

    Returns:
        One entry per detected provider, in registration order
    """
    if registry is None:
        registry = build_registry(config) if config is not None else default_registry
    found: Dict[str, DetectedTechnology] = {}

    for url in urls:
        for result in registry.parse_all(url):
            key = result.provider.key
            technology = found.get(key)
            if technology is None:
                technology = DetectedTechnology(key=key, name=result.provider.name, type=result.provider.type)
                found[key] = technology

            technology.request_count += 1
            account = result.account
            if account and account not in technology.accounts:
                technology.accounts.append(account)

    order = {provider.key: index for index, provider in enumerate(registry.providers)}
    return sorted(found.values(), key=lambda technology: order.get(technology.key, len(order)))
