"""Provider contract and data models for beacon decoding.

A provider is one vendor's detection-and-decoding unit: a URL pattern, a
static field catalog, and optional hooks for the parts of a vendor's beacon
format that a static table cannot describe. Providers are plain values
assembled from data and functions; vendors do not subclass anything.

Decoding a request runs in a fixed order:

1. split the URL and read its query parameters;
2. append the decoded POST body to the same parameter map;
3. let the optional ``rewrite_params`` hook reshape the map;
4. describe every pair, trying the ordered ``param_rules`` before the catalog;
5. append whatever the ``custom`` hook derives from the whole request.
"""

import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Pattern,
    Sequence,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .body import DEFAULT_MAX_DEPTH, BodyDecoder
from .errors import MalformedURLError
from .utils import QueryParams, UrlParts, compile_pattern, split_url, stringify_value


logger = logging.getLogger(__name__)

OTHER_GROUP = "other"


class ProviderType(str, Enum):
    """Category of marketing technology a provider detects."""
    ANALYTICS = "analytics"
    TAG_MANAGER = "tag-manager"
    MARKETING = "marketing"
    CUSTOMER_ENGAGEMENT = "customer-engagement"
    TESTING = "testing"
    VISITOR_ID = "visitor-id"
    SESSION_REPLAY = "session-replay"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Human-readable label for reports."""
        return _TYPE_DISPLAY_NAMES[self]


_TYPE_DISPLAY_NAMES = {
    ProviderType.ANALYTICS: "Analytics",
    ProviderType.TAG_MANAGER: "Tag Manager",
    ProviderType.MARKETING: "Marketing",
    ProviderType.CUSTOMER_ENGAGEMENT: "Customer Engagement",
    ProviderType.TESTING: "UX Testing",
    ProviderType.VISITOR_ID: "Visitor Identification",
    ProviderType.SESSION_REPLAY: "Session Replay/Heat Maps",
    ProviderType.UNKNOWN: "Unknown",
}


class FieldSpec(BaseModel):
    """Catalog entry for one raw parameter key."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="Display name")
    group: Optional[str] = Field(default=None, description="Group key")
    hidden: bool = Field(
        default=False,
        description="Consumed internally but never emitted as a visible field"
    )


class FieldGroup(BaseModel):
    """Presentation group, listed in display order by each provider."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str


class ColumnMapping(BaseModel):
    """Which decoded keys hold the account identifier and the request type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    account: Optional[str] = Field(default=None, description="Raw key of the account/site identifier")
    request_type: Optional[str] = Field(
        default=None,
        alias="requestType",
        description="Raw key of the event/request type classifier"
    )


class ParsedField(BaseModel):
    """One decoded, labelled beacon field."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Raw parameter key or derived key")
    field: Optional[str] = Field(default=None, description="Display label")
    value: str = Field(default="", description="Decoded value")
    group: Optional[str] = Field(default=None, description="Group key")
    hidden: bool = Field(default=False, description="Internal-only field")

    @field_validator('value', mode='before')
    @classmethod
    def coerce_value(cls, v):
        """Render non-string values the way the beacon carried them."""
        return stringify_value(v)


class ProviderInfo(BaseModel):
    """Provider identity attached to every parse result."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    key: str
    type: ProviderType = Field(default=ProviderType.UNKNOWN, alias="typeCategory")
    columns: ColumnMapping = Field(default_factory=ColumnMapping, alias="columnMapping")
    groups: Tuple[FieldGroup, ...] = ()

    @property
    def type_name(self) -> str:
        return self.type.display_name


class ParseResult(BaseModel):
    """Normalized output of decoding one request with one provider."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderInfo
    data: Tuple[ParsedField, ...] = ()
    error: Optional[str] = None

    @property
    def detected(self) -> bool:
        """False for results produced by the neutral provider."""
        return bool(self.provider.key)

    @property
    def visible_fields(self) -> List[ParsedField]:
        return [item for item in self.data if not item.hidden]

    def get(self, key: str) -> Optional[ParsedField]:
        """Return the first field with ``key``."""
        for item in self.data:
            if item.key == key:
                return item
        return None

    def get_all(self, key: str) -> List[ParsedField]:
        return [item for item in self.data if item.key == key]

    def get_value(self, key: Optional[str], default: Optional[str] = None) -> Optional[str]:
        if not key:
            return default
        item = self.get(key)
        return item.value if item is not None else default

    @property
    def account(self) -> Optional[str]:
        """Value of the provider's account column, if decoded."""
        return self.get_value(self.provider.columns.account)

    @property
    def request_type(self) -> Optional[str]:
        """Value of the provider's request-type column, if decoded."""
        return self.get_value(self.provider.columns.request_type)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def hidden_field(key: str, value: Any) -> ParsedField:
    """Internal-only field, typically the request type classifier."""
    return ParsedField(key=key, value=value, hidden=True)


def make_catalog(entries: Mapping[str, Tuple[str, str]],
                 hidden: Iterable[str] = ("requestType",)) -> Dict[str, FieldSpec]:
    """Build a field catalog from ``key -> (display name, group)`` entries."""
    catalog = {key: FieldSpec(name=name, group=group) for key, (name, group) in entries.items()}
    for key in hidden:
        catalog[key] = FieldSpec(hidden=True)
    return catalog


def make_groups(*entries: Tuple[str, str]) -> List[FieldGroup]:
    """Build an ordered group list from ``(key, display name)`` pairs."""
    return [FieldGroup(key=key, name=name) for key, name in entries]


RuleFormatter = Callable[["re.Match[str]", str, str], Optional[ParsedField]]


class ParamRule:
    """Describes a family of dynamically named parameters.

    The formatter receives the regex match, the raw key and the value. It may
    return ``None`` to let the next rule (and finally the catalog) handle the
    pair.
    """

    def __init__(self, pattern: str, formatter: RuleFormatter, flags: int = re.IGNORECASE):
        self.pattern: Pattern[str] = compile_pattern(pattern, flags)
        self.formatter = formatter

    def apply(self, key: str, value: str) -> Optional[ParsedField]:
        match = self.pattern.match(key)
        if match is None:
            return None
        return self.formatter(match, key, value)

    def __repr__(self) -> str:
        return f"ParamRule({self.pattern.pattern!r})"


def label_rule(pattern: str, label: str, group: str) -> ParamRule:
    """Rule whose label is ``label`` formatted with the match groups.

    ``label_rule(r"^cd(\\d+)$", "Dimension {0}", "dimensions")`` turns
    ``cd4=x`` into a field labelled ``Dimension 4``.
    """
    def formatter(match, key, value):
        return ParsedField(key=key, field=label.format(*match.groups()), value=value, group=group)

    return ParamRule(pattern, formatter)


CustomHook = Callable[[UrlParts, QueryParams], Optional[Union[ParsedField, Iterable[ParsedField]]]]
RewriteHook = Callable[[QueryParams], QueryParams]


class Provider:
    """Detection and decoding rules for one vendor.

    Instances are built once at start-up and never mutated, so a provider can
    be shared by any number of concurrent parse calls.
    """

    def __init__(self,
                 key: str,
                 name: str,
                 type: ProviderType,
                 pattern: Union[str, Pattern[str]],
                 fields: Optional[Mapping[str, FieldSpec]] = None,
                 groups: Optional[Sequence[FieldGroup]] = None,
                 columns: Optional[ColumnMapping] = None,
                 param_rules: Optional[Sequence[ParamRule]] = None,
                 custom: Optional[CustomHook] = None,
                 rewrite_params: Optional[RewriteHook] = None,
                 keywords: Optional[Sequence[str]] = None,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        """Create a provider.

        Args:
            key: Unique stable identifier, e.g. ``GOOGLEANALYTICS``
            name: Human-readable vendor name
            type: Technology category
            pattern: Regex (string or compiled) tested against the full URL
            fields: Static catalog, raw key -> FieldSpec
            groups: Presentation groups in display order
            columns: Account/request-type column mapping
            param_rules: Ordered rules tried before the catalog
            custom: Whole-request hook returning derived fields
            rewrite_params: Hook that may reshape the merged parameter map
            keywords: Search keywords
            max_depth: Body flattening depth limit

        Raises:
            ValueError: If ``pattern`` is not a valid regular expression
        """
        if isinstance(pattern, str):
            try:
                pattern = compile_pattern(pattern)
            except re.error as e:
                raise ValueError(f"Invalid pattern for provider {key!r}: {e}")

        self._key = key
        self._name = name
        self._type = ProviderType(type)
        self._pattern: Pattern[str] = pattern
        self._fields = MappingProxyType(dict(fields or {}))
        self._groups: Tuple[FieldGroup, ...] = tuple(groups or ())
        self._columns = columns or ColumnMapping()
        self._param_rules: Tuple[ParamRule, ...] = tuple(param_rules or ())
        self._custom = custom
        self._rewrite_params = rewrite_params
        self._keywords: Tuple[str, ...] = tuple(keywords or ())
        self._decoder = BodyDecoder(max_depth)
        self._info = ProviderInfo(
            name=name,
            key=key,
            type=self._type,
            columns=self._columns,
            groups=self._groups,
        )

    @property
    def key(self) -> str:
        return self._key

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> ProviderType:
        return self._type

    @property
    def type_name(self) -> str:
        return self._type.display_name

    @property
    def pattern(self) -> Pattern[str]:
        return self._pattern

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return self._fields

    @property
    def groups(self) -> Tuple[FieldGroup, ...]:
        return self._groups

    @property
    def columns(self) -> ColumnMapping:
        return self._columns

    @property
    def param_rules(self) -> Tuple[ParamRule, ...]:
        return self._param_rules

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self._keywords

    @property
    def max_depth(self) -> int:
        return self._decoder.max_depth

    @property
    def info(self) -> ProviderInfo:
        return self._info

    def matches(self, url: str) -> bool:
        """Check if this provider should decode the given URL."""
        return isinstance(url, str) and self._pattern.search(url) is not None

    def lookup_field(self, key: str, value: str) -> Optional[ParsedField]:
        """Describe a pair using the static catalog only.

        Hidden keys produce nothing; unknown keys fall back to the raw key in
        the ``other`` group.
        """
        spec = self._fields.get(key)
        if spec is None:
            return ParsedField(key=key, field=key, value=value, group=OTHER_GROUP)
        if spec.hidden:
            return None
        return ParsedField(
            key=key,
            field=spec.name or key,
            value=value,
            group=spec.group or OTHER_GROUP,
        )

    def describe_param(self, key: str, value: str) -> Optional[ParsedField]:
        """Describe a pair, trying the parameter rules before the catalog."""
        for rule in self._param_rules:
            try:
                result = rule.apply(key, value)
            except Exception as e:
                logger.warning(f"[{self._key}] rule {rule!r} failed for {key!r}: {e}")
                continue
            if result is not None:
                return result
        return self.lookup_field(key, value)

    def empty_result(self, error: Optional[str] = None) -> ParseResult:
        return ParseResult(provider=self._info, data=(), error=error)

    def parse(self, url: str, body: Any = None) -> ParseResult:
        """Decode a request into labelled fields.

        Args:
            url: Absolute request URL
            body: Optional POST payload (string, bytes or decoded object)

        Returns:
            ParseResult; malformed URLs yield empty data and an ``error``
        """
        try:
            parts = split_url(url)
            params = QueryParams.from_query(parts.query)
        except MalformedURLError as e:
            logger.warning(f"[{self._key}] {e}")
            return self.empty_result(error=str(e))

        try:
            return self._decode(parts, params, body)
        except Exception as e:
            logger.error(f"[{self._key}] unexpected failure decoding {url}: {e}")
            return self.empty_result(error=f"Unexpected parse failure: {e}")

    def _decode(self, parts: UrlParts, params: QueryParams, body: Any) -> ParseResult:
        self._decoder.merge_into(body, params)

        if self._rewrite_params is not None:
            try:
                params = self._rewrite_params(params)
            except Exception as e:
                logger.warning(f"[{self._key}] parameter rewrite failed: {e}")

        data: List[ParsedField] = []
        for key, value in params:
            item = self.describe_param(key, value)
            if item is not None:
                data.append(item)

        data.extend(self._run_custom(parts, params))

        return ParseResult(provider=self._info, data=tuple(data))

    def _run_custom(self, parts: UrlParts, params: QueryParams) -> List[ParsedField]:
        if self._custom is None:
            return []

        try:
            produced = self._custom(parts, params)
        except Exception as e:
            logger.warning(f"[{self._key}] custom field decoding failed: {e}")
            return [ParsedField(
                key="customFields",
                field="Custom Fields (unparseable)",
                value=str(e),
                group=OTHER_GROUP,
            )]

        if produced is None:
            return []
        if isinstance(produced, ParsedField):
            return [produced]
        return [item for item in produced if item is not None]

    def __repr__(self) -> str:
        return f"Provider(key={self._key!r}, name={self._name!r})"


NULL_PROVIDER = Provider(
    key="",
    name="",
    type=ProviderType.UNKNOWN,
    pattern=r"(?!)",
)
