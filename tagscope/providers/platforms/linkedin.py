"""LinkedIn Insight Tag."""

from typing import List

from ..base import (
    ColumnMapping,
    ParsedField,
    Provider,
    ProviderType,
    hidden_field,
    label_rule,
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH
from ..utils import QueryParams, UrlParts


KEY = "LINKEDIN"

PATTERN = (
    r"//px\.ads\.linkedin\.com/collect"
    r"|//snap\.licdn\.com/li\.lms-analytics/insight\.min\.js"
    r"|//platform\.linkedin\.com"
)

GROUPS = make_groups(
    ("general", "General"),
    ("conversion", "Conversion"),
    ("custom", "Custom Parameters"),
)

FIELDS = make_catalog({
    "pid": ("Partner ID", "general"),
    "conversionId": ("Conversion ID", "conversion"),
    "fmt": ("Format", "general"),
    "time": ("Timestamp", "general"),
    "url": ("Page URL", "general"),
    "e": ("Event", "general"),
    "pc": ("Page Category", "general"),
    "pn": ("Page Name", "general"),
    "pi": ("Page ID", "general"),
    "pt": ("Page Title", "general"),
    "tl": ("Page Type", "general"),
    "v": ("Version", "general"),
    "s": ("Screen Size", "general"),
    "td": ("Time On Page", "general"),
    "li": ("LinkedIn Member", "general"),
    "li_fat_id": ("LinkedIn Member ID", "general"),
})

PARAM_RULES = [
    label_rule(r"^d\[(\w+)\]$", "Custom: {0}", "custom"),
    label_rule(r"^cv\[(\w+)\]$", "Conversion: {0}", "conversion"),
]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    request_type = params.get("e") or "PageView"

    if "insight.min.js" in url.path:
        request_type = "Script Load"

    return [hidden_field("requestType", request_type)]


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="LinkedIn Insight Tag",
        type=ProviderType.MARKETING,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="pid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["linkedin", "insight tag"],
        max_depth=max_depth,
    )
