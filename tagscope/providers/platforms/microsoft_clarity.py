"""Microsoft Clarity session recording."""

import re
from typing import List

from ..base import (
    ColumnMapping,
    ParamRule,
    ParsedField,
    Provider,
    ProviderType,
    hidden_field,
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH
from ..utils import QueryParams, UrlParts


KEY = "MICROSOFTCLARITY"

PATTERN = r"//(?:www\.)?clarity\.ms/(?:tag|collect|eus-breeziest|eventlogger)"

GROUPS = make_groups(
    ("general", "General"),
    ("session", "Session Data"),
    ("metrics", "Metrics"),
)

FIELDS = make_catalog({
    "projectId": ("Project ID", "general"),
    "k": ("Project ID", "general"),
    "v": ("Clarity Version", "general"),
    "ua": ("User Agent", "general"),
    "url": ("Page URL", "general"),
    "referrer": ("Referrer", "general"),
    "c": ("Clarity Cookie", "session"),
    "s": ("Session ID", "session"),
    "aid": ("Application ID", "general"),
    "e": ("Encoded Metrics Data", "metrics"),
    "sm": ("Session Metadata", "session"),
    "m": ("Metrics", "metrics"),
    "se": ("Session Expiry", "session"),
    "ts": ("Timestamp", "general"),
    "d": ("Device Data", "general"),
    "ct": ("Connection Type", "general"),
})

_PROJECT_PATH = re.compile(r"/tag/([^/?]+)")


def _encoded_payload(match, key, value):
    # Compressed payloads are summarized by size only.
    spec = FIELDS[key]
    return ParsedField(key=key, field=spec.name, value=f"[{len(value)} bytes of encoded data]", group=spec.group)


PARAM_RULES = [
    ParamRule(r"^(?:e|d|m|sm)$", _encoded_payload, flags=0),
]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []
    request_type = "Data Collection"

    if "/tag/" in url.path:
        request_type = "Script Load"
        project_id = _PROJECT_PATH.search(url.path)
        if project_id:
            results.append(ParsedField(
                key="projectId", field="Project ID", value=project_id.group(1), group="general"
            ))
    elif "/eventlogger" in url.path:
        request_type = "Event Logging"

    results.append(hidden_field("requestType", request_type))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Microsoft Clarity",
        type=ProviderType.SESSION_REPLAY,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="projectId", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["clarity", "microsoft", "session replay", "heatmap"],
        max_depth=max_depth,
    )
