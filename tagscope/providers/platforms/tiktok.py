"""TikTok Pixel."""

import logging
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
from ..utils import QueryParams, UrlParts, parse_json_param, pretty_json


logger = logging.getLogger(__name__)

KEY = "TIKTOK"

PATTERN = r"//analytics\.tiktok\.com/(?:i18n/)?pixel/(?:track|events)"

GROUPS = make_groups(
    ("general", "General"),
    ("properties", "Event Properties"),
)

FIELDS = make_catalog({
    "ttclid": ("TikTok Click ID", "general"),
    "sdkid": ("Pixel ID", "general"),
    "event": ("Event Type", "general"),
    "data": ("Event Data", "general"),
    "device_id": ("Device ID", "general"),
    "cookie_id": ("Cookie ID", "general"),
    "pixel_code": ("Pixel Code", "general"),
    "page_title": ("Page Title", "general"),
    "page_url": ("Page URL", "general"),
    "page_referrer": ("Page Referrer", "general"),
    "browser_language": ("Browser Language", "general"),
    "browser_platform": ("Browser Platform", "general"),
    "browser_name": ("Browser Name", "general"),
    "browser_version": ("Browser Version", "general"),
    "browser_online": ("Browser Online", "general"),
    "screen_width": ("Screen Width", "general"),
    "screen_height": ("Screen Height", "general"),
})

_PIXEL_PATH = re.compile(r"/pixel/track/([^/?]+)", re.IGNORECASE)


def _event_data(match, key, value):
    # Non-JSON payloads fall through to the catalog entry.
    try:
        data = parse_json_param(value)
    except ValueError:
        return None
    return ParsedField(key=key, field="Event Data (JSON)", value=pretty_json(data), group="properties")


def _property(match, key, value):
    return ParsedField(key=key, field=f"Property: {match.group(1)}", value=value, group="properties")


PARAM_RULES = [
    ParamRule(r"^data$", _event_data),
    ParamRule(r"^properties\.([^.]+)", _property),
]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []
    request_type = params.get("event") or "PageView"

    pixel_id = _PIXEL_PATH.search(url.path)
    if pixel_id:
        results.append(ParsedField(key="sdkid", field="Pixel ID", value=pixel_id.group(1), group="general"))

    if params.has("data"):
        try:
            data = parse_json_param(params.get("data"))
        except ValueError as e:
            logger.debug(f"TikTok event data is not JSON: {e}")
            data = None

        if isinstance(data, dict):
            if data.get("event"):
                request_type = data["event"]

            if data.get("pixel_code"):
                results.append(ParsedField(
                    key="pixel_code", field="Pixel Code", value=data["pixel_code"], group="general"
                ))

            properties = data.get("properties")
            if isinstance(properties, dict):
                for name, value in properties.items():
                    results.append(ParsedField(
                        key=f"properties.{name}", field=f"Property: {name}", value=value, group="properties"
                    ))

    results.append(hidden_field("requestType", request_type))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="TikTok Pixel",
        type=ProviderType.MARKETING,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="sdkid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["tiktok", "bytedance"],
        max_depth=max_depth,
    )
