"""Facebook (Meta) Pixel.

https://developers.facebook.com/docs/facebook-pixel/
"""

import logging
from typing import List

from ..base import (
    ColumnMapping,
    ParamRule,
    ParsedField,
    Provider,
    ProviderType,
    hidden_field,
    label_rule,
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH
from ..utils import QueryParams, UrlParts, parse_json_param, stringify_value


logger = logging.getLogger(__name__)

KEY = "FACEBOOKPIXEL"

PATTERN = r"//www\.facebook\.com/tr/?(?:\?|$)"

GROUPS = make_groups(
    ("general", "General"),
    ("customdata", "Custom Data"),
)

FIELDS = make_catalog({
    "id": ("Pixel ID", "general"),
    "tid": ("Metadata Tag ID", "general"),
    "ev": ("Event Name", "general"),
    "dl": ("Page URL", "general"),
    "rl": ("Referring URL", "general"),
    "if": ("Within iframe", "general"),
    "ts": ("Timestamp", "general"),
    "sw": ("Screen Width", "general"),
    "sh": ("Screen Height", "general"),
    "v": ("SDK Version", "general"),
    "r": ("Random Number", "general"),
    "fbp": ("Facebook Browser Pixel", "general"),
    "ud": ("User Data", "general"),
    "cdo": ("Custom Data", "general"),
    "it": ("Init Timestamp", "general"),
    "a": ("Deduplication ID", "general"),
})

# Advanced-matching keys that carry personal data.
PII_KEYS = frozenset(["em", "ph", "fn", "ln", "ge", "db", "ct", "st", "zp"])

MASK = "********"
MASKED_BLOB = "[MASKED]"


def _user_data_value(name: str, value, mask_user_data: bool) -> str:
    if mask_user_data and name in PII_KEYS:
        return MASK
    return stringify_value(value)


def _user_data_rules(mask_user_data: bool) -> List[ParamRule]:
    def user_data_member(match, key, value):
        name = match.group(1)
        return ParsedField(
            key=key,
            field=f"User Data: {name}",
            value=_user_data_value(name, value, mask_user_data),
            group="general",
        )

    def user_data_blob(match, key, value):
        if not mask_user_data:
            return None
        return ParsedField(key=key, field="User Data", value=MASKED_BLOB, group="general")

    return [
        ParamRule(r"^ud\[(.+)\]$", user_data_member),
        ParamRule(r"^ud$", user_data_blob),
    ]


def _custom_data_fields(raw: str) -> List[ParsedField]:
    try:
        custom_data = parse_json_param(raw)
        if not isinstance(custom_data, dict):
            raise ValueError("custom data is not an object")
    except ValueError as e:
        logger.debug(f"Unparseable Facebook custom data: {e}")
        return [ParsedField(key="cd", field="Custom Data (unparseable)", value=raw, group="customdata")]

    return [
        ParsedField(key=f"cd[{name}]", field=f"Custom Data: {name}", value=value, group="customdata")
        for name, value in custom_data.items()
    ]


def _user_data_fields(raw: str, mask_user_data: bool) -> List[ParsedField]:
    try:
        user_data = parse_json_param(raw)
        if not isinstance(user_data, dict):
            raise ValueError("user data is not an object")
    except ValueError as e:
        logger.debug(f"Unparseable Facebook user data: {e}")
        value = MASKED_BLOB if mask_user_data else raw
        return [ParsedField(key="ud", field="User Data (unparseable)", value=value, group="general")]

    return [
        ParsedField(
            key=f"ud[{name}]",
            field=f"User Data: {name}",
            value=_user_data_value(name, value, mask_user_data),
            group="general",
        )
        for name, value in user_data.items()
    ]


def make_custom(mask_user_data: bool = True):
    """Build the whole-request hook for the given masking setting."""

    def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
        results = [hidden_field("requestType", params.get("ev") or "PageView")]

        if params.has("cd"):
            results.extend(_custom_data_fields(params.get("cd")))

        if params.has("ud"):
            results.extend(_user_data_fields(params.get("ud"), mask_user_data))

        return results

    return parse_custom


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, mask_user_data: bool = True, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Facebook Pixel",
        type=ProviderType.MARKETING,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="id", request_type="requestType"),
        param_rules=[
            label_rule(r"^cd\[(.+)\]$", "Custom Data: {0}", "customdata"),
            *_user_data_rules(mask_user_data),
        ],
        custom=make_custom(mask_user_data),
        keywords=["facebook", "fb", "meta"],
        max_depth=max_depth,
    )
