"""Google Analytics 4 collect hits and Measurement Protocol requests.

Browser hits put everything in the query string (or a form body for batched
events). Measurement Protocol requests send a JSON body which arrives here
already flattened, e.g. ``events[0].params.currency``.
"""

import re
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
from ..utils import QueryParams, UrlParts


KEY = "GOOGLEANALYTICS4"

PATTERN = (
    r"\.google-analytics\.com/g/collect(?:[/?]|$)"
    r"|analytics\.google\.com/g/collect(?:[/?]|$)"
    r"|\.google-analytics\.com/mp/collect(?:[/?]|$)"
)

GROUPS = make_groups(
    ("general", "General"),
    ("events", "Event Parameters"),
    ("user", "User Properties"),
    ("ecommerce", "Ecommerce"),
    ("consent", "Consent"),
)

FIELDS = make_catalog({
    "v": ("Protocol Version", "general"),
    "tid": ("Measurement ID", "general"),
    "gtm": ("Container Hash", "general"),
    "_p": ("Page Load Hash", "general"),
    "cid": ("Client ID", "general"),
    "uid": ("User ID", "general"),
    "ul": ("User Language", "general"),
    "sr": ("Screen Resolution", "general"),
    "_s": ("Hit Counter", "general"),
    "sid": ("Session ID", "general"),
    "sct": ("Session Count", "general"),
    "seg": ("Session Engaged", "general"),
    "dl": ("Document Location", "general"),
    "dr": ("Document Referrer", "general"),
    "dt": ("Document Title", "general"),
    "en": ("Event Name", "general"),
    "_et": ("Engagement Time (ms)", "general"),
    "_ss": ("Session Start", "general"),
    "_fv": ("First Visit", "general"),
    "_nsi": ("New Session ID", "general"),
    "_c": ("Conversion", "general"),
    "_dbg": ("Debug Mode", "general"),
    "_ee": ("Enhanced Measurement", "general"),
    "cu": ("Currency Code", "ecommerce"),
    "gcs": ("Consent State", "consent"),
    "gcd": ("Consent Defaults", "consent"),
    "dma": ("DMA Compliance", "consent"),
    "npa": ("Non-Personalized Ads", "consent"),
    "measurement_id": ("Measurement ID", "general"),
    "api_secret": ("API Secret", "general"),
    "client_id": ("Client ID", "general"),
    "user_id": ("User ID", "general"),
    "timestamp_micros": ("Timestamp (microseconds)", "general"),
    "non_personalized_ads": ("Non-Personalized Ads", "consent"),
})

# Two-letter codes used inside ``prN`` item strings.
ITEM_FIELDS = {
    "id": "ID",
    "nm": "Name",
    "af": "Affiliation",
    "cp": "Coupon",
    "ds": "Discount",
    "lp": "Index",
    "br": "Brand",
    "ca": "Category",
    "c2": "Category 2",
    "c3": "Category 3",
    "c4": "Category 4",
    "c5": "Category 5",
    "va": "Variant",
    "pr": "Price",
    "qt": "Quantity",
    "ln": "List Name",
    "li": "List ID",
    "lo": "Location ID",
}

_ITEM_KEY = re.compile(r"^pr(\d+)$")
_MP_EVENT_NAME = re.compile(r"^events\[(\d+)\]\.name$")
_CUSTOM_ITEM_KEY = re.compile(r"^k(\d+)(.*)$")
_CUSTOM_ITEM_VALUE = re.compile(r"^v(\d+)(.*)$")


def _item(match, key, value):
    return ParsedField(key=key, field=f"Item {match.group(1)}", value=value, group="ecommerce")


def _mp_event_name(match, key, value):
    return ParsedField(key=key, field=f"Event Name ({match.group(1)})", value=value, group="general")


def _mp_event_param(match, key, value):
    index, name = match.groups()
    return ParsedField(key=key, field=f"Event {index} Parameter: {name}", value=value, group="events")


PARAM_RULES = [
    label_rule(r"^ep\.(.+)$", "Event Parameter: {0}", "events"),
    label_rule(r"^epn\.(.+)$", "Event Parameter (Number): {0}", "events"),
    label_rule(r"^up\.(.+)$", "User Property: {0}", "user"),
    label_rule(r"^upn\.(.+)$", "User Property (Number): {0}", "user"),
    ParamRule(r"^pr(\d+)$", _item, flags=0),
    ParamRule(r"^events\[(\d+)\]\.name$", _mp_event_name, flags=0),
    ParamRule(r"^events\[(\d+)\]\.params\.(.+)$", _mp_event_param, flags=0),
    label_rule(r"^user_properties\.([^.]+)\.value$", "User Property: {0}", "user"),
]


def parse_item(index: str, raw: str) -> List[ParsedField]:
    """Expand a ``prN`` item string (``idSKU~nmShirt~k0color~v0blue``).

    Segments start with a two-letter code followed by the value; ``kN``/``vN``
    segments pair up into custom item parameters.
    """
    results = []
    custom_names = {}
    for segment in raw.split("~"):
        if len(segment) < 2:
            continue

        custom_name = _CUSTOM_ITEM_KEY.match(segment)
        if custom_name:
            custom_names[custom_name.group(1)] = custom_name.group(2)
            continue

        custom_value = _CUSTOM_ITEM_VALUE.match(segment)
        if custom_value and custom_value.group(1) in custom_names:
            name = custom_names[custom_value.group(1)]
            results.append(ParsedField(
                key=f"pr{index}.{name}",
                field=f"Item {index}: {name}",
                value=custom_value.group(2),
                group="ecommerce",
            ))
            continue

        code, value = segment[:2], segment[2:]
        label = ITEM_FIELDS.get(code, code)
        results.append(ParsedField(
            key=f"pr{index}.{code}",
            field=f"Item {index} {label}",
            value=value,
            group="ecommerce",
        ))
    return results


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []
    request_type = params.get("en")

    for key, value in params:
        item = _ITEM_KEY.match(key)
        if item:
            results.extend(parse_item(item.group(1), value))
        elif request_type is None and _MP_EVENT_NAME.match(key):
            request_type = value

    results.append(hidden_field("requestType", request_type or "Other"))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Google Analytics 4",
        type=ProviderType.ANALYTICS,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="tid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["google", "analytics", "ga4", "gtag", "measurement protocol"],
        max_depth=max_depth,
    )
