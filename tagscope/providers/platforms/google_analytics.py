"""Google Analytics (Universal Analytics) collect hits.

https://developers.google.com/analytics/devguides/collection/protocol/v1/parameters
"""

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


KEY = "GOOGLEANALYTICS"

PATTERN = (
    r"\.google-analytics\.com/(?:r/)?collect(?:[/?]|$)"
    r"|\.google-analytics\.com/(?:j/)?collect(?:[/?]|$)"
    r"|stats\.g\.doubleclick\.net/(?:r/)?collect(?:[/?]|$)"
    r"|analytics\.google\.com/(?:g/)?collect(?:[/?]|$)"
)

GROUPS = make_groups(
    ("general", "General"),
    ("campaign", "Campaign"),
    ("events", "Events"),
    ("ecommerce", "Ecommerce"),
    ("timing", "Timing"),
    ("dimensions", "Custom Dimensions"),
    ("metrics", "Custom Metrics"),
    ("contentgroup", "Content Groups"),
)

FIELDS = make_catalog({
    "v": ("Protocol Version", "general"),
    "tid": ("Tracking ID", "general"),
    "aip": ("Anonymize IP", "general"),
    "qt": ("Queue Time", "general"),
    "z": ("Cache Buster", "general"),
    "cid": ("Client ID", "general"),
    "sc": ("Session Control", "general"),
    "dr": ("Document Referrer", "general"),
    "cn": ("Campaign Name", "campaign"),
    "cs": ("Campaign Source", "campaign"),
    "cm": ("Campaign Medium", "campaign"),
    "ck": ("Campaign Keyword", "campaign"),
    "cc": ("Campaign Content", "campaign"),
    "ci": ("Campaign ID", "campaign"),
    "gclid": ("Google AdWords ID", "campaign"),
    "dclid": ("Google Display Ads ID", "campaign"),
    "sr": ("Screen Resolution", "general"),
    "vp": ("Viewport Size", "general"),
    "de": ("Document Encoding", "general"),
    "sd": ("Screen Colors", "general"),
    "ul": ("User Language", "general"),
    "je": ("Java Enabled", "general"),
    "fl": ("Flash Version", "general"),
    "t": ("Hit Type", "general"),
    "ni": ("Non-Interaction Hit", "events"),
    "dl": ("Document location URL", "general"),
    "dh": ("Document Host Name", "general"),
    "dp": ("Document Path", "general"),
    "dt": ("Document Title", "general"),
    "cd": ("Content Description", "general"),
    "an": ("Application Name", "general"),
    "av": ("Application Version", "general"),
    "ec": ("Event Category", "events"),
    "ea": ("Event Action", "events"),
    "el": ("Event Label", "events"),
    "ev": ("Event Value", "events"),
    "ta": ("Transaction Affiliation", "ecommerce"),
    "tr": ("Transaction Revenue", "ecommerce"),
    "ts": ("Transaction Shipping", "ecommerce"),
    "tt": ("Transaction Tax", "ecommerce"),
    "ti": ("Transaction ID", "ecommerce"),
    "in": ("Item Name", "ecommerce"),
    "ip": ("Item Price", "ecommerce"),
    "iq": ("Item Quantity", "ecommerce"),
    "ic": ("Item Code", "ecommerce"),
    "iv": ("Item Category", "ecommerce"),
    "cu": ("Currency Code", "ecommerce"),
    "sn": ("Social Network", "events"),
    "sa": ("Social Action", "events"),
    "st": ("Social Action Target", "events"),
    "utc": ("User Timing Category", "timing"),
    "utv": ("User Timing Variable Name", "timing"),
    "utt": ("User Timing Time", "timing"),
    "utl": ("User timing Label", "timing"),
    "plt": ("Page load time", "timing"),
    "dns": ("DNS time", "timing"),
    "pdt": ("Page download time", "timing"),
    "rrt": ("Redirect response time", "timing"),
    "tcp": ("TCP connect time", "timing"),
    "srt": ("Server response time", "timing"),
    "exd": ("Exception description", "events"),
    "exf": ("Is exception fatal?", "events"),
    "ds": ("Data Source", "general"),
    "uid": ("User ID", "general"),
    "linkid": ("Link ID", "general"),
    "pa": ("Product Action", "ecommerce"),
    "tcc": ("Coupon Code", "ecommerce"),
    "pal": ("Product Action List", "ecommerce"),
    "cos": ("Checkout Step", "ecommerce"),
    "col": ("Checkout Step Option", "ecommerce"),
    "promoa": ("Promotion Action", "ecommerce"),
    "_r": ("Display Features Enabled", "general"),
})

PRODUCT_FIELDS = {
    "id": "ID",
    "nm": "Name",
    "br": "Brand",
    "ca": "Category",
    "va": "Variant",
    "pr": "Price",
    "qt": "Quantity",
    "cc": "Coupon Code",
    "ps": "Position",
}

IMPRESSION_FIELDS = {key: label for key, label in PRODUCT_FIELDS.items() if key not in ("qt", "cc")}

PROMOTION_FIELDS = {
    "id": "ID",
    "nm": "Name",
    "cr": "Creative",
    "ps": "Position",
}

CUSTOM_TYPES = {
    "cd": "Dimension",
    "cm": "Metric",
}

HIT_TYPES = {
    "pageview": "Page View",
    "screenview": "Screen View",
    "event": "Event",
    "transaction": "Transaction",
    "item": "Item",
    "social": "Social",
    "timing": "Timing",
    "exception": "Exception",
}


def _ecommerce(key: str, label: str, value: str) -> ParsedField:
    return ParsedField(key=key, field=label, value=value, group="ecommerce")


def _promotion(match, key, value):
    index, suffix = match.groups()
    return _ecommerce(key, f"Promotion {index} {PROMOTION_FIELDS.get(suffix.lower(), '')}".rstrip(), value)


def _product(match, key, value):
    index, suffix = match.groups()
    return _ecommerce(key, f"Product {index} {PRODUCT_FIELDS.get(suffix.lower(), '')}".rstrip(), value)


def _product_custom(match, key, value):
    index, kind, number = match.groups()
    return _ecommerce(key, f"Product {index} {CUSTOM_TYPES[kind.lower()]} {number}", value)


def _impression_list(match, key, value):
    return _ecommerce(key, f"Impression List {match.group(1)}", value)


def _impression_custom(match, key, value):
    list_index, product_index, kind, number = match.groups()
    label = f"Impression List {list_index} Product {product_index} {CUSTOM_TYPES[kind.lower()]} {number}"
    return _ecommerce(key, label, value)


def _impression_product(match, key, value):
    list_index, product_index, suffix = match.groups()
    label = f"Impression List {list_index} Product {product_index} {IMPRESSION_FIELDS.get(suffix.lower(), '')}"
    return _ecommerce(key, label.rstrip(), value)


PARAM_RULES = [
    label_rule(r"^cg(\d+)$", "Content Group {0}", "contentgroup"),
    label_rule(r"^cd(\d+)$", "Dimension {0}", "dimensions"),
    label_rule(r"^cm(\d+)$", "Metric {0}", "metrics"),
    ParamRule(r"^promo(\d+)([a-z]{2})$", _promotion),
    ParamRule(r"^pr(\d+)([a-z]{2})$", _product),
    ParamRule(r"^pr(\d+)(cd|cm)(\d+)$", _product_custom),
    ParamRule(r"^il(\d+)nm$", _impression_list),
    ParamRule(r"^il(\d+)pi(\d+)(cd|cm)(\d+)$", _impression_custom),
    ParamRule(r"^il(\d+)pi(\d+)([a-z]{2})$", _impression_product),
]


def hit_type_label(hit_type: str) -> str:
    """Map a ``t`` parameter value to its request type label."""
    hit_type = hit_type.lower()
    if hit_type in HIT_TYPES:
        return HIT_TYPES[hit_type]
    return hit_type[:1].upper() + hit_type[1:]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    hit_type = params.get("t")
    request_type = hit_type_label(hit_type) if hit_type else "Other"

    return [
        ParsedField(key="hostname", field="Google Analytics Host", value=url.hostname, group="general"),
        hidden_field("requestType", request_type),
    ]


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Google Analytics (Universal)",
        type=ProviderType.ANALYTICS,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="tid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["google", "analytics", "ua", "universal analytics"],
        max_depth=max_depth,
    )
