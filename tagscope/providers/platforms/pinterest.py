"""Pinterest Tag."""

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
    label_rule,
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH
from ..utils import QueryParams, UrlParts, parse_json_param, pretty_json


logger = logging.getLogger(__name__)

KEY = "PINTEREST"

PATTERN = r"//ct\.pinterest\.com(?:/v3)?/user|//ct\.pinterest\.com(?:/v3)?/events"

GROUPS = make_groups(
    ("general", "General"),
    ("ecommerce", "E-commerce"),
    ("custom", "Custom Parameters"),
)

FIELDS = make_catalog({
    "tid": ("Tag ID", "general"),
    "event": ("Event Type", "general"),
    "ed": ("Event Data", "general"),
    "callback": ("Callback Function", "general"),
    "noscript": ("No Script Tag", "general"),
    "np": ("Page URL", "general"),
    "pd[em]": ("Email Address", "general"),
    "pd[fn]": ("First Name", "general"),
    "pd[ln]": ("Last Name", "general"),
    "pd[ge]": ("Gender", "general"),
    "pd[db]": ("Date of Birth", "general"),
    "pd[ph]": ("Phone Number", "general"),
    "pd[ct]": ("City", "general"),
    "pd[st]": ("State", "general"),
    "pd[zp]": ("ZIP/Postal Code", "general"),
    "pd[country]": ("Country", "general"),
    "pd[external_id]": ("External ID", "general"),
    "currency": ("Currency", "ecommerce"),
    "value": ("Value", "ecommerce"),
    "order_id": ("Order ID", "ecommerce"),
    "order_quantity": ("Order Quantity", "ecommerce"),
    "promo_code": ("Promo Code", "ecommerce"),
    "product_id": ("Product ID", "ecommerce"),
    "product_name": ("Product Name", "ecommerce"),
    "product_category": ("Product Category", "ecommerce"),
    "product_brand": ("Product Brand", "ecommerce"),
    "product_variant": ("Product Variant", "ecommerce"),
    "product_variant_id": ("Product Variant ID", "ecommerce"),
    "product_price": ("Product Price", "ecommerce"),
    "product_quantity": ("Product Quantity", "ecommerce"),
})

_TAG_PATH = re.compile(r"/user/([^/]+)/", re.IGNORECASE)


def _event_data(match, key, value):
    try:
        data = parse_json_param(value)
    except ValueError:
        return None
    return ParsedField(key=key, field="Event Data (JSON)", value=pretty_json(data), group="general")


PARAM_RULES = [
    label_rule(r"^custom_data\[([^\]]+)\]", "Custom: {0}", "custom"),
    ParamRule(r"^ed$", _event_data),
]


def _event_data_fields(raw: str) -> List[ParsedField]:
    try:
        data = parse_json_param(raw)
    except ValueError as e:
        logger.debug(f"Pinterest event data is not JSON: {e}")
        return []
    if not isinstance(data, dict):
        return []

    results = []
    for name, value in data.items():
        spec = FIELDS.get(name)
        if spec is not None and not spec.hidden:
            results.append(ParsedField(key=name, field=spec.name, value=value, group=spec.group))
        else:
            results.append(ParsedField(
                key=f"custom_data[{name}]", field=f"Custom: {name}", value=value, group="custom"
            ))
    return results


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []

    if not params.has("tid"):
        tag_id = _TAG_PATH.search(url.path)
        if tag_id:
            results.append(ParsedField(key="tid", field="Tag ID", value=tag_id.group(1), group="general"))

    if params.has("ed"):
        results.extend(_event_data_fields(params.get("ed")))

    results.append(hidden_field("requestType", params.get("event") or "PageView"))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Pinterest Tag",
        type=ProviderType.MARKETING,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="tid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["pinterest", "pintrk"],
        max_depth=max_depth,
    )
