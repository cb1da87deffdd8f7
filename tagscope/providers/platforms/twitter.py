"""Twitter/X conversion pixel and widget scripts."""

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


KEY = "TWITTER"

PATTERN = (
    r"//static\.ads-twitter\.com/uwt\.js"
    r"|//analytics\.twitter\.com/i/adsct"
    r"|//t\.co/i/adsct"
    r"|//platform\.twitter\.com/widgets\.js"
)

GROUPS = make_groups(
    ("general", "General"),
    ("ecommerce", "E-commerce"),
    ("custom", "Custom Parameters"),
)

FIELDS = make_catalog({
    "txn_id": ("Pixel ID", "general"),
    "tw_sale_amount": ("Sale Amount", "ecommerce"),
    "tw_order_quantity": ("Order Quantity", "ecommerce"),
    "tw_iframe_status": ("iFrame Status", "general"),
    "tw_document_href": ("Document URL", "general"),
    "tpx_cb": ("Callback", "general"),
    "p_id": ("Product ID", "ecommerce"),
    "p_user_id": ("User ID", "general"),
    "p_user_latlng": ("User Location", "general"),
    "p_user_email": ("User Email", "general"),
    "tw_event": ("Event Name", "general"),
    "cd[content_name]": ("Content Name", "custom"),
    "cd[content_type]": ("Content Type", "custom"),
    "cd[content_ids]": ("Content IDs", "custom"),
    "cd[num_items]": ("Number of Items", "ecommerce"),
    "cd[email]": ("Email", "custom"),
    "cd[phone]": ("Phone", "custom"),
    "cd[address]": ("Address", "custom"),
    "cd[description]": ("Description", "custom"),
    "cd[currency]": ("Currency", "ecommerce"),
    "cd[value]": ("Value", "ecommerce"),
})


def _custom_data(match, key, value):
    spec = FIELDS.get(key)
    if spec is not None:
        return ParsedField(key=key, field=spec.name, value=value, group=spec.group)
    return ParsedField(key=key, field=f"Custom: {match.group(1)}", value=value, group="custom")


def _events(match, key, value):
    try:
        events = parse_json_param(value)
    except ValueError:
        return None
    return ParsedField(key=key, field="Events (JSON)", value=pretty_json(events), group="general")


PARAM_RULES = [
    ParamRule(r"^cd\[([^\]]+)\]$", _custom_data),
    ParamRule(r"^events$", _events),
]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    if "uwt.js" in url.path:
        request_type = "Script Load"
    elif "widgets.js" in url.path:
        request_type = "Widget Script"
    elif params.has("tw_event"):
        request_type = params.get("tw_event")
    else:
        request_type = "Pixel"

    return [hidden_field("requestType", request_type)]


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Twitter/X Pixel",
        type=ProviderType.MARKETING,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="txn_id", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["twitter", "x", "pixel", "uwt"],
        max_depth=max_depth,
    )
