"""Google Tag Manager container and gtag.js library loads."""

import re
from typing import List

from ..base import (
    ColumnMapping,
    ParsedField,
    Provider,
    ProviderType,
    hidden_field,
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH
from ..utils import QueryParams, UrlParts


KEY = "GOOGLETAGMANAGER"

PATTERN = (
    r"//www\.googletagmanager\.com(?:/[a-z]+|)/[a-z]+\.js"
    r"|//www\.googletagmanager\.com/gtag/js"
    r"|//www\.googletagmanager\.com/ns\.html"
    r"|//www\.googletagmanager\.com/gtm-\w+\.js"
)

GROUPS = make_groups(
    ("general", "General"),
    ("environment", "Environment"),
    ("consent", "Consent"),
)

FIELDS = make_catalog({
    "id": ("Container ID", "general"),
    "l": ("Data Layer Name", "general"),
    "cx": ("Container Experiments", "general"),
    "gtm": ("GTM Debug", "general"),
    "tag_exp": ("Tag Experiments", "general"),
    "gtm_auth": ("Environment Auth Token", "environment"),
    "gtm_preview": ("Environment Preview ID", "environment"),
    "gtm_cookies_win": ("Environment Cookies", "environment"),
    "gtm_debug": ("Debug Mode", "environment"),
    "gcs": ("Consent Mode", "consent"),
    "gcd": ("Consent Defaults", "consent"),
    "dma": ("DMA Compliance", "consent"),
    "dma_cps": ("DMA Consent Purposes", "consent"),
    "npa": ("Non-Personalized Ads", "consent"),
})

_CONTAINER_PATH = re.compile(r"/gtm-(\w+)\.js", re.IGNORECASE)

# Checked in order against the request path.
SCRIPT_TYPES = [
    ("/gtag/js", "gtag.js"),
    ("/gtm.js", "gtm.js"),
    ("/gtm-preview", "GTM Preview"),
    ("/ns.html", "GTM No-Script"),
]


def script_type(path: str) -> str:
    for marker, label in SCRIPT_TYPES:
        if marker in path:
            return label
    return "Unknown"


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []

    # A query ``id`` is already described by the catalog.
    if not params.has("id"):
        container = _CONTAINER_PATH.search(url.path)
        if container:
            results.append(ParsedField(
                key="id",
                field="Container ID",
                value=f"GTM-{container.group(1)}",
                group="general",
            ))

    results.append(hidden_field("requestType", "Container Load"))
    results.append(ParsedField(
        key="scriptType",
        field="Script Type",
        value=script_type(url.path),
        group="general",
    ))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Google Tag Manager",
        type=ProviderType.TAG_MANAGER,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="id", request_type="requestType"),
        custom=parse_custom,
        keywords=["google", "gtm", "tag manager"],
        max_depth=max_depth,
    )
