"""Adobe Experience Platform Launch (Adobe Tags) library loads."""

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


KEY = "ADOBELAUNCH"

PATTERN = (
    r"//assets\.adobedtm\.com/launch-[a-zA-Z0-9]+-development\.min\.js"
    r"|//assets\.adobedtm\.com/launch-[a-zA-Z0-9]+-staging\.min\.js"
    r"|//assets\.adobedtm\.com/launch-[a-zA-Z0-9]+\.min\.js"
    r"|//assets\.adobedtm\.com/[^/]+/[^/]+/launch-[a-f0-9]+(-development|-staging|)\.min\.js"
)

GROUPS = make_groups(("general", "General"))

FIELDS = make_catalog({})

_COMPANY_LIBRARY = re.compile(
    r"/([^/]+)/([^/]+)/launch-([a-f0-9]+)(?:-(development|staging))?\.min\.js", re.IGNORECASE
)
_LIBRARY = re.compile(r"/launch-([a-zA-Z0-9]+)(?:-(development|staging))?\.min\.js", re.IGNORECASE)


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = [hidden_field("requestType", "Library Load")]
    property_id = ""
    environment = "production"

    company_match = _COMPANY_LIBRARY.search(url.path)
    library_match = _LIBRARY.search(url.path)
    if company_match:
        company, _, property_id, environment = company_match.groups()
        environment = environment or "production"
        results.append(ParsedField(key="company", field="Company", value=company, group="general"))
    elif library_match:
        property_id, environment = library_match.groups()
        environment = environment or "production"

    if property_id:
        results.append(ParsedField(key="property", field="Property", value=property_id, group="general"))

    results.append(ParsedField(key="environment", field="Environment", value=environment, group="general"))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Adobe Launch",
        type=ProviderType.TAG_MANAGER,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="property", request_type="requestType"),
        custom=parse_custom,
        keywords=["adobe", "launch", "dtm", "tags"],
        max_depth=max_depth,
    )
