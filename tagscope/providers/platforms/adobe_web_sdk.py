"""Adobe Experience Platform Web SDK (Alloy) interact calls.

Interact requests carry their payload as a JSON body. The body decoder
flattens it into dotted paths such as ``events[0].xdm.web.webPageDetails.name``;
well-known paths get a descriptive label, every other path is labelled by its
leaf property and grouped by the namespace it sits under.
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
    make_catalog,
    make_groups,
)
from ..body import DEFAULT_MAX_DEPTH, TRUNCATION_KEY
from ..utils import QueryParams, UrlParts, classify_path_group, leaf_name


KEY = "ADOBEWEBSDK"

PATTERN = r"/(?:ee|edge|interact|collect)(?:/[a-z0-9]+)?/v1/(?:interact|collect)"

GROUPS = make_groups(
    ("general", "General"),
    ("xdm", "XDM Data"),
    ("identity", "Identity"),
    ("target", "Target"),
    ("analytics", "Analytics"),
    ("other", "Other"),
)

FIELDS = make_catalog({
    "configId": ("Configuration ID", "general"),
    "requestId": ("Request ID", "general"),
})

# Well-known paths with array indices removed, relative to the event they
# sit in or to the body root.
KNOWN_PATHS = {
    "xdm.eventType": ("XDM Event Type", "general"),
    "xdm.timestamp": ("Timestamp", "general"),
    "xdm._id": ("Event ID", "general"),
    "xdm.web.webPageDetails.name": ("Page Name", "xdm"),
    "xdm.web.webPageDetails.URL": ("Page URL", "xdm"),
    "xdm.web.webPageDetails.siteSection": ("Site Section", "xdm"),
    "xdm.web.webPageDetails.server": ("Server", "xdm"),
    "xdm.web.webPageDetails.pageViews.value": ("Page Views", "xdm"),
    "xdm.web.webReferrer.URL": ("Referrer URL", "xdm"),
    "xdm.web.webInteraction.name": ("Link Name", "xdm"),
    "xdm.web.webInteraction.type": ("Link Type", "xdm"),
    "xdm.web.webInteraction.URL": ("Link URL", "xdm"),
    "xdm.device.screenHeight": ("Screen Height", "xdm"),
    "xdm.device.screenWidth": ("Screen Width", "xdm"),
    "xdm.device.screenOrientation": ("Screen Orientation", "xdm"),
    "xdm.environment.type": ("Environment Type", "xdm"),
    "xdm.environment.browserDetails.viewportHeight": ("Viewport Height", "xdm"),
    "xdm.environment.browserDetails.viewportWidth": ("Viewport Width", "xdm"),
    "xdm.placeContext.localTime": ("Local Time", "xdm"),
    "xdm.placeContext.localTimezoneOffset": ("Timezone Offset", "xdm"),
    "xdm.implementationDetails.name": ("Implementation Name", "xdm"),
    "xdm.implementationDetails.version": ("Implementation Version", "xdm"),
    "xdm.implementationDetails.environment": ("Implementation Environment", "xdm"),
    "xdm.commerce.order.purchaseID": ("Purchase ID", "xdm"),
    "xdm.commerce.order.priceTotal": ("Order Total", "xdm"),
    "xdm.commerce.order.currencyCode": ("Currency Code", "xdm"),
    "xdm.identityMap.ECID.id": ("Experience Cloud ID", "identity"),
    "xdm.identityMap.ECID.authenticatedState": ("ECID Authenticated State", "identity"),
    "meta.state.domain": ("Cookie Domain", "general"),
    "meta.state.cookiesEnabled": ("Cookies Enabled", "general"),
    "meta.identity.fetchIdentity": ("Fetch Identity", "identity"),
    "meta.configOverrides.com_adobe_analytics.reportSuites": ("Report Suite Override", "analytics"),
    "query.identity.fetch": ("Requested Identity", "identity"),
    "query.personalization.schemas": ("Personalization Schema", "target"),
    "query.personalization.decisionScopes": ("Decision Scope", "target"),
    "query.personalization.surfaces": ("Personalization Surface", "target"),
}

_EVENT_TYPE = re.compile(r"^events\[(\d+)\]\.eventType$")
_EVENT_PREFIX = re.compile(r"^events\[\d+\]\.")
_INDEX = re.compile(r"\[\d+\]")


def _event_type(match, key, value):
    return ParsedField(key=key, field=f"Event Type ({match.group(1)})", value=value, group="general")


def _truncated(match, key, value):
    prefix = key[:-len(TRUNCATION_KEY) - 1]
    return ParsedField(
        key=key,
        field=f"{prefix} (Max Depth Exceeded)",
        value=value,
        group=classify_path_group(prefix),
    )


def _known_path(match, key, value):
    spec = KNOWN_PATHS.get(_INDEX.sub("", _EVENT_PREFIX.sub("", key)))
    if spec is None:
        return None
    name, group = spec
    return ParsedField(key=key, field=name, value=value, group=group)


def _schema_path(match, key, value):
    return ParsedField(key=key, field=leaf_name(key), value=value, group=classify_path_group(key))


PARAM_RULES = [
    ParamRule(r"^events\[(\d+)\]\.eventType$", _event_type, flags=0),
    ParamRule(rf"^.+\.{TRUNCATION_KEY}$", _truncated, flags=0),
    ParamRule(r"^(?:events\[\d+\]\.)?(?:xdm|meta|query)\.", _known_path, flags=0),
    # Any flattened body path, i.e. anything nested below the root object.
    ParamRule(r"^[^.\[]+(?:\.|\[\d+\]).+$", _schema_path, flags=0),
]


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    request_type = "Interact"
    for key, value in params:
        if _EVENT_TYPE.match(key) and value:
            request_type = value
            break

    return [
        ParsedField(key="endpoint", field="Endpoint", value=url.hostname, group="general"),
        ParsedField(key="trackingServer", field="Tracking Server", value=url.hostname, group="general"),
        hidden_field("requestType", request_type),
    ]


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Adobe Experience Platform Web SDK",
        type=ProviderType.ANALYTICS,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="configId", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        keywords=["aep", "alloy", "xdm", "web sdk"],
        max_depth=max_depth,
    )
