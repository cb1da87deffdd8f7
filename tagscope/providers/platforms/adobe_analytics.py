"""Adobe Analytics (AppMeasurement) image requests.

https://experienceleague.adobe.com/docs/analytics/implementation/validate/query-parameters.html
"""

import re
from typing import List

from ..base import (
    ColumnMapping,
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


KEY = "ADOBEANALYTICS"

PATTERN = r"/b/ss/|\.2o7\.net/|\.sc\d?\.omtrdc\.net/(?!id)"

GROUPS = make_groups(
    ("general", "General"),
    ("eVars", "eVars"),
    ("props", "Custom Traffic Variables (props)"),
    ("hierarchy", "Hierarchy Variables"),
    ("listvar", "List Variables"),
    ("events", "Events"),
    ("ecommerce", "Ecommerce"),
    ("contextData", "Context Data"),
)

FIELDS = make_catalog({
    "ns": ("Visitor Namespace", "general"),
    "vid": ("Visitor ID", "general"),
    "mid": ("Marketing Cloud Visitor ID", "general"),
    "aid": ("Legacy Visitor ID", "general"),
    "fid": ("Fallback Visitor ID", "general"),
    "mcorgid": ("Marketing Cloud Org ID", "general"),
    "mcmid": ("Experience Cloud Visitor ID", "general"),
    "mcaid": ("Experience Cloud Analytics ID", "general"),
    "aamlh": ("Audience Manager Location Hint", "general"),
    "aamb": ("Audience Manager Blob", "general"),
    "sdid": ("Supplemental Data ID", "general"),
    "vmk": ("Visitor Migration Key", "general"),
    "vvp": ("Variable Provider", "general"),
    "pccr": ("Prevent Infinite Redirects", "other"),
    "D": ("Dynamic Variable Prefix", "other"),
    "cdp": ("Cookie Domain Periods", "other"),
    "ts": ("Timestamp", "general"),
    "p": ("Browser Plugins", "general"),
    "ct": ("Connection Type", "general"),
    "hp": ("Home Page", "general"),
    "pf": ("Platform Flag", "general"),
    "lc": ("Lifecycle", "general"),
    "tnt": ("Target Integration", "general"),
    "pid": ("ClickMap Page ID", "general"),
    "pidt": ("ClickMap Page ID Type", "general"),
    "oid": ("ClickMap Object ID", "general"),
    "oidt": ("ClickMap Object ID Type", "general"),
    "ot": ("ClickMap Object Tag", "general"),
    "oi": ("ClickMap Object Index", "general"),
    "pev3": ("Video Report", "general"),
    "ce": ("Character Set", "general"),
    "pageName": ("Page Name", "general"),
    "pageType": ("Page Type", "general"),
    "g": ("Current URL", "general"),
    "r": ("Referring URL", "general"),
    "ch": ("Channel", "general"),
    "server": ("Server", "general"),
    "v0": ("Campaign", "general"),
    "t": ("Browser Time", "general"),
    "cl": ("Cookie Lifetime", "general"),
    "s": ("Screen Resolution", "general"),
    "c": ("Color Depth", "general"),
    "j": ("JavaScript Version", "general"),
    "v": ("JavaScript Enabled", "general"),
    "k": ("Cookies Enabled", "general"),
    "bw": ("Browser Width", "general"),
    "bh": ("Browser Height", "general"),
    "AQB": ("Request Start", "other"),
    "AQE": ("Request End", "other"),
    "ndh": ("Image Sent From JS", "other"),
    "pe": ("Link Type", "general"),
    "pev1": ("Link URL", "general"),
    "pev2": ("Link Name", "general"),
    "events": ("Events", "events"),
    "products": ("Products", "ecommerce"),
    "purchaseID": ("Purchase ID", "ecommerce"),
    "xact": ("Transaction ID", "ecommerce"),
    "cc": ("Currency Code", "ecommerce"),
    "state": ("Visitor State", "ecommerce"),
    "zip": ("Visitor Zip Code", "ecommerce"),
})

LINK_TYPES = {
    "lnk_o": "Custom Link",
    "lnk_d": "Download Link",
    "lnk_e": "Exit Link",
}

_REPORT_SUITE_PATH = re.compile(r"/b/ss/([^/]+)/")

PARAM_RULES = [
    label_rule(r"^v([1-9]\d*)$", "eVar{0}", "eVars"),
    label_rule(r"^c([1-9]\d*)$", "prop{0}", "props"),
    label_rule(r"^h([1-9]\d*)$", "Hierarchy {0}", "hierarchy"),
    label_rule(r"^l([1-9]\d*)$", "List Variable {0}", "listvar"),
    label_rule(r"^c\.(.+)$", "Context Data: {0}", "contextData"),
]


def fold_context_data(params: QueryParams) -> QueryParams:
    """Fold context data scopes into dotted keys.

    AppMeasurement serializes ``s.contextData`` as nested scopes, opened by a
    key ending in ``.`` and closed by the same name with a leading ``.``::

        c.=&a.=&Launch=1&.a=&myco.=&page=home&.myco=&.c=

    becomes ``c.a.Launch=1`` and ``c.myco.page=home``. Pairs outside any scope
    are kept as they are.
    """
    folded = QueryParams()
    scopes: List[str] = []

    for key, value in params:
        if key.endswith(".") and not key.startswith(".") and len(key) > 1:
            scopes.append(key[:-1])
        elif key.startswith(".") and len(key) > 1 and scopes:
            if key[1:] in scopes:
                while scopes and scopes.pop() != key[1:]:
                    pass
        elif scopes:
            folded.append(".".join(scopes + [key]), value)
        else:
            folded.append(key, value)

    return folded


def parse_custom(url: UrlParts, params: QueryParams) -> List[ParsedField]:
    results = []

    report_suites = _REPORT_SUITE_PATH.search(url.path)
    if report_suites:
        results.append(ParsedField(
            key="rsid", field="Report Suites", value=report_suites.group(1), group="general"
        ))

    results.append(ParsedField(key="trackingServer", field="Tracking Server", value=url.hostname, group="general"))

    link_type = params.get("pe")
    results.append(hidden_field("requestType", LINK_TYPES.get(link_type, "Page View")))
    return results


def create_provider(max_depth: int = DEFAULT_MAX_DEPTH, **options) -> Provider:
    return Provider(
        key=KEY,
        name="Adobe Analytics",
        type=ProviderType.ANALYTICS,
        pattern=PATTERN,
        fields=FIELDS,
        groups=GROUPS,
        columns=ColumnMapping(account="rsid", request_type="requestType"),
        param_rules=PARAM_RULES,
        custom=parse_custom,
        rewrite_params=fold_context_data,
        keywords=["adobe", "analytics", "omniture", "sitecatalyst", "appmeasurement"],
        max_depth=max_depth,
    )
