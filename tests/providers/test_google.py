"""Tests for the Google providers (GA4, Universal Analytics, Tag Manager)."""

import json

from tagscope.providers.platforms import google_analytics, google_analytics4, google_tag_manager


class TestGoogleTagManager:
    """Test Google Tag Manager decoding."""

    def setup_method(self):
        """Set up test with the GTM provider."""
        self.provider = google_tag_manager.create_provider()

    def test_container_load(self):
        result = self.provider.parse("https://www.googletagmanager.com/gtm.js?id=GTM-ABC123")

        container = result.get("id")
        assert container.field == "Container ID"
        assert container.value == "GTM-ABC123"
        assert len(result.get_all("id")) == 1
        assert result.get("scriptType").value == "gtm.js"
        assert result.account == "GTM-ABC123"
        assert result.request_type == "Container Load"

    def test_registry_dispatch(self, provider_registry):
        url = "https://www.googletagmanager.com/gtm.js?id=GTM-ABC123"
        assert provider_registry.parse(url).provider.key == "GOOGLETAGMANAGER"

    def test_gtag_library(self):
        url = "https://www.googletagmanager.com/gtag/js?id=G-XYZ789&l=dataLayer"
        assert self.provider.matches(url)

        result = self.provider.parse(url)
        assert result.get("scriptType").value == "gtag.js"
        assert result.get("l").field == "Data Layer Name"

    def test_noscript_frame(self):
        url = "https://www.googletagmanager.com/ns.html?id=GTM-ABC123"
        assert self.provider.matches(url)
        assert self.provider.parse(url).get("scriptType").value == "GTM No-Script"

    def test_container_id_from_path(self):
        url = "https://www.googletagmanager.com/gtm-ABC123.js"
        assert self.provider.matches(url)

        result = self.provider.parse(url)
        assert result.get("id").value == "GTM-ABC123"
        assert result.get("id").field == "Container ID"

    def test_script_type_lookup(self):
        assert google_tag_manager.script_type("/gtm-preview/frame") == "GTM Preview"
        assert google_tag_manager.script_type("/other") == "Unknown"

    def test_environment_and_consent_params(self):
        result = self.provider.parse(
            "https://www.googletagmanager.com/gtm.js?id=GTM-ABC123&gtm_auth=tok&gtm_preview=env-5"
            "&gtm_cookies_win=x&gcs=G111&gcd=13l3l3&npa=0"
        )
        labels = {item.key: (item.field, item.group) for item in result.data}

        assert labels["gtm_auth"] == ("Environment Auth Token", "environment")
        assert labels["gtm_preview"] == ("Environment Preview ID", "environment")
        assert labels["gtm_cookies_win"] == ("Environment Cookies", "environment")
        assert labels["gcs"] == ("Consent Mode", "consent")
        assert labels["gcd"] == ("Consent Defaults", "consent")
        assert labels["npa"] == ("Non-Personalized Ads", "consent")
        assert [group.key for group in self.provider.groups] == ["general", "environment", "consent"]


class TestUniversalAnalytics:
    """Test Universal Analytics decoding."""

    def setup_method(self):
        """Set up test with the Universal Analytics provider."""
        self.provider = google_analytics.create_provider()

    def test_pageview(self):
        result = self.provider.parse(
            "https://www.google-analytics.com/collect?v=1&tid=UA-12345-1&t=pageview"
            "&dl=https%3A%2F%2Fexample.com%2F&dt=Home"
        )
        assert result.get("tid").field == "Tracking ID"
        assert result.get("dl").value == "https://example.com/"
        assert result.get("hostname").value == "www.google-analytics.com"
        assert result.account == "UA-12345-1"
        assert result.request_type == "Page View"

    def test_dynamic_families(self):
        result = self.provider.parse(
            "https://www.google-analytics.com/collect?v=1&tid=UA-1-1&t=event&ec=Video&ea=play"
            "&cd3=gold&cm2=5&cg1=Blog&pr1nm=Shirt&pr1cd2=XL&il1nm=Search&il1pi2ps=3"
            "&il1pi2cm1=9&promo1id=P1"
        )
        labels = {item.key: (item.field, item.group) for item in result.data}

        assert labels["ec"] == ("Event Category", "events")
        assert labels["cd3"] == ("Dimension 3", "dimensions")
        assert labels["cm2"] == ("Metric 2", "metrics")
        assert labels["cg1"] == ("Content Group 1", "contentgroup")
        assert labels["pr1nm"] == ("Product 1 Name", "ecommerce")
        assert labels["pr1cd2"] == ("Product 1 Dimension 2", "ecommerce")
        assert labels["il1nm"] == ("Impression List 1", "ecommerce")
        assert labels["il1pi2ps"] == ("Impression List 1 Product 2 Position", "ecommerce")
        assert labels["il1pi2cm1"] == ("Impression List 1 Product 2 Metric 1", "ecommerce")
        assert labels["promo1id"] == ("Promotion 1 ID", "ecommerce")
        assert result.request_type == "Event"

    def test_static_keys_not_shadowed_by_families(self):
        result = self.provider.parse("https://www.google-analytics.com/collect?cm=email&cd=Home&promoa=click")
        assert result.get("cm").field == "Campaign Medium"
        assert result.get("cd").field == "Content Description"
        assert result.get("promoa").field == "Promotion Action"

    def test_request_type_fallbacks(self):
        assert self.provider.parse("https://www.google-analytics.com/collect?v=1").request_type == "Other"
        assert self.provider.parse("https://www.google-analytics.com/collect?t=custom").request_type == "Custom"

    def test_hit_type_labels(self):
        assert google_analytics.hit_type_label("screenview") == "Screen View"
        assert google_analytics.hit_type_label("TRANSACTION") == "Transaction"

    def test_request_type_hidden(self):
        result = self.provider.parse("https://www.google-analytics.com/collect?t=pageview")
        visible = [item.key for item in result.visible_fields]
        assert "requestType" not in visible
        assert "hostname" in visible

    def test_endpoints(self):
        assert self.provider.matches("https://www.google-analytics.com/r/collect?v=1")
        assert self.provider.matches("https://www.google-analytics.com/j/collect?v=1")
        assert self.provider.matches("https://stats.g.doubleclick.net/r/collect?v=1")
        assert not self.provider.matches("https://www.google-analytics.com/analytics.js")
        assert not self.provider.matches("https://www.google-analytics.com/collection")
        assert not self.provider.matches("https://www.google-analytics.com/mp/collect?measurement_id=G-1")

    def test_measurement_protocol_left_to_ga4(self, provider_registry):
        url = "https://www.google-analytics.com/mp/collect?measurement_id=G-1&api_secret=s"
        results = provider_registry.parse_all(url)
        assert [result.provider.key for result in results] == ["GOOGLEANALYTICS4"]

    def test_form_body(self):
        result = self.provider.parse(
            "https://www.google-analytics.com/collect",
            body="v=1&tid=UA-9-1&t=event&ec=Form",
        )
        assert result.account == "UA-9-1"
        assert result.get("ec").value == "Form"


class TestGoogleAnalytics4:
    """Test GA4 decoding."""

    def setup_method(self):
        """Set up test with the GA4 provider."""
        self.provider = google_analytics4.create_provider()

    def test_event_hit(self):
        result = self.provider.parse(
            "https://region1.google-analytics.com/g/collect?v=2&tid=G-ABC123&en=purchase"
            "&ep.coupon=SUMMER&epn.value=10&up.tier=gold&upn.visits=3&cu=USD"
        )
        labels = {item.key: (item.field, item.group) for item in result.data}

        assert labels["tid"] == ("Measurement ID", "general")
        assert labels["ep.coupon"] == ("Event Parameter: coupon", "events")
        assert labels["epn.value"] == ("Event Parameter (Number): value", "events")
        assert labels["up.tier"] == ("User Property: tier", "user")
        assert labels["upn.visits"] == ("User Property (Number): visits", "user")
        assert labels["cu"] == ("Currency Code", "ecommerce")
        assert result.account == "G-ABC123"
        assert result.request_type == "purchase"

    def test_item_expansion(self):
        result = self.provider.parse(
            "https://www.google-analytics.com/g/collect?v=2&tid=G-ABC123&en=add_to_cart"
            "&pr1=idSKU1~nmShirt~pr9.99~k0color~v0blue"
        )
        assert result.get("pr1").field == "Item 1"
        assert result.get("pr1.id").field == "Item 1 ID"
        assert result.get("pr1.id").value == "SKU1"
        assert result.get("pr1.nm").value == "Shirt"
        assert result.get("pr1.pr").field == "Item 1 Price"
        assert result.get("pr1.pr").value == "9.99"
        assert result.get("pr1.color").field == "Item 1: color"
        assert result.get("pr1.color").value == "blue"

    def test_parse_item_unknown_code(self):
        fields = google_analytics4.parse_item("2", "zzvalue~x")
        assert [(item.key, item.field, item.value) for item in fields] == [
            ("pr2.zz", "Item 2 zz", "value"),
        ]

    def test_measurement_protocol_body(self):
        body = json.dumps({
            "client_id": "123.456",
            "events": [{"name": "purchase", "params": {"currency": "USD", "value": 30}}],
        })
        result = self.provider.parse(
            "https://www.google-analytics.com/mp/collect?measurement_id=G-ABC123&api_secret=secret",
            body=body,
        )

        assert result.get("client_id").field == "Client ID"
        assert result.get("events[0].name").field == "Event Name (0)"
        currency = result.get("events[0].params.currency")
        assert currency.field == "Event 0 Parameter: currency"
        assert currency.group == "events"
        assert result.get("events[0].params.value").value == "30"
        assert result.request_type == "purchase"

    def test_request_type_default(self):
        assert self.provider.parse("https://www.google-analytics.com/g/collect?v=2").request_type == "Other"

    def test_not_universal(self):
        assert not self.provider.matches("https://www.google-analytics.com/collect?v=1")
