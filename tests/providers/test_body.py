"""Unit tests for request body decoding."""

import json

from tagscope.providers.body import (
    CIRCULAR_VALUE,
    TRUNCATION_KEY,
    TRUNCATION_VALUE,
    BodyDecoder,
    decode_form,
    flatten_json,
    join_path,
)
from tagscope.providers.utils import QueryParams


class TestFlattenJson:
    """Test recursive JSON flattening."""

    def test_nested_paths(self):
        pairs = flatten_json({"a": {"b": 1}, "c": [1, "two"]})
        assert pairs == [("a.b", "1"), ("c[0]", "1"), ("c[1]", "two")]

    def test_scalars_rendered_like_beacons(self):
        pairs = flatten_json({"t": True, "f": False, "n": None, "i": 30.0, "x": 1.5})
        assert pairs == [("t", "true"), ("f", "false"), ("n", "null"), ("i", "30"), ("x", "1.5")]

    def test_empty_containers(self):
        assert flatten_json({"a": {}, "b": []}) == [("a", ""), ("b", "")]
        assert flatten_json({}) == []
        assert flatten_json([]) == []

    def test_root_array(self):
        assert flatten_json([{"a": 1}, 2]) == [("[0].a", "1"), ("[1]", "2")]

    def test_prefix(self):
        assert flatten_json({"a": 1}, prefix="body") == [("body.a", "1")]

    def test_every_leaf_once(self):
        document = {"events": [{"eventType": "pageview", "xdm": {"identity": {"ECID": "123"}}}]}
        assert flatten_json(document) == [
            ("events[0].eventType", "pageview"),
            ("events[0].xdm.identity.ECID", "123"),
        ]

    def test_depth_truncation(self):
        pairs = flatten_json({"a": {"b": {"c": 1}}, "d": 2}, max_depth=1)
        assert pairs == [("a.b.maxDepthExceeded", TRUNCATION_VALUE), ("d", "2")]

    def test_depth_limit_inclusive(self):
        assert flatten_json({"a": {"b": 1}}, max_depth=1) == [("a.b", "1")]

    def test_depth_limit_bounds_output(self):
        document = current = {}
        for _ in range(100):
            current["next"] = {}
            current = current["next"]
        current["leaf"] = 1

        pairs = flatten_json(document, max_depth=10)
        assert len(pairs) == 1
        key, value = pairs[0]
        assert key.endswith(".maxDepthExceeded")
        assert value == TRUNCATION_VALUE

    def test_circular_reference(self):
        document = {"x": 1}
        document["self"] = document
        assert flatten_json(document) == [("x", "1"), ("self", CIRCULAR_VALUE)]

    def test_shared_reference_is_not_circular(self):
        shared = {"v": 1}
        assert flatten_json({"a": shared, "b": shared}) == [("a.v", "1"), ("b.v", "1")]

    def test_join_path(self):
        assert join_path("", "a") == "a"
        assert join_path("a", "b") == "a.b"


class TestDecodeForm:
    """Test form-encoded fallback decoding."""

    def test_pairs(self):
        assert decode_form("a=1&b=hello+world%21") == [("a", "1"), ("b", "hello world!")]

    def test_newline_separated(self):
        assert decode_form("a=1\nb=2\r\nc=3") == [("a", "1"), ("b", "2"), ("c", "3")]

    def test_blank_values_kept(self):
        assert decode_form("c.=&a=") == [("c.", ""), ("a", "")]

    def test_value_may_contain_equals(self):
        assert decode_form("a=b=c") == [("a", "b=c")]

    def test_non_pairs_dropped(self):
        assert decode_form("{{{not valid") == []
        assert decode_form("=orphan&ok=1&junk") == [("ok", "1")]


class TestBodyDecoder:
    """Test BodyDecoder functionality."""

    def setup_method(self):
        """Set up test with a default decoder."""
        self.decoder = BodyDecoder()

    def test_missing_or_blank_body(self):
        assert self.decoder.decode(None) == []
        assert self.decoder.decode("") == []
        assert self.decoder.decode("   \n") == []

    def test_json_object(self):
        assert self.decoder.decode('{"a": {"b": [1, 2]}}') == [("a.b[0]", "1"), ("a.b[1]", "2")]

    def test_json_bytes(self):
        assert self.decoder.decode(b'{"a": 1}') == [("a", "1")]

    def test_decoded_structures(self):
        assert self.decoder.decode({"a": True}) == [("a", "true")]
        assert self.decoder.decode([1]) == [("[0]", "1")]

    def test_form_fallback(self):
        assert self.decoder.decode("v=1&tid=UA-1-1") == [("v", "1"), ("tid", "UA-1-1")]

    def test_scalar_json_root_falls_back_to_form(self):
        assert self.decoder.decode('"just a string"') == []
        assert self.decoder.decode("42") == []

    def test_invalid_body_yields_nothing(self):
        assert self.decoder.decode("{{{not valid") == []

    def test_pathologically_deep_json(self):
        body = "[" * 100000 + "]" * 100000
        assert self.decoder.decode(body) == [(TRUNCATION_KEY, TRUNCATION_VALUE)]

    def test_pathologically_deep_json_object(self):
        body = '{"a":' * 100000 + "1" + "}" * 100000
        assert self.decoder.decode(body) == [(TRUNCATION_KEY, TRUNCATION_VALUE)]

    def test_configured_depth(self):
        decoder = BodyDecoder(max_depth=0)
        body = json.dumps({"a": {"b": 1}})
        assert decoder.decode(body) == [("a.maxDepthExceeded", TRUNCATION_VALUE)]

    def test_merge_into_appends(self):
        params = QueryParams([("a", "1")])
        merged = self.decoder.merge_into("b=2", params)
        assert merged is params
        assert params.items() == [("a", "1"), ("b", "2")]
