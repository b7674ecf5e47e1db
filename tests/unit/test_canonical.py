"""Unit tests for the canonical signing string."""

from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal

import pytest

from gateway_server.transport.canonical import (
    CanonicalFormat,
    canonical_string,
    canonicalize,
    canonicalize_flat,
)
from gateway_server.transport.errors import CanonicalizationError, ErrorKind


class TestCanonicalize:
    """Test the default JSON-nested canonical form."""

    def test_flat_payload_sorted_by_key(self):
        """Test that top-level keys are joined in sorted order."""
        payload = {"reference": "CUST001", "amount": 1000, "customerName": "John Doe"}
        assert canonicalize(payload) == "amount=1000&customerName=John Doe&reference=CUST001"

    def test_signature_field_excluded(self):
        """Test that the signature key is never part of the signed string."""
        payload = {"b": "2", "signature": "abc", "a": "1"}
        assert canonicalize(payload) == "a=1&b=2"

    def test_null_and_empty_values_skipped(self):
        """Test that None and empty strings leave no segment."""
        assert canonicalize({"a": 1, "b": None, "c": ""}) == "a=1"

    def test_zero_and_false_are_kept(self):
        """Test that falsy but meaningful values still render."""
        assert canonicalize({"a": 0, "b": False, "c": "0"}) == "a=0&b=false&c=0"

    def test_booleans_render_as_words(self):
        """Test boolean rendering."""
        assert canonicalize({"x": True, "y": False}) == "x=true&y=false"

    def test_nested_object_keeps_insertion_order(self):
        """Test that nested objects are not re-sorted."""
        payload = {"meta": {"z": 1, "a": 2}}
        assert canonicalize(payload) == 'meta={"z":1,"a":2}'

    def test_nested_rendered_between_sorted_keys(self):
        """Test that a nested value takes its sorted place among scalars."""
        payload = {"reference": "REF1", "nested": {"z": 1, "a": 2}}
        assert canonicalize(payload) == 'nested={"z":1,"a":2}&reference=REF1'

    def test_top_level_insertion_order_irrelevant(self):
        """Test that dict insertion order does not change the result."""
        assert canonicalize({"b": "1", "a": "2"}) == canonicalize({"a": "2", "b": "1"})

    def test_nested_json_is_not_escaped(self):
        """Test that slashes and non-ASCII characters stay literal."""
        payload = {"address": {"url": "https://x.pk/a", "city": "Lahore"}, "name": "Zoë"}
        assert canonicalize(payload) == (
            'address={"url":"https://x.pk/a","city":"Lahore"}&name=Zoë'
        )

    def test_nested_list_and_empty_containers(self):
        """Test that lists keep nulls and empty containers still render."""
        payload = {"items": [1, "two", None], "empty": {}, "none": []}
        assert canonicalize(payload) == 'empty={}&items=[1,"two",null]&none=[]'

    def test_line_separators_escaped_in_nested_json(self):
        """Test that U+2028 is escaped inside nested JSON."""
        payload = {"note": {"text": "a\u2028b"}}
        assert canonicalize(payload) == 'note={"text":"a\\u2028b"}'

    def test_decimal_rendered_as_written(self):
        """Test that Decimal values keep their exact digits."""
        payload = {"amount": Decimal("10.50"), "fee": {"value": Decimal("0.10")}}
        assert canonicalize(payload) == 'amount=10.50&fee={"value":0.10}'

    def test_top_level_keys_sorted_by_code_point(self):
        """Test that sorting is by code point, not case-insensitive."""
        payload = {"b": 1, "B": 2, "a": 3, "_": 4}
        assert canonicalize(payload) == "B=2&_=4&a=3&b=1"

    def test_mapping_subclass_accepted(self):
        """Test that any Mapping is accepted as a payload."""
        payload = OrderedDict([("b", "2"), ("a", "1")])
        assert canonicalize(payload) == "a=1&b=2"

    def test_top_level_list_uses_indices(self):
        """Test that a top-level list is keyed by index."""
        assert canonicalize(["x", None, "z"]) == "0=x&2=z"

    def test_empty_payload(self):
        """Test that an empty payload gives an empty string."""
        assert canonicalize({}) == ""

    def test_scalar_payload_rejected(self):
        """Test that a scalar payload raises a canonicalization error."""
        with pytest.raises(CanonicalizationError) as exc_info:
            canonicalize("amount=10")
        assert exc_info.value.kind is ErrorKind.CANONICALIZATION

    def test_non_finite_float_rejected(self):
        """Test that NaN at the top level cannot be signed."""
        with pytest.raises(CanonicalizationError):
            canonicalize({"amount": float("nan")})

    @pytest.mark.parametrize(
        "payload",
        [
            {"meta": {"amount": float("nan")}},
            {"meta": {"limits": [1.5, float("inf")]}},
            {"items": [{"fee": float("-inf")}]},
        ],
    )
    def test_nested_non_finite_float_rejected(self, payload):
        """Test that non-finite numbers inside nested values are not signed as null."""
        with pytest.raises(CanonicalizationError):
            canonicalize(payload)

    def test_unserializable_nested_value_rejected(self):
        """Test that arbitrary objects inside nested values are rejected."""
        with pytest.raises(CanonicalizationError):
            canonicalize({"meta": {"when": object()}})

    def test_circular_reference_rejected(self):
        """Test that a self-referencing structure is rejected."""
        loop: dict = {}
        loop["self"] = loop
        with pytest.raises(CanonicalizationError):
            canonicalize({"loop": loop})

    def test_deterministic(self):
        """Test that equal payloads give equal strings."""
        payload = {"b": [1, {"y": 2, "x": 1}], "a": "é"}
        assert canonicalize(payload) == canonicalize(dict(payload))


class TestCanonicalizeFlat:
    """Test the dot-flattened canonical form."""

    def test_nested_keys_flattened_with_dots(self):
        """Test that nested keys become dotted paths."""
        payload = {"request": {"reference": "R1", "amount": 10}, "z": "last"}
        assert canonicalize_flat(payload) == "request.amount=10&request.reference=R1&z=last"

    def test_list_items_use_indices(self):
        """Test that list items are keyed by index."""
        assert canonicalize_flat({"items": ["a", "b"]}) == "items.0=a&items.1=b"

    def test_booleans_follow_string_casting(self):
        """Test that True renders as 1 and False as empty."""
        assert canonicalize_flat({"on": True, "off": False}) == "off=&on=1"

    def test_empty_container_rendered_as_brackets(self):
        """Test that an empty container renders as []."""
        assert canonicalize_flat({"meta": {}, "a": "1"}) == "a=1&meta=[]"

    def test_nulls_dropped_after_flattening(self):
        """Test that nested None values are dropped."""
        assert canonicalize_flat({"a": {"b": None, "c": "x"}}) == "a.c=x"

    def test_nested_non_finite_float_rejected(self):
        """Test that flattened NaN values are rejected."""
        with pytest.raises(CanonicalizationError):
            canonicalize_flat({"a": {"b": float("nan")}})


class TestCanonicalString:
    """Test canonical format selection."""

    def test_defaults_to_json_format(self):
        """Test that JSON is the default format."""
        payload = {"meta": {"k": "v"}}
        assert canonical_string(payload) == canonicalize(payload)

    def test_flat_format_selected_by_name(self):
        """Test that the flat format can be chosen by string or enum."""
        payload = {"meta": {"k": "v"}}
        assert canonical_string(payload, "flat") == "meta.k=v"
        assert canonical_string(payload, CanonicalFormat.FLAT) == "meta.k=v"

    def test_unknown_format_rejected(self):
        """Test that an unknown format name is rejected."""
        with pytest.raises(CanonicalizationError):
            canonical_string({"a": 1}, "xml")
