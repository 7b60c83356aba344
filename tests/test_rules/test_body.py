"""Tests for routesync.rules.body -- nested example bodies."""

from __future__ import annotations

from routesync.models import FieldDescriptor
from routesync.rules.body import listify, normalize_segment, set_path, synthesize
from routesync.rules.interpreter import interpret_rules, normalize_rules


def _fields(raw: dict) -> dict[str, FieldDescriptor]:
    return interpret_rules(normalize_rules(raw))


class TestNormalizeSegment:
    def test_wildcard(self) -> None:
        assert normalize_segment("*") == "0"

    def test_numeric(self) -> None:
        assert normalize_segment("3") == "0"
        assert normalize_segment("1.5") == "0"

    def test_name_is_kept(self) -> None:
        assert normalize_segment("sku") == "sku"
        assert normalize_segment("v2") == "v2"


class TestSetPath:
    def test_creates_nested_objects(self) -> None:
        tree: dict = {}
        set_path(tree, "address.city", "Paris")
        assert tree == {"address": {"city": "Paris"}}

    def test_wildcard_and_index_collapse(self) -> None:
        tree: dict = {}
        set_path(tree, "items.*.sku", "A")
        set_path(tree, "items.1.qty", 2)
        assert tree == {"items": {"0": {"sku": "A", "qty": 2}}}

    def test_scalar_intermediate_is_replaced(self) -> None:
        tree: dict = {"address": ""}
        set_path(tree, "address.city", "Paris")
        assert tree == {"address": {"city": "Paris"}}

    def test_leaf_does_not_clobber_object(self) -> None:
        tree: dict = {}
        set_path(tree, "items.*.sku", "A")
        set_path(tree, "items", [])
        assert tree == {"items": {"0": {"sku": "A"}}}

    def test_list_intermediate_is_rekeyed(self) -> None:
        tree: dict = {"tags": ["x"]}
        set_path(tree, "tags.*.label", "y")
        assert tree == {"tags": {"0": {"label": "y"}}}


class TestSynthesize:
    def test_email_and_age(self) -> None:
        fields = _fields({"email": "required|email", "age": ["integer", "min:18"]})
        assert synthesize(fields) == {"email": "user@example.com", "age": 18}

    def test_required_only_drops_optional_fields(self) -> None:
        fields = _fields({"email": "required|email", "age": ["integer", "min:18"]})
        assert synthesize(fields, required_only=True) == {"email": "user@example.com"}

    def test_array_paths_use_zero_key(self) -> None:
        fields = _fields({"items.*.sku": "required|string", "items.*.qty": "integer"})
        assert synthesize(fields) == {"items": {"0": {"sku": "", "qty": 1}}}

    def test_parent_declared_after_children(self) -> None:
        fields = _fields({"items.*.sku": "required", "items": "required|array"})
        assert synthesize(fields) == {"items": {"0": {"sku": ""}}}

    def test_empty_fields(self) -> None:
        assert synthesize({}) == {}

    def test_null_leaves_without_examples(self) -> None:
        fields = interpret_rules(
            normalize_rules({"email": "required|email", "tags.*": "string"}),
            generate_examples=False,
        )
        assert synthesize(fields) == {"email": None, "tags": {"0": None}}

    def test_input_fields_are_not_mutated(self) -> None:
        fields = _fields({"email": "email"})
        synthesize(fields)
        assert fields["email"].example == "user@example.com"


class TestListify:
    def test_index_keyed_object_becomes_list(self) -> None:
        assert listify({"items": {"0": {"sku": ""}}}) == {"items": [{"sku": ""}]}

    def test_regular_object_is_kept(self) -> None:
        assert listify({"a": {"b": 1}}) == {"a": {"b": 1}}

    def test_empty_object_stays_object(self) -> None:
        assert listify({}) == {}

    def test_nested_lists(self) -> None:
        assert listify({"m": {"0": {"0": 1}}}) == {"m": [[1]]}
