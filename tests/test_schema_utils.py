"""
Tests for schema discovery.
"""

import logging

import pytest

from json_widgets.accessors import resolve
from json_widgets.models import FieldDescriptor
from json_widgets.schema_utils import find_array_paths, flatten
from json_widgets.values import UNDEFINED


class TestFlatten:
    """Test flatten()."""

    def test_empty_object(self):
        assert flatten({}) == []

    def test_none_and_undefined(self):
        assert flatten(None) == []
        assert flatten(UNDEFINED) == []

    def test_objects_are_transparent(self):
        assert [f.path for f in flatten({"a": 1, "b": {"c": 2}})] == ["a", "b.c"]

    def test_array_sampled_by_first_element(self):
        result = flatten({"items": [{"x": 1}, {"x": 2, "y": 3}]})
        assert result == [
            FieldDescriptor("items", "array", {"x": 1}),
            FieldDescriptor("items[0].x", "number", 1),
        ]

    def test_empty_array(self):
        assert flatten({"items": []}) == [FieldDescriptor("items", "array", None)]

    def test_scalar_array_not_descended(self):
        assert flatten({"tags": ["a", "b"]}) == [FieldDescriptor("tags", "array", "a")]

    def test_types(self, ticker_document):
        types = {f.path: f.type for f in flatten(ticker_document)}
        assert types == {
            "name": "string",
            "price": "number",
            "volume": "string",
            "active": "boolean",
            "note": "null",
        }

    def test_empty_key_skipped(self):
        document = {"": {"b": 1}, "a": {"": 2, "c": 3}}
        result = flatten(document)
        assert [f.path for f in result] == ["a.c"]
        assert all(resolve(document, f.path) == f.sample_value for f in result)

    def test_root_array(self):
        assert [f.path for f in flatten([{"id": 1, "tags": []}])] == ["[0].id", "[0].tags"]

    def test_order_is_traversal_order(self, nested_document):
        assert [f.path for f in flatten(nested_document)] == [
            "status",
            "meta.count",
            "meta.source.name",
            "data",
            "data[0].symbol",
            "data[0].price",
            "data[0].change",
        ]

    def test_deterministic(self, nested_document):
        assert flatten(nested_document) == flatten(nested_document)

    def test_every_path_resolves(self, nested_document):
        document = dict(nested_document, **{"gpt-3.5": {"a[1]": [[1, 2]]}})
        for field in flatten(document):
            assert resolve(document, field.path) is not UNDEFINED

    def test_self_reference_rejected(self):
        document = {"a": {}}
        document["a"]["self"] = document
        with pytest.raises(ValueError):
            flatten(document)

    def test_shared_reference_allowed(self):
        shared = {"v": 1}
        assert [f.path for f in flatten({"a": shared, "b": shared})] == ["a.v", "b.v"]

    def test_depth_limit(self, caplog):
        document = {"leaf": 1}
        for _ in range(10):
            document = {"n": document}
        with caplog.at_level(logging.WARNING):
            assert flatten(document, max_depth=3) == []
        assert "nesting exceeds 3 levels" in caplog.text

    def test_deep_document_without_recursion_error(self):
        document = {"leaf": 1}
        for _ in range(2000):
            document = {"n": document}
        assert flatten(document, max_depth=10000)[0].path.endswith("n.leaf")


class TestFindArrayPaths:
    """Test find_array_paths()."""

    def test_nested_arrays(self, nested_document):
        assert find_array_paths(nested_document) == ["data"]

    def test_root_array(self):
        assert find_array_paths([{"rows": [1]}]) == ["", "[0].rows"]
