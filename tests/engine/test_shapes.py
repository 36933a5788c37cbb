"""Tests for query shapes and index specifications."""

import pytest

from indexbench.engine.shapes import IndexSpec, QueryShape, pretty


class TestIndexSpec:
    """Test IndexSpec construction and display."""

    def test_from_mapping_keeps_field_order(self) -> None:
        """Field order is part of the index definition."""
        spec = IndexSpec.from_mapping({"price": 1, "category": -1})
        assert spec.fields == ["price", "category"]
        assert spec.to_pymongo() == [("price", 1), ("category", -1)]

    def test_from_pairs(self) -> None:
        """A list of (field, direction) pairs is accepted."""
        spec = IndexSpec.from_mapping([("category", 1), ("price", -1)])
        assert spec.as_dict() == {"category": 1, "price": -1}

    def test_special_index_types(self) -> None:
        """Text and hashed indexes are valid directions."""
        assert IndexSpec.from_mapping({"name": "text"}).as_dict() == {"name": "text"}
        assert IndexSpec.from_mapping({"sku": "hashed"}).as_dict() == {"sku": "hashed"}

    @pytest.mark.parametrize("direction", [0, 2, "up", True, None])
    def test_invalid_direction(self, direction) -> None:
        """Only 1, -1 and special index types are directions."""
        with pytest.raises(ValueError, match="Invalid direction"):
            IndexSpec.from_mapping({"price": direction})

    def test_empty_spec_rejected(self) -> None:
        """An index needs at least one field."""
        with pytest.raises(ValueError):
            IndexSpec.from_mapping({})

    def test_pretty_round_trip(self) -> None:
        """Pretty-printed text parses back to an equal spec."""
        spec = IndexSpec.from_mapping({"category": 1, "price": -1, "rating": 1})
        text = spec.pretty()
        assert text == '{\n  "category": 1,\n  "price": -1,\n  "rating": 1\n}'
        assert IndexSpec.parse(text) == spec

    def test_parse_rejects_non_object(self) -> None:
        """Only JSON objects are index specs."""
        with pytest.raises(ValueError):
            IndexSpec.parse("[1, 2]")

    def test_str(self) -> None:
        """String form is compact for log lines."""
        assert str(IndexSpec.from_mapping({"category": 1, "price": -1})) == "category: 1, price: -1"

    def test_hashable_and_frozen(self) -> None:
        """Specs are immutable values."""
        spec = IndexSpec.from_mapping({"category": 1})
        assert {spec: "x"}[IndexSpec.from_mapping({"category": 1})] == "x"
        with pytest.raises(AttributeError):
            spec.keys = ()


class TestQueryShape:
    """Test QueryShape immutability and normalization."""

    def test_build_defaults(self) -> None:
        """Missing filter and sort become an empty filter and no sort."""
        shape = QueryShape.build(None)
        assert shape.filter == {}
        assert shape.sort is None
        assert shape.limit == 100
        assert shape.sort_document() is None

    def test_filter_is_copied(self) -> None:
        """Mutating the caller's filter does not change the shape."""
        source = {"category": "Electronics", "price": {"$gte": 500}}
        shape = QueryShape.build(source)
        source["price"]["$gte"] = 0
        assert shape.filter == {"category": "Electronics", "price": {"$gte": 500}}

    def test_filter_document_is_fresh_copy(self) -> None:
        """Handed-out filters cannot alter the shape."""
        shape = QueryShape.build({"price": {"$gte": 500}})
        doc = shape.filter_document()
        doc["price"]["$gte"] = 1
        assert shape.filter_document() == {"price": {"$gte": 500}}

    def test_sort_order_preserved(self) -> None:
        """Sort keys keep their order."""
        shape = QueryShape.build({}, {"price": -1, "rating": 1})
        assert shape.sort == (("price", -1), ("rating", 1))
        assert shape.sort_document() == {"price": -1, "rating": 1}

    def test_sort_rejects_special_types(self) -> None:
        """Sort directions are 1 or -1 only."""
        with pytest.raises(ValueError):
            QueryShape.build({}, {"name": "text"})

    @pytest.mark.parametrize("limit", [0, -5])
    def test_limit_must_be_positive(self, limit) -> None:
        """A result cap below one is rejected."""
        with pytest.raises(ValueError):
            QueryShape.build({}, limit=limit)

    def test_with_limit(self) -> None:
        """with_limit keeps filter and sort."""
        shape = QueryShape.build({"category": "Books"}, {"price": 1}, limit=100)
        single = shape.with_limit(1)
        assert single.limit == 1
        assert single.filter == shape.filter
        assert single.sort == shape.sort
        assert shape.limit == 100


def test_pretty_matches_two_space_json() -> None:
    """Filters are echoed as two-space indented JSON."""
    assert pretty({"category": "Electronics"}) == '{\n  "category": "Electronics"\n}'
