"""Tests for compound and text index creation."""

import logging

import pytest
from pydantic import ValidationError

from db_query_optimizer.core import IndexBuilder
from db_query_optimizer.models import EqualWeight, WeightedFields
from db_query_optimizer.models.index import to_text_index_spec


class TestCompoundIndex:
    """IndexBuilder.create"""

    @pytest.mark.asyncio
    async def test_keeps_key_order(self, products, caplog):
        """Fields are sent in the given order and the creation is logged."""
        builder = IndexBuilder(products)

        with caplog.at_level(logging.INFO):
            name = await builder.create({"category": 1, "price": -1})

        assert name == "category_1_price_-1"
        assert products.indexes == [([("category", 1), ("price", -1)], {})]
        assert 'Created compound index on products: {"category":1,"price":-1}' in (
            caplog.text
        )

    @pytest.mark.asyncio
    async def test_pairs_and_options(self, products):
        """(field, direction) pairs and index options are passed through."""
        builder = IndexBuilder(products)

        name = await builder.create(
            [("sku", 1)], unique=True, name="sku_unique", background=True
        )

        assert name == "sku_unique"
        assert products.indexes[0] == (
            [("sku", 1)],
            {"unique": True, "name": "sku_unique", "background": True},
        )

    @pytest.mark.asyncio
    async def test_requires_fields(self, products):
        """An empty key pattern is rejected before reaching the server."""
        with pytest.raises(ValueError):
            await IndexBuilder(products).create({})
        assert products.indexes == []

    @pytest.mark.asyncio
    async def test_server_error_logged_and_raised(
        self, products, operation_failure, caplog
    ):
        """Conflicting or rejected indexes surface to the caller."""
        products.index_error = operation_failure

        with caplog.at_level(logging.ERROR):
            with pytest.raises(type(operation_failure)):
                await IndexBuilder(products).create({"price": 1})

        assert "Error creating compound index on products" in caplog.text


class TestTextIndex:
    """IndexBuilder.create_text"""

    @pytest.mark.asyncio
    async def test_equal_weights(self, products):
        """A list of fields creates a text index without weights."""
        await IndexBuilder(products).create_text(["name", "description"])

        keys, options = products.indexes[0]
        assert keys == [("name", "text"), ("description", "text")]
        assert "weights" not in options

    @pytest.mark.asyncio
    async def test_weighted_fields(self, products, caplog):
        """A weights mapping sets the weights option."""
        with caplog.at_level(logging.INFO):
            await IndexBuilder(products).create_text(
                {"name": 10, "description": 2}, default_language="english"
            )

        keys, options = products.indexes[0]
        assert keys == [("name", "text"), ("description", "text")]
        assert options == {
            "default_language": "english",
            "weights": {"name": 10, "description": 2},
        }
        assert "Created text index on products" in caplog.text

    @pytest.mark.asyncio
    async def test_explicit_spec(self, products):
        """Spec models are accepted directly."""
        await IndexBuilder(products).create_text(EqualWeight(fields=["title"]))
        assert products.indexes[0][0] == [("title", "text")]


class TestTextIndexSpec:
    """to_text_index_spec"""

    def test_list_is_equal_weight(self):
        """Field lists map to EqualWeight."""
        spec = to_text_index_spec(["a", "b"])
        assert isinstance(spec, EqualWeight)
        assert spec.key_pattern() == {"a": "text", "b": "text"}

    def test_single_field_string(self):
        """A bare string is a one-field list, not a list of characters."""
        assert to_text_index_spec("title").fields == ["title"]

    def test_mapping_is_weighted(self):
        """Mappings map to WeightedFields."""
        spec = to_text_index_spec({"a": 3})
        assert isinstance(spec, WeightedFields)
        assert spec.index_options() == {"weights": {"a": 3}}

    def test_rejects_non_positive_weight(self):
        """Weights must be at least 1."""
        with pytest.raises(ValidationError):
            WeightedFields(weights={"a": 0})

    def test_rejects_empty_field_list(self):
        """A text index needs at least one field."""
        with pytest.raises(ValidationError):
            EqualWeight(fields=[])
