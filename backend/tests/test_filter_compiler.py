"""
Tests for the filter compiler (services/filter_compiler.py).

Name resolution and option building are checked directly; operator semantics
are checked by running the compiled clauses against SQLite.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from db_models import Order, Product
from services.filter_compiler import (
    compile_filter, compile_populate, compile_select, compile_sort,
    resolve_column, resolve_relationship, to_camel, to_snake,
)


async def _names(session_factory, conditions, sort=None):
    stmt = select(Product).where(*compile_filter(Product, conditions)).order_by(
        *compile_sort(Product, sort or {"price": 1})
    )
    async with session_factory() as session:
        res = await session.execute(stmt)
        return [p.name for p in res.scalars().all()]


class TestNameResolution:

    @pytest.mark.unit
    def test_case_conversion(self):
        assert to_snake("averageRating") == "average_rating"
        assert to_camel("payment_method_id") == "paymentMethodId"

    @pytest.mark.unit
    def test_resolve_column(self):
        assert resolve_column(Product, "averageRating") is Product.average_rating
        assert resolve_column(Product, "_id") is Product.id
        assert resolve_column(Order, "user") is Order.user_id
        assert resolve_column(Order, "paymentMethod") is Order.payment_method_id
        assert resolve_column(Product, "colour") is None

    @pytest.mark.unit
    def test_resolve_relationship(self):
        assert resolve_relationship(Order, "paymentMethod") is Order.payment_method
        assert resolve_relationship(Order, "items") is None

    @pytest.mark.unit
    def test_unknown_field_dropped(self):
        assert compile_filter(Product, {"colour": "red"}) == []

    @pytest.mark.unit
    def test_sort_appends_primary_key(self):
        clauses = compile_sort(Product, {"price": -1, "bogus": 1})
        assert len(clauses) == 2
        assert "products.id" in str(clauses[-1])

    @pytest.mark.unit
    def test_empty_select_has_no_option(self):
        assert compile_select(Product, "") == []
        assert len(compile_select(Product, "name price")) == 1

    @pytest.mark.unit
    def test_populate_paths(self):
        assert len(compile_populate(Order, "user paymentMethod")) == 2
        assert compile_populate(Order, "nothing") == []
        assert len(compile_populate(Product, "category.parent")) == 1


class TestOperators:

    @pytest.fixture
    async def catalogue(self, make_product):
        await make_product(name="Cheap Tee", price=50, brand="Acme")
        await make_product(name="Mid Hoodie", price=300, brand="acme", is_featured=True)
        await make_product(name="Dear Jacket", price=900, brand="Zed")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_range(self, session_factory, catalogue):
        assert await _names(session_factory, {"price": {"$gte": 100, "$lte": 500}}) == ["Mid Hoodie"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_in_and_nin(self, session_factory, catalogue):
        assert await _names(session_factory, {"brand": {"$in": ["Zed", "acme"]}}) == ["Mid Hoodie", "Dear Jacket"]
        assert await _names(session_factory, {"brand": {"$nin": ["Zed"]}}) == ["Cheap Tee", "Mid Hoodie"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_regex_case_insensitive(self, session_factory, catalogue):
        assert await _names(session_factory, {"brand": {"$regex": "ACME", "$options": "i"}}) == ["Cheap Tee", "Mid Hoodie"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_equality_coerces_strings(self, session_factory, catalogue):
        assert await _names(session_factory, {"isFeatured": "true"}) == ["Mid Hoodie"]
        assert await _names(session_factory, {"price": "900"}) == ["Dear Jacket"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_or(self, session_factory, catalogue):
        conditions = {"$or": [{"name": {"$regex": "tee", "$options": "i"}}, {"price": {"$gt": 800}}]}
        assert await _names(session_factory, conditions) == ["Cheap Tee", "Dear Jacket"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_or_with_no_resolvable_branch_matches_nothing(self, session_factory, catalogue):
        assert await _names(session_factory, {"$or": [{"colour": "red"}]}) == []

    @pytest.mark.unit
    def test_malformed_logical_operators_skipped(self):
        assert compile_filter(Product, {"$or": "x"}) == []
        assert compile_filter(Product, {"$and": "ab"}) == []
        assert len(compile_filter(Product, {"$or": ["x", {"brand": "Zed"}]})) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_aware_datetime_compared_as_utc(self, session_factory, catalogue):
        future = datetime(2999, 1, 1, tzinfo=timezone.utc)
        assert await _names(session_factory, {"createdAt": {"$lte": future}}) == [
            "Cheap Tee", "Mid Hoodie", "Dear Jacket",
        ]
        assert await _names(session_factory, {"createdAt": {"$gte": future}}) == []
