"""
Unit tests for QueryBuilder.

Tests cover:
- Immutability of chained builders
- Filter, sort, limit and projection pipeline
- single() semantics
- Error results for unsortable columns
"""

import pytest

from studystore.client import CollectionRef
from studystore.errors import NoRowsFoundError, QueryError
from studystore.query import Eq, IdGenerator, MutationEngine, OrderBy
from studystore.query.builder import parse_columns


@pytest.fixture
def engine(store):
    store.write_collection(
        "items",
        [
            {"id": "a", "n": 1, "tag": "x"},
            {"id": "b", "n": 2, "tag": "y"},
            {"id": "c", "n": 1, "tag": "y"},
            {"id": "d", "tag": "x"},
        ],
    )
    return MutationEngine(store, IdGenerator())


@pytest.fixture
def items(engine):
    return CollectionRef(engine, "items")


def ids(result):
    return [r["id"] for r in result.data]


class TestImmutability:
    """Chain methods return new builders."""

    def test_branching_does_not_leak_filters(self, items):
        base = items.select()
        narrowed = base.eq("tag", "x")

        assert base.filters == ()
        assert narrowed.filters == (Eq("tag", "x"),)
        assert narrowed is not base

    def test_order_replaces_previous(self, items):
        query = items.select().order("n").order("id", ascending=False)
        assert query.order_by == OrderBy("id", False)

    def test_builder_is_frozen(self, items):
        with pytest.raises(AttributeError):
            items.select().limit_count = 3


class TestSelect:
    """Tests for the select pipeline."""

    @pytest.mark.asyncio
    async def test_select_all(self, items):
        result = await items.select()
        assert result.error is None
        assert ids(result) == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_execute_matches_await(self, items):
        query = items.select().eq("tag", "y")
        assert (await query.execute()).data == (await query).data

    @pytest.mark.asyncio
    async def test_eq_and_in(self, items):
        assert ids(await items.select().eq("tag", "y")) == ["b", "c"]
        assert ids(await items.select().in_("id", ["a", "d"])) == ["a", "d"]

    @pytest.mark.asyncio
    async def test_range(self, items):
        assert ids(await items.select().gte("n", 2)) == ["b"]
        assert ids(await items.select().lte("n", 1)) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_sort_ascending_is_stable_and_puts_missing_last(self, items):
        assert ids(await items.select().order("n")) == ["a", "c", "b", "d"]

    @pytest.mark.asyncio
    async def test_sort_descending_is_stable_and_puts_missing_first(self, items):
        assert ids(await items.select().order("n", ascending=False)) == ["d", "b", "a", "c"]

    @pytest.mark.asyncio
    async def test_limit_after_sort(self, items):
        result = await items.select().order("n", ascending=False).limit(2)
        assert ids(result) == ["d", "b"]

    @pytest.mark.asyncio
    async def test_limit_zero_returns_nothing(self, items):
        assert (await items.select().limit(0)).data == []

    def test_negative_limit_raises(self, items):
        with pytest.raises(ValueError):
            items.select().limit(-1)

    @pytest.mark.asyncio
    async def test_projection(self, items):
        result = await items.select("id, n").eq("id", "d")
        assert result.data == [{"id": "d", "n": None}]

    @pytest.mark.asyncio
    async def test_results_are_copies(self, items, store):
        result = await items.select()
        result.data[0]["n"] = 99
        assert store.read_collection("items")[0]["n"] == 1

    @pytest.mark.asyncio
    async def test_unsortable_column_returns_error(self, store, engine):
        store.write_collection("mixed", [{"id": "1", "v": 1}, {"id": "2", "v": "x"}])
        result = await CollectionRef(engine, "mixed").select().order("v")
        assert isinstance(result.error, QueryError)
        assert result.data is None

    @pytest.mark.asyncio
    async def test_unknown_collection_is_empty(self, engine):
        result = await CollectionRef(engine, "nothing").select()
        assert result.data == []
        assert result.ok


class TestSingle:
    """Tests for single()."""

    @pytest.mark.asyncio
    async def test_first_row_under_ordering(self, items):
        result = await items.select().order("id", ascending=False).single()
        assert result.data["id"] == "d"

    @pytest.mark.asyncio
    async def test_many_rows_returns_first(self, items):
        result = await items.select().eq("tag", "y").single()
        assert result.data["id"] == "b"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_no_rows(self, items):
        result = await items.select().eq("id", "zzz").single()
        assert result.data is None
        assert isinstance(result.error, NoRowsFoundError)
        assert result.error.code == "PGRST116"
        assert result.error.message == "No rows found"


class TestParseColumns:
    """Tests for projection parsing."""

    def test_star(self):
        assert parse_columns("*") is None
        assert parse_columns(None) is None

    def test_list(self):
        assert parse_columns(" id ,email,") == ["id", "email"]
