# test/test_sorting.py
from granular.core.models.predicates import SortKey
from granular.core.params import ParameterBag
from granular.core.query.sorting import resolve_sort

COLUMNS = ["id", "name", "age", "created_at"]


def sort_of(raw, nulls_first=False):
    return [(key.column, key.descending) for key in resolve_sort(ParameterBag(raw), COLUMNS, nulls_first)]


def test_sort_by_keeps_requested_order():
    assert sort_of({"sortBy": ["name", "age"]}) == [("name", False), ("age", False)]


def test_unknown_columns_are_dropped():
    assert sort_of({"sortBy": ["name", "zodiac"]}) == [("name", False)]


def test_sort_by_desc_accepts_a_single_column():
    assert sort_of({"sortByDesc": "created_at"}) == [("created_at", True)]


def test_sort_mapping_reads_in_insertion_order():
    assert sort_of({"sort": {"age": "DESC", "name": " asc "}}) == [("age", True), ("name", False)]


def test_sort_entries_mix_shapes():
    raw = {"sort": ["id", {"name": "desc"}, ["age", "asc"], ["bad"], {"age": "sideways"}]}
    assert sort_of(raw) == [("id", False), ("name", True), ("age", False)]


def test_direction_must_match_fully():
    assert sort_of({"sort": {"name": "descending"}}) == []


def test_sort_wins_over_sort_by():
    assert sort_of({"sort": "age", "sortBy": "name", "sortByDesc": "id"}) == [("age", False)]


def test_blank_sort_falls_through():
    assert sort_of({"sort": [], "sortByDesc": "id"}) == [("id", True)]


def test_nulls_first_is_carried_on_each_key():
    keys = resolve_sort(ParameterBag({"sortBy": ["name", "age"]}), COLUMNS, nulls_first=True)
    assert keys == [SortKey(column="name", nulls_first=True), SortKey(column="age", nulls_first=True)]


def test_no_sort_keys():
    assert sort_of({"name": "al"}) == []
