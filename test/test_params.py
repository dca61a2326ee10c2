# test/test_params.py
import pytest
from starlette.datastructures import QueryParams

from granular import InvalidInput, ParameterBag, normalize
from granular.core.params import is_blank, search_input


def test_normalize_passes_through_without_prefix():
    bag = normalize({"name": "al", "q": "x", "blank": "  ", "empty": []})
    assert bag.to_dict() == {"name": "al", "q": "x"}


def test_normalize_removes_excluded_keys_first():
    bag = normalize({"name": "al", "password": "secret"}, excluded_keys=["password"])
    assert bag.keys() == ["name"]


def test_normalize_scopes_to_prefix_and_keeps_q():
    raw = {"post_title": "hello", "name": "al", "q": "john"}
    assert normalize(raw, prepend_key="post").to_dict() == {"title": "hello", "q": "john"}


def test_normalize_ignore_q_drops_alias():
    raw = {"post_title": "hello", "post_q": "x", "q": "john"}
    assert normalize(raw, prepend_key="post", ignore_q=True).to_dict() == {"title": "hello"}
    assert normalize({"q": "john", "name": "al"}, ignore_q=True).to_dict() == {"name": "al"}


def test_normalize_custom_alias():
    bag = normalize({"search": "john", "post_title": "x"}, prepend_key="post", q_alias="search")
    assert bag.to_dict() == {"title": "x", "search": "john"}


def test_normalize_drops_bare_prefix_key():
    assert normalize({"post_": "x"}, prepend_key="post").to_dict() == {}


def test_positional_sequence_is_rejected():
    with pytest.raises(InvalidInput):
        ParameterBag.coerce(["a", "b"])


def test_empty_sequence_is_an_empty_bag():
    assert len(ParameterBag.coerce([])) == 0


def test_non_string_keys_are_rejected():
    with pytest.raises(InvalidInput):
        ParameterBag({1: "a"})


def test_duplicate_pairs():
    with pytest.raises(InvalidInput):
        ParameterBag.from_pairs([("a", "1"), ("a", "2")])
    bag = ParameterBag.from_pairs([("a", "1"), ("a", "2"), ("b", "3")], merge_duplicates=True)
    assert bag.to_dict() == {"a": ["1", "2"], "b": "3"}


def test_query_params_collect_repeated_keys():
    bag = ParameterBag.coerce(QueryParams("tag=a&tag=b&name=al"))
    assert bag.get("tag") == ["a", "b"]
    assert bag.get("name") == "al"


def test_filled_and_only():
    bag = ParameterBag({"q": "john", "flag": False, "none": None})
    assert bag.filled("q")
    assert not bag.filled("flag")
    assert not bag.filled("none")
    assert not bag.filled("missing")
    assert ParameterBag({"q": "x"}).only("q")
    assert not bag.only("q")


def test_unsupported_values_are_rejected():
    with pytest.raises(InvalidInput):
        ParameterBag({"a": object()})


def test_search_input_shorthand():
    assert search_input("john").to_dict() == {"q": "john"}
    assert search_input(["a", "b"]).to_dict() == {"q": ["a", "b"]}
    assert search_input({"name": "al"}).to_dict() == {"name": "al"}


@pytest.mark.parametrize("value, expected", [("", True), ("  ", True), ([], True), ({}, True), (0, False), (None, False)])
def test_is_blank(value, expected):
    assert is_blank(value) is expected


class DictAdapter:
    """Parameter source exposing only has/get/keys/filled."""

    def __init__(self, data):
        self._data = data

    def has(self, key):
        return key in self._data

    def get(self, key, default=None):
        return self._data.get(key, default)

    def keys(self):
        return list(self._data)

    def filled(self, key):
        return bool(self._data.get(key))


def test_coerce_reads_parameter_adapters():
    bag = ParameterBag.coerce(DictAdapter({"name": "al", "tag": ["a", "b"]}))
    assert bag.to_dict() == {"name": "al", "tag": ["a", "b"]}
    assert normalize(DictAdapter({"post_title": "x", "name": "al"}), prepend_key="post").to_dict() == {"title": "x"}


def test_coerce_parses_bracketed_query_keys():
    bag = ParameterBag.coerce(QueryParams("age[]=30&age[]=41&sort[name]=desc"))
    assert bag.get("age") == ["30", "41"]
    assert bag.get("sort") == {"name": "desc"}


def test_compile_accepts_parameter_adapters(compiler):
    compiled = compiler.compile("User", DictAdapter({"name": "al"}))
    assert compiled.predicate.render() == "name LIKE '%a%l%'"
