# src/granular/core/params.py
"""Parameter bags and the normalizer that scopes them to an entity or relation."""

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from fastapi.requests import HTTPConnection

from .errors import InvalidInput

_SCALARS = (str, int, float, bool, type(None))

# `key[]` (list marker) and `key[sub]` (mapping entry)
_BRACKETED = re.compile(r"^(?P<key>[^\[\]]+)\[(?P<sub>[^\[\]]*)\]$")


def is_blank(value: Any) -> bool:
    """Empty sequences and blank strings count as absent."""
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, Mapping):
        return len(value) == 0
    return False


def _clean_value(key: str, value: Any) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (list, tuple)):
        return [_clean_value(key, item) if not isinstance(item, Mapping) else dict(item) for item in value]
    if isinstance(value, Mapping):
        return dict(value)
    raise InvalidInput(f"Unsupported value for '{key}': {type(value).__name__}")


class ParameterBag(Mapping):
    """Ordered, key-unique mapping of request parameters.

    Values are scalars (str, int, float, bool, None) or lists of scalars.
    A mapping value is only meaningful for the ``sort`` key.
    """

    def __init__(self, data: Optional[Mapping] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if not isinstance(key, str):
                raise InvalidInput(f"Parameter keys must be strings, got {key!r}.")
            self._data[key] = _clean_value(key, value)

    @classmethod
    def coerce(cls, raw: Any) -> "ParameterBag":
        """Build a bag from a mapping or a request-parameter object.

        Accepts a FastAPI ``Request`` (its query string), query-param objects
        with ``multi_items()``, mappings, and adapters exposing
        ``has/get/keys/filled``.

        Raises:
            InvalidInput: for positional sequences, duplicate keys or
                non-string keys.
        """
        if isinstance(raw, ParameterBag):
            return raw
        if raw is None:
            return cls()
        # a Request is also a Mapping, over its ASGI scope
        if isinstance(raw, HTTPConnection):
            return parse_query_pairs(raw.query_params.multi_items())
        if hasattr(raw, "multi_items"):
            return parse_query_pairs(raw.multi_items())
        if isinstance(raw, Mapping):
            return cls(raw)
        if isinstance(raw, (list, tuple)):
            if not raw:
                return cls()
            raise InvalidInput("Parameters must be a key-value mapping, not a positional sequence.")
        if all(hasattr(raw, name) for name in ("has", "get", "keys", "filled")):
            return cls({key: raw.get(key) for key in raw.keys()})
        if hasattr(raw, "items"):
            return cls.from_pairs(raw.items())
        raise InvalidInput(f"Parameters must be a mapping, got {type(raw).__name__}.")

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[Any]], merge_duplicates: bool = False) -> "ParameterBag":
        """Build a bag from ``(key, value)`` pairs.

        Duplicate keys raise ``InvalidInput`` unless ``merge_duplicates`` is
        set, in which case repeated keys collect into a list (query strings).
        """
        data: Dict[str, Any] = {}
        for pair in pairs:
            if len(pair) != 2:
                raise InvalidInput("Parameter pairs must have exactly two items.")
            key, value = pair
            if key in data:
                if not merge_duplicates:
                    raise InvalidInput(f"Duplicate parameter key '{key}'.")
                current = data[key]
                data[key] = (current if isinstance(current, list) else [current]) + [value]
            else:
                data[key] = value
        return cls(data)

    # --- collaborator interface ---
    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def keys(self) -> List[str]:  # type: ignore[override]
        return list(self._data.keys())

    def filled(self, key: str) -> bool:
        """True when the key is present with a non-empty value."""
        if key not in self._data:
            return False
        value = self._data[key]
        return value is not None and value is not False and not is_blank(value)

    def only(self, *keys: str) -> bool:
        """True when the bag holds exactly the given keys."""
        return set(self._data) == set(keys)

    def without(self, keys: Iterable[str]) -> "ParameterBag":
        drop = set(keys)
        return ParameterBag({k: v for k, v in self._data.items() if k not in drop})

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ParameterBag({self._data!r})"


def parse_query_pairs(pairs: Iterable[Tuple[str, str]]) -> ParameterBag:
    """
    Fold query-string pairs into a parameter bag.

    ``tag=a&tag=b`` and ``tag[]=a&tag[]=b`` both give ``tag: ["a", "b"]``;
    ``sort[name]=desc`` gives ``sort: {"name": "desc"}``.
    """
    data: Dict[str, Any] = {}

    for raw_key, value in pairs:
        match = _BRACKETED.match(raw_key)
        if match is None:
            key = raw_key
            if key in data and not isinstance(data[key], dict):
                current = data[key]
                data[key] = (current if isinstance(current, list) else [current]) + [value]
            elif key in data:
                raise InvalidInput(f"Parameter '{key}' mixes plain and keyed values.")
            else:
                data[key] = value
            continue

        key, sub = match.group("key"), match.group("sub")
        if not sub:
            current = data.get(key)
            if isinstance(current, dict):
                raise InvalidInput(f"Parameter '{key}' mixes list and keyed values.")
            if current is None:
                data[key] = [value]
            else:
                data[key] = (current if isinstance(current, list) else [current]) + [value]
            continue

        current = data.setdefault(key, {})
        if not isinstance(current, dict):
            raise InvalidInput(f"Parameter '{key}' mixes list and keyed values.")
        if sub in current:
            raise InvalidInput(f"Duplicate parameter key '{key}[{sub}]'.")
        current[sub] = value

    return ParameterBag(data)


def search_input(raw: Any, q_alias: str = "q") -> ParameterBag:
    """Coerce the top-level search input.

    A bare string, number, boolean or ``None`` becomes a broad ``q`` search,
    and a positional list searches ``q`` over each of its items.
    """
    if isinstance(raw, (str, int, float, bool)) or raw is None:
        return ParameterBag({q_alias: raw})
    if isinstance(raw, (list, tuple)) and not isinstance(raw, ParameterBag):
        return ParameterBag({q_alias: list(raw)})
    return ParameterBag.coerce(raw)


def normalize(
    raw: Any,
    excluded_keys: Iterable[str] = (),
    prepend_key: str = "",
    ignore_q: bool = False,
    q_alias: str = "q",
) -> ParameterBag:
    """Scope a raw parameter bag to one entity or relation.

    Args:
        raw: Mapping of request parameters
        excluded_keys: Keys removed before anything else
        prepend_key: Relation namespace; only ``<prepend_key>_*`` keys are kept,
            with the prefix stripped
        ignore_q: Drop the q alias instead of passing it through
        q_alias: Name of the broad-search key

    Returns:
        The scoped ParameterBag
    """
    bag = ParameterBag.coerce(raw).without(excluded_keys)

    entries = [(k, v) for k, v in bag.items() if not is_blank(v)]

    prepend_key = prepend_key.strip()
    if not prepend_key and not ignore_q:
        return ParameterBag(dict(entries))

    prefix = f"{prepend_key}_" if prepend_key else None
    result: Dict[str, Any] = {}
    for key, value in entries:
        if prefix is None or key.startswith(prefix):
            key = key if prefix is None else key[len(prefix):]
            if ignore_q and key == q_alias:
                continue
            if key:
                result[key] = value
        elif not ignore_q and key == q_alias:
            result[key] = value
    return ParameterBag(result)
