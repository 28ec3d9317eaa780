"""
GatewayMap: a string-keyed map addressed with dot-separated paths.

    payload = GatewayMap()
    payload.set("order.amount", "10.00").set("order.currency", "USD")
    payload["sourceOfFunds.type"] = "CARD"

    payload.get("order.currency")      # "USD"
    "order.description" in payload     # False
    payload.to_json()                  # '{"order":{"amount":"10.00",...}}'

Writes create intermediate maps as needed. Reads that miss at any segment
behave like a missing dict key: ``m[path]`` raises KeyError, ``m.get(path)``
returns the default. A stored None is a present JSON null.
"""

import json
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import MapParseError, TypeMismatchError, ValidationError

PATH_SEPARATOR = "."

_MISSING = object()


def _split_path(path: Any) -> List[str]:
    if not isinstance(path, str) or not path:
        raise ValidationError(f"Map path must be a non-empty string, got {path!r}")
    keys = path.split(PATH_SEPARATOR)
    if any(not key for key in keys):
        raise ValidationError(f"Map path contains an empty segment: {path!r}")
    return keys


def _normalize(value: Any) -> Any:
    # nested containers are copied so no two maps share mutable state
    if isinstance(value, GatewayMap):
        return value.copy()
    if isinstance(value, Mapping):
        return GatewayMap(value)
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def _from_raw(value: Any) -> Any:
    # JSON keys are kept verbatim, even when they contain dots
    if isinstance(value, dict):
        result = GatewayMap()
        for key, item in value.items():
            result._data[key] = _from_raw(item)
        return result
    if isinstance(value, list):
        return [_from_raw(item) for item in value]
    return value


def _to_plain(value: Any) -> Any:
    if isinstance(value, GatewayMap):
        return {key: _to_plain(item) for key, item in value._data.items()}
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    return value


class GatewayMap(MutableMapping):
    """Nested JSON-like map with dot-path access.

    Mapping keys are paths, JSON keys are not: ``GatewayMap({"a.b": 1})``
    nests ``b`` under ``a``, while ``GatewayMap('{"a.b": 1}')`` keeps the
    literal key ``"a.b"``. A map holding dotted keys therefore survives
    ``from_json(m.to_json())`` and ``m.copy()`` unchanged, but not
    ``GatewayMap(m.to_dict())``.

    Args:
        source: an existing mapping (keys are treated as paths), a JSON
            object string, or None for an empty map.
    """

    def __init__(self, source: Union[Mapping, str, None] = None):
        self._data: Dict[str, Any] = {}

        if source is None:
            return
        if isinstance(source, str):
            self._data = GatewayMap.from_json(source)._data
        elif isinstance(source, GatewayMap):
            self._data = source.copy()._data
        elif isinstance(source, Mapping):
            for key, value in source.items():
                self.set(key, value)
        else:
            raise ValidationError(f"Cannot build a GatewayMap from {type(source).__name__}")

    # ---- path access ----

    def set(self, path: str, value: Any) -> "GatewayMap":
        """Set the value at ``path``, creating intermediate maps. Returns self."""
        keys = _split_path(path)
        node = self
        for key in keys[:-1]:
            child = node._data.get(key, _MISSING)
            if child is _MISSING:
                child = GatewayMap()
                node._data[key] = child
            elif not isinstance(child, GatewayMap):
                raise TypeMismatchError(
                    f"Cannot set {path!r}: value at {key!r} is a {type(child).__name__}, not a map"
                )
            node = child

        node._data[keys[-1]] = _normalize(value)
        return self

    def _parent(self, path: str) -> Tuple[Optional["GatewayMap"], str]:
        keys = _split_path(path)
        node = self
        for key in keys[:-1]:
            child = node._data.get(key, _MISSING)
            if not isinstance(child, GatewayMap):
                return None, keys[-1]
            node = child
        return node, keys[-1]

    def __getitem__(self, path: str) -> Any:
        node, key = self._parent(path)
        if node is None or key not in node._data:
            raise KeyError(path)
        return node._data[key]

    def __setitem__(self, path: str, value: Any) -> None:
        self.set(path, value)

    def __delitem__(self, path: str) -> None:
        node, key = self._parent(path)
        if node is None or key not in node._data:
            raise KeyError(path)
        del node._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # top-level views read the raw keys, which may contain dots
    def items(self):
        return self._data.items()

    def values(self):
        return self._data.values()

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, GatewayMap):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other.items())
        return NotImplemented

    def contains_key(self, path: str) -> bool:
        return path in self

    def remove(self, path: str, default: Any = None) -> Any:
        """Remove the value at ``path`` and return it, or ``default`` if absent."""
        return self.pop(path, default)

    # ---- conversion ----

    def copy(self) -> "GatewayMap":
        return _from_raw(_to_plain(self))

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, data: Optional[str]) -> "GatewayMap":
        """Parse a JSON object string.

        None and empty (or blank) strings produce an empty map, since gateway
        responses may have no body.
        """
        if data is None or not data.strip():
            return cls()

        try:
            parsed = json.loads(data)
        except ValueError as e:
            raise MapParseError(f"Invalid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise MapParseError(f"Expected a JSON object, got {type(parsed).__name__}")

        return _from_raw(parsed)

    def __repr__(self) -> str:
        return f"GatewayMap({self.to_dict()!r})"
