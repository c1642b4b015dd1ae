"""
Ordered multi-valued collections for request data.

Query strings, form bodies, cookies and headers are not mappings: the same
name can legitimately appear more than once, and the order matters. This
module provides:
- NameValueCollection: an ordered multi-map that keeps duplicate names
- NameValuePair: the wire shape of a single entry
- to_pairs / from_pairs: conversion to and from the JSON list form
"""

from typing import Any, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel


class NameValuePair(BaseModel):
    """Single name/value entry of a multi-valued collection."""

    name: Optional[str] = None
    value: Optional[str] = None


class NameValueCollection:
    """
    Ordered collection of name/value pairs that permits repeated names.

    Lookups return the first value for a name; ``get_all`` returns every
    value in insertion order.
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[Optional[str], Optional[str]]]] = None):
        """
        Initialize the collection.

        Args:
            pairs: Optional iterable of (name, value) tuples to add in order
        """
        self._items: List[Tuple[Optional[str], Optional[str]]] = []
        if pairs is not None:
            for name, value in pairs:
                self.add(name, value)

    def add(self, name: Optional[str], value: Optional[str]) -> None:
        """Append a value, keeping any existing values for the same name."""
        self._items.append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the first value recorded for a name.

        Args:
            name: Name to look up
            default: Value returned when the name is absent

        Returns:
            First value for the name, or default
        """
        for item_name, value in self._items:
            if item_name == name:
                return value
        return default

    def get_all(self, name: str) -> List[Optional[str]]:
        """Get every value recorded for a name, in insertion order."""
        return [value for item_name, value in self._items if item_name == name]

    def names(self) -> List[Optional[str]]:
        """Distinct names in first-seen order."""
        seen: List[Optional[str]] = []
        for name, _ in self._items:
            if name not in seen:
                seen.append(name)
        return seen

    def copy(self) -> "NameValueCollection":
        return NameValueCollection(self._items)

    def __getitem__(self, name: str) -> Optional[str]:
        for item_name, value in self._items:
            if item_name == name:
                return value
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(item_name == name for item_name, _ in self._items)

    def __iter__(self) -> Iterator[Tuple[Optional[str], Optional[str]]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameValueCollection):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"NameValueCollection({self._items!r})"


def to_pairs(collection: Optional[NameValueCollection]) -> Optional[List[NameValuePair]]:
    """
    Convert a collection to its serializable pair list.

    Args:
        collection: Collection to convert, may be None

    Returns:
        List of NameValuePair in collection order, or None when the
        collection is absent (absence is distinct from empty)
    """
    if collection is None:
        return None
    return [NameValuePair(name=name, value=value) for name, value in collection]


def from_pairs(pairs: Optional[Iterable[Any]]) -> Optional[NameValueCollection]:
    """
    Build a collection from a pair list.

    Accepts NameValuePair models, ``{"name": ..., "value": ...}`` dicts and
    2-tuples, so both parsed JSON and in-memory pairs can be used.

    Args:
        pairs: Iterable of pairs, may be None

    Returns:
        NameValueCollection in the same order, or None when pairs is None

    Raises:
        TypeError: If an item is not a recognized pair shape, or a name or
            value is neither a string nor None
    """
    if pairs is None:
        return None

    result = NameValueCollection()
    for pair in pairs:
        if isinstance(pair, NameValuePair):
            name, value = pair.name, pair.value
        elif isinstance(pair, dict):
            name, value = pair.get("name"), pair.get("value")
        elif isinstance(pair, (tuple, list)) and len(pair) == 2:
            name, value = pair
        else:
            raise TypeError(f"Unsupported name/value pair: {pair!r}")

        if not all(item is None or isinstance(item, str) for item in (name, value)):
            raise TypeError(f"Name and value must be strings or None: {pair!r}")
        result.add(name, value)
    return result
