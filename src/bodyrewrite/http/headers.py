"""
=============================================================================
HTTP HEADER COLLECTION
=============================================================================

A case-insensitive, multi-valued header map.

HTTP header names are case-insensitive (RFC 7230 §3.2), and a header may
appear more than once (Set-Cookie, Vary, ...). This collection stores every
name in its canonical form and keeps a list of values per name:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   headers.add("content-type", "text/html")                          │
    │   headers.add("SET-COOKIE", "a=1")                                  │
    │   headers.add("set-cookie", "b=2")                                  │
    │                                                                      │
    │   {                                                                  │
    │       "Content-Type": ["text/html"],                                │
    │       "Set-Cookie":   ["a=1", "b=2"],                               │
    │   }                                                                  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple


def canonical_header_name(name: str) -> str:
    """
    Return the canonical form of a header name.

    The first letter and every letter following a hyphen are upper case,
    everything else is lower case:

        "content-length"  → "Content-Length"
        "X-REQUEST-ID"    → "X-Request-Id"
    """
    return "-".join(part.capitalize() for part in name.strip().split("-"))


class Headers:
    """
    Case-insensitive multi-valued header collection.

    Item access works on whole value lists, the helper methods work on
    single values:

        headers["Vary"] = ["Accept", "Accept-Encoding"]
        headers.get("vary")        # "Accept"
        headers.get_all("vary")    # ["Accept", "Accept-Encoding"]
        headers.set("Vary", "*")   # replaces every value
        headers.delete("VARY")
    """

    def __init__(self, initial: Optional[Iterable[Tuple[str, str]]] = None):
        self._values: Dict[str, List[str]] = {}
        if initial is not None:
            if isinstance(initial, Headers):
                initial = initial.pairs()
            elif hasattr(initial, "items"):
                initial = initial.items()
            for name, value in initial:
                self.add(name, value)

    # ─────────────────────────────────────────────────────────────────────
    # SINGLE VALUE HELPERS
    # ─────────────────────────────────────────────────────────────────────

    def get(self, name: str, default: str = "") -> str:
        """Return the first value for name, or default if absent."""
        values = self._values.get(canonical_header_name(name))
        if not values:
            return default
        return values[0]

    def get_all(self, name: str) -> List[str]:
        """Return a copy of every value for name."""
        return list(self._values.get(canonical_header_name(name), []))

    def set(self, name: str, value: str) -> None:
        """Replace all values for name with a single value."""
        self._values[canonical_header_name(name)] = [str(value)]

    def add(self, name: str, value: str) -> None:
        """Append a value for name, keeping existing ones."""
        self._values.setdefault(canonical_header_name(name), []).append(str(value))

    def delete(self, name: str) -> None:
        """Remove name and all of its values. Missing names are ignored."""
        self._values.pop(canonical_header_name(name), None)

    # ─────────────────────────────────────────────────────────────────────
    # MAPPING PROTOCOL (value lists)
    # ─────────────────────────────────────────────────────────────────────

    def __getitem__(self, name: str) -> List[str]:
        return self._values[canonical_header_name(name)]

    def __setitem__(self, name: str, values: List[str]) -> None:
        self._values[canonical_header_name(name)] = [str(v) for v in values]

    def __delitem__(self, name: str) -> None:
        del self._values[canonical_header_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_header_name(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        """Iterate (name, values) pairs."""
        for name in list(self._values):
            yield name, list(self._values[name])

    def pairs(self) -> Iterator[Tuple[str, str]]:
        """Iterate (name, value) pairs, one per value, for serialization."""
        for name, values in self._values.items():
            for value in values:
                yield name, value

    def copy(self) -> "Headers":
        """Return a deep copy (value lists are not shared)."""
        clone = Headers()
        for name, values in self._values.items():
            clone._values[name] = list(values)
        return clone
