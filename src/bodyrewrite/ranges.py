"""
=============================================================================
STATUS CODE RANGES
=============================================================================

Parses textual status-code specifications like "200-299,400,450-499" into
a list of inclusive ranges and answers "does this status code match?".

=============================================================================
SPECIFICATION FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 "200-299,400,450-499"                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   split on ","                                                      │
    │        │                                                             │
    │        ▼                                                             │
    │   "200-299"     "400"       "450-499"                               │
    │        │          │              │                                   │
    │        ▼          ▼              ▼                                   │
    │   (200, 299)  (400, 400)    (450, 499)                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A block is either a single code or a "low-high" pair. Bounds must be plain
decimal integers and low must not exceed high.

Ranges are kept in the order they were written. They are never merged or
sorted, so containment is a linear scan over a handful of tuples.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Iterable, Tuple, Union


_CODE_PATTERN = re.compile(r"[0-9]+")


class RangeParseError(ValueError):
    """Raised when a status-code specification cannot be parsed."""

    def __init__(self, message: str, block: str = ""):
        super().__init__(message)
        self.block = block


@dataclass(frozen=True)
class RangeSet:
    """
    Immutable, ordered collection of inclusive status-code ranges.

    Usage:
        ranges = RangeSet.parse("200-299,400")
        ranges.contains(204)   # True
        404 in ranges          # False

    Both call shapes produce the same result:
        RangeSet.parse("200-299,400") == RangeSet.parse(["200-299", "400"])
    """

    ranges: Tuple[Tuple[int, int], ...] = ()

    @classmethod
    def parse(cls, specs: Union[str, Iterable[str]]) -> "RangeSet":
        """
        Build a RangeSet from one or more textual specifications.

        Args:
            specs: A specification string, or a sequence of them.
                  Each string may itself contain comma separated blocks.

        Returns:
            The parsed RangeSet.

        Raises:
            RangeParseError: On an empty block, a non-numeric bound,
                            a malformed pair or an inverted range.
        """
        if isinstance(specs, str):
            specs = [specs]

        ranges = []
        for spec in specs:
            for block in spec.split(","):
                ranges.append(_parse_block(block.strip()))

        return cls(tuple(ranges))

    def contains(self, code: int) -> bool:
        """Return True if code lies within any of the ranges."""
        for low, high in self.ranges:
            if low <= code <= high:
                return True
        return False

    def __contains__(self, code: int) -> bool:
        return self.contains(code)

    def __iter__(self):
        return iter(self.ranges)

    def __len__(self) -> int:
        return len(self.ranges)

    def __str__(self) -> str:
        return ",".join(
            str(low) if low == high else f"{low}-{high}"
            for low, high in self.ranges
        )


def _parse_block(block: str) -> Tuple[int, int]:
    """Parse a single "N" or "L-H" block into an inclusive (low, high) pair."""
    if not block:
        raise RangeParseError("empty status code block", block)

    parts = block.split("-")
    if len(parts) > 2:
        raise RangeParseError(f"malformed status code range {block!r}", block)

    low = _parse_code(parts[0], block)
    high = _parse_code(parts[1], block) if len(parts) == 2 else low

    if low > high:
        raise RangeParseError(
            f"invalid status code range {block!r}: {low} is greater than {high}",
            block,
        )

    return low, high


def _parse_code(text: str, block: str) -> int:
    text = text.strip()
    if not _CODE_PATTERN.fullmatch(text):
        raise RangeParseError(f"invalid status code {text!r} in {block!r}", block)
    return int(text)
