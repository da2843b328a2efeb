from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence


# sign, digits with optional fraction (or bare fraction), optional exponent
_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


class InvalidBoundingBox(ValueError):
    """Raised when a coordinate does not parse to a finite number."""


def parse_coordinate(text: str) -> float:
    """
    Parse a single coordinate string as a finite float.

    Only plain decimal notation is accepted (no locale separators, no
    'inf'/'nan' spellings, no trailing garbage). Overflow to inf is rejected.
    """
    if not isinstance(text, str):
        raise InvalidBoundingBox(f"coordinate must be a string, got {type(text).__name__}")
    s = text.strip()
    if not _DECIMAL_RE.match(s):
        raise InvalidBoundingBox(f"not a decimal number: {text!r}")
    value = float(s)
    if not math.isfinite(value):
        raise InvalidBoundingBox(f"not a finite number: {text!r}")
    return value


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """
    Axis-aligned rectangle in lon/lat space.

    Attributes:
        west, east: longitude bounds (deg).
        south, north: latitude bounds (deg).

    Ordering between west/east and south/north is not enforced and nothing is
    normalized; the values are held exactly as given.
    """
    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        for name in ("west", "south", "east", "north"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise InvalidBoundingBox(f"{name} must be a number")
            if not math.isfinite(v):
                raise InvalidBoundingBox(f"{name} must be finite")
            object.__setattr__(self, name, float(v))

    @classmethod
    def from_sequence(cls, seq: Sequence[Any]) -> "BoundingBox":
        """Build from [west, south, east, north]."""
        if isinstance(seq, (str, bytes)) or len(seq) != 4:
            raise InvalidBoundingBox("bounding box needs exactly 4 values")
        return cls(*seq)

    def intersects(self, other: "BoundingBox") -> bool:
        # inclusive: boxes sharing an edge or corner intersect
        return (
            self.west <= other.east
            and other.west <= self.east
            and self.south <= other.north
            and other.south <= self.north
        )

    def to_list(self) -> List[float]:
        return [self.west, self.south, self.east, self.north]


def parse_bounding_box(west: str, south: str, east: str, north: str) -> BoundingBox:
    """
    Parse four coordinate strings into a BoundingBox, in the order given.

    Raises InvalidBoundingBox if any of them is not a finite decimal number.
    """
    return BoundingBox(
        parse_coordinate(west),
        parse_coordinate(south),
        parse_coordinate(east),
        parse_coordinate(north),
    )


@dataclass(frozen=True, slots=True)
class MapAsset:
    """
    A pre-rendered map known to the catalog.

    `name` is the asset's path relative to the maps root (posix separators);
    the static route serves it under the same name.
    """
    name: str
    bounding_box: BoundingBox

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("map asset name must not be empty")


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """One entry of a maps-in-bounds response."""
    url: str
    bounding_box: BoundingBox

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.url, "boundingBox": self.bounding_box.to_list()}


class Catalog(Protocol):
    """Read-only map lookup. Implementations must be safe to call concurrently."""

    def find_intersecting(self, box: BoundingBox) -> Sequence[MapAsset]:
        ...
