"""Segments, spans and the session-owned collection they live in."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple
from uuid import uuid4

from shapely.geometry import LineString, MultiLineString

from floorsnap.exceptions import GeometryError
from floorsnap.geometry.contract import DEGENERATE_LENGTH_SQ

Point = Tuple[float, float]

_GEOMETRY_FIELDS = ("x1", "y1", "x2", "y2")


class SegmentKind(str, Enum):
    WALL = "wall"
    DOOR = "door"
    WINDOW = "window"
    FURNITURE = "furniture"


class Vector(NamedTuple):
    x: float
    y: float


def normalize_color(value: object) -> str:
    """Return a lowercase ``#rrggbb`` color; anything unrecognised becomes white."""
    if not isinstance(value, str) or not value.startswith("#"):
        return "#ffffff"
    if len(value) == 7:
        return value.lower()
    if len(value) == 4:
        return "#" + "".join(ch * 2 for ch in value[1:]).lower()
    return "#ffffff"


@dataclass(frozen=True)
class Span:
    """Bare pair of endpoints (gap segments, computed extents)."""
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def between(cls, start: Point, end: Point) -> "Span":
        return cls(float(start[0]), float(start[1]), float(end[0]), float(end[1]))

    @property
    def start(self) -> Point:
        return (self.x1, self.y1)

    @property
    def end(self) -> Point:
        return (self.x2, self.y2)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box; y grows downward so ``top`` is the minimum y."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2.0

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0

    def lines(self, axis: str) -> Tuple[float, float, float]:
        """Representative lines along ``axis``: edges and center."""
        if axis == "x":
            return (self.left, self.center_x, self.right)
        if axis == "y":
            return (self.top, self.center_y, self.bottom)
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")

    def shifted(self, dx: float, dy: float) -> "Bounds":
        return Bounds(self.left + dx, self.top + dy, self.right + dx, self.bottom + dy)

    @classmethod
    def of(cls, spans: Iterable[object]) -> Optional["Bounds"]:
        lines = [LineString([(s.x1, s.y1), (s.x2, s.y2)]) for s in spans]  # type: ignore[attr-defined]
        if not lines:
            return None
        minx, miny, maxx, maxy = MultiLineString(lines).bounds
        return cls(minx, miny, maxx, maxy)


@dataclass(eq=False)
class Segment:
    """Wall, door, window or furniture piece drawn as a line segment.

    Segments compare by identity; ``id`` stays stable for the segment's
    lifetime and is what selections refer to.
    """
    kind: SegmentKind
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 3.0
    height: float = 80.0
    color: str = "#ffffff"
    subtype: Optional[str] = None
    is_open: bool = False
    id: str = field(default_factory=lambda: uuid4().hex)

    def __post_init__(self) -> None:
        self.kind = SegmentKind(self.kind)

    @property
    def start(self) -> Point:
        return (self.x1, self.y1)

    @property
    def end(self) -> Point:
        return (self.x2, self.y2)

    @property
    def span(self) -> Span:
        return Span(self.x1, self.y1, self.x2, self.y2)

    @property
    def is_wall(self) -> bool:
        return self.kind is SegmentKind.WALL

    @property
    def is_degenerate(self) -> bool:
        dx, dy = self.x2 - self.x1, self.y2 - self.y1
        return dx * dx + dy * dy < DEGENERATE_LENGTH_SQ

    def is_finite(self) -> bool:
        return all(math.isfinite(getattr(self, name)) for name in _GEOMETRY_FIELDS)

    def translate(self, dx: float, dy: float) -> None:
        self.x1 += dx
        self.y1 += dy
        self.x2 += dx
        self.y2 += dy

    def set_span(self, span: Span) -> None:
        self.x1, self.y1, self.x2, self.y2 = span.x1, span.y1, span.x2, span.y2

    def derive(self, span: Span) -> "Segment":
        """New segment over ``span`` carrying this one's non-geometric attributes."""
        return replace(self, x1=span.x1, y1=span.y1, x2=span.x2, y2=span.y2, id=uuid4().hex)


class CollectionSnapshot(NamedTuple):
    members: List[Segment]
    spans: List[Span]


class SegmentCollection:
    """Ordered arena of segments keyed by id; iteration follows insertion order."""

    def __init__(self, segments: Iterable[Segment] = ()) -> None:
        self._items: Dict[str, Segment] = {}
        for segment in segments:
            self.add(segment)

    def __iter__(self) -> Iterator[Segment]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, segment: object) -> bool:
        seg_id = getattr(segment, "id", None)
        return seg_id is not None and self._items.get(seg_id) is segment

    def add(self, segment: Segment) -> Segment:
        if not segment.is_finite():
            raise GeometryError(
                "Segment coordinates must be finite",
                {"segment_id": segment.id},
            )
        if segment.id in self._items and self._items[segment.id] is not segment:
            raise GeometryError("Duplicate segment id", {"segment_id": segment.id})
        self._items[segment.id] = segment
        return segment

    def extend(self, segments: Iterable[Segment]) -> None:
        for segment in segments:
            self.add(segment)

    def remove(self, segment: Segment | str) -> Optional[Segment]:
        seg_id = segment if isinstance(segment, str) else segment.id
        return self._items.pop(seg_id, None)

    def get(self, seg_id: str) -> Optional[Segment]:
        return self._items.get(seg_id)

    def walls(self) -> List[Segment]:
        return [seg for seg in self._items.values() if seg.is_wall]

    def snapshot(self) -> CollectionSnapshot:
        members = list(self._items.values())
        return CollectionSnapshot(members, [seg.span for seg in members])

    def restore(self, snapshot: CollectionSnapshot) -> None:
        """Reinstate membership, order and geometry captured by ``snapshot``."""
        self._items = {}
        for segment, span in zip(snapshot.members, snapshot.spans):
            segment.set_span(span)
            self._items[segment.id] = segment


class Selection:
    """Ordered, duplicate-free set of segment ids."""

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: List[str] = []
        for seg_id in ids:
            self._append(seg_id)

    def _append(self, seg_id: str) -> None:
        if seg_id not in self._ids:
            self._ids.append(seg_id)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        return bool(self._ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def contains(self, segment: Segment | str) -> bool:
        seg_id = segment if isinstance(segment, str) else segment.id
        return seg_id in self._ids

    def add(self, segment: Segment | str) -> None:
        self._append(segment if isinstance(segment, str) else segment.id)

    def discard(self, segment: Segment | str) -> None:
        seg_id = segment if isinstance(segment, str) else segment.id
        self._ids = [existing for existing in self._ids if existing != seg_id]

    def replace(self, segments: Iterable[Segment | str]) -> None:
        self._ids = []
        for segment in segments:
            self.add(segment)

    def clear(self) -> None:
        self._ids = []

    def resolve(self, collection: SegmentCollection) -> List[Segment]:
        """Selected segments still present in ``collection``; stale ids are skipped."""
        resolved = []
        for seg_id in self._ids:
            segment = collection.get(seg_id)
            if segment is not None:
                resolved.append(segment)
        return resolved

    def prune(self, collection: SegmentCollection) -> None:
        self._ids = [seg_id for seg_id in self._ids if collection.get(seg_id) is not None]
