"""Pure segment predicates shared by the snap resolver and the topology passes.

Every function accepts anything exposing ``x1, y1, x2, y2`` (``Segment`` or
``Span``). Segments shorter than 1e-3 world units are degenerate: they are
treated as a point for closest-point queries and as "no line" everywhere else.
"""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple, Optional, Protocol, Sequence, Tuple

from floorsnap.geometry.contract import (
    COLLINEAR_TOLERANCE,
    CONTAINMENT_EPSILON,
    DEGENERATE_LENGTH_SQ,
    GAP_OVERLAP_EPSILON,
    GAP_TOUCH_TOLERANCE,
    OVERLAP_EPSILON,
)
from floorsnap.model.segment import Bounds, Point, Span


class SegmentLike(Protocol):
    x1: float
    y1: float
    x2: float
    y2: float


class ClosestPoint(NamedTuple):
    point: Point
    distance: float


class EndpointPair(NamedTuple):
    first: Point
    second: Point
    distance: float


def _direction(seg: SegmentLike) -> Tuple[float, float, float]:
    dx = seg.x2 - seg.x1
    dy = seg.y2 - seg.y1
    return dx, dy, dx * dx + dy * dy


def _project(point: Point, seg: SegmentLike, dx: float, dy: float, len_sq: float) -> float:
    """Normalized position of ``point`` along ``seg`` (0 at start, 1 at end)."""
    return ((point[0] - seg.x1) * dx + (point[1] - seg.y1) * dy) / len_sq


def closest_point_on_segment(point: Point, seg: SegmentLike) -> ClosestPoint:
    """Closest point of ``seg`` to ``point`` with the projection clamped to [0, 1]."""
    px, py = point
    dx, dy, len_sq = _direction(seg)
    if len_sq < DEGENERATE_LENGTH_SQ:
        return ClosestPoint((seg.x1, seg.y1), math.hypot(px - seg.x1, py - seg.y1))

    t = _project(point, seg, dx, dy, len_sq)
    t = max(0.0, min(1.0, t))
    cx = seg.x1 + t * dx
    cy = seg.y1 + t * dy
    return ClosestPoint((cx, cy), math.hypot(px - cx, py - cy))


def point_to_line_distance(point: Point, seg: SegmentLike) -> float:
    """Perpendicular distance to the infinite line through ``seg``.

    Degenerate segments define no line and yield ``inf``.
    """
    dx, dy, len_sq = _direction(seg)
    if len_sq < DEGENERATE_LENGTH_SQ:
        return math.inf
    return abs((point[0] - seg.x1) * dy - (point[1] - seg.y1) * dx) / math.sqrt(len_sq)


def are_collinear(seg_a: SegmentLike, seg_b: SegmentLike, tolerance: float = COLLINEAR_TOLERANCE) -> bool:
    """Both endpoints of ``seg_b`` lie within ``tolerance`` of the line through ``seg_a``."""
    if seg_a is None or seg_b is None:
        return False
    return (
        point_to_line_distance((seg_b.x1, seg_b.y1), seg_a) < tolerance
        and point_to_line_distance((seg_b.x2, seg_b.y2), seg_a) < tolerance
    )


def projected_interval(seg: SegmentLike, onto: SegmentLike) -> Optional[Tuple[float, float]]:
    """Sorted normalized parameters of ``seg``'s endpoints along ``onto``."""
    dx, dy, len_sq = _direction(onto)
    if len_sq < DEGENERATE_LENGTH_SQ:
        return None
    t1 = _project((seg.x1, seg.y1), onto, dx, dy, len_sq)
    t2 = _project((seg.x2, seg.y2), onto, dx, dy, len_sq)
    return (t1, t2) if t1 <= t2 else (t2, t1)


def is_contained(inner: SegmentLike, outer: SegmentLike, epsilon: float = CONTAINMENT_EPSILON) -> bool:
    """``inner`` projects strictly inside ``outer``, at least ``epsilon`` away from both ends."""
    interval = projected_interval(inner, outer)
    if interval is None:
        return False
    t_min, t_max = interval
    return t_min > epsilon and t_max < 1.0 - epsilon


def overlaps(seg_a: SegmentLike, seg_b: SegmentLike, epsilon: float = OVERLAP_EPSILON) -> bool:
    """``seg_b``'s projection onto ``seg_a`` meets [0, 1] with ``epsilon`` slack; touching counts."""
    interval = projected_interval(seg_b, seg_a)
    if interval is None:
        return False
    b_min, b_max = interval
    return not (b_max < 0.0 - epsilon or b_min > 1.0 + epsilon)


def closest_endpoint_pair(seg_a: SegmentLike, seg_b: SegmentLike) -> EndpointPair:
    """Nearest endpoint of ``seg_a`` to an endpoint of ``seg_b``.

    Pairs are checked start-start, start-end, end-start, end-end; on a tie the
    first pair wins.
    """
    best = EndpointPair((seg_a.x1, seg_a.y1), (seg_b.x1, seg_b.y1), math.inf)
    for first in ((seg_a.x1, seg_a.y1), (seg_a.x2, seg_a.y2)):
        for second in ((seg_b.x1, seg_b.y1), (seg_b.x2, seg_b.y2)):
            distance = math.hypot(first[0] - second[0], first[1] - second[1])
            if distance < best.distance:
                best = EndpointPair(first, second, distance)
    return best


def combined_span(seg_a: SegmentLike, seg_b: SegmentLike) -> Optional[Span]:
    """Smallest span along ``seg_a``'s direction covering all four endpoints."""
    dx, dy, len_sq = _direction(seg_a)
    if len_sq < DEGENERATE_LENGTH_SQ:
        return None

    params = [
        _project(pt, seg_a, dx, dy, len_sq)
        for pt in ((seg_a.x1, seg_a.y1), (seg_a.x2, seg_a.y2), (seg_b.x1, seg_b.y1), (seg_b.x2, seg_b.y2))
    ]
    t_min, t_max = min(params), max(params)
    return Span(
        seg_a.x1 + dx * t_min,
        seg_a.y1 + dy * t_min,
        seg_a.x1 + dx * t_max,
        seg_a.y1 + dy * t_max,
    )


def point_at(seg: SegmentLike, t: float) -> Point:
    return (seg.x1 + (seg.x2 - seg.x1) * t, seg.y1 + (seg.y2 - seg.y1) * t)


def is_gap_blocked(
    gap: SegmentLike,
    seg_a: SegmentLike,
    seg_b: SegmentLike,
    objects: Iterable[SegmentLike],
    *,
    touch_tolerance: float = GAP_TOUCH_TOLERANCE,
    overlap_epsilon: float = GAP_OVERLAP_EPSILON,
    collinear_tolerance: float = COLLINEAR_TOLERANCE,
) -> bool:
    """Whether anything other than ``seg_a``/``seg_b`` sits in the gap between them.

    An object blocks when one of its endpoints is within ``touch_tolerance`` of
    a gap endpoint, or when it is collinear with the gap and overlaps it.
    """
    gap_ends = ((gap.x1, gap.y1), (gap.x2, gap.y2))
    gap_length = math.hypot(gap.x2 - gap.x1, gap.y2 - gap.y1)

    for obj in objects:
        if obj is seg_a or obj is seg_b:
            continue
        for ox, oy in ((obj.x1, obj.y1), (obj.x2, obj.y2)):
            for gx, gy in gap_ends:
                if math.hypot(ox - gx, oy - gy) < touch_tolerance:
                    return True
        if gap_length < 1e-6:
            continue
        if are_collinear(gap, obj, collinear_tolerance) and overlaps(gap, obj, overlap_epsilon):
            return True
    return False


def segments_bounds(segments: Sequence[SegmentLike]) -> Optional[Bounds]:
    """Bounding box of every endpoint in ``segments``; ``None`` when empty."""
    return Bounds.of(segments)
