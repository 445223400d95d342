from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple

from floorsnap.geometry.contract import ANGLE_SNAP_INCREMENT_DEG
from floorsnap.geometry.tolerances import Tolerances
from floorsnap.model.segment import Bounds, Point, Vector
from floorsnap.vector.geometry import SegmentLike, closest_point_on_segment, segments_bounds


class SnapKind(str, Enum):
    NONE = "none"
    OBJECT = "object"
    ANGLE = "angle"


@dataclass(frozen=True)
class SnapResult:
    point: Point
    kind: SnapKind


class AxisCorrection(NamedTuple):
    """Per-axis correction; ``None`` means nothing was close enough on that axis."""
    x: Optional[float]
    y: Optional[float]


def _budget(scale: float, tolerances: Tolerances | None) -> Tolerances:
    return tolerances if tolerances is not None else Tolerances.for_scale(scale)


def _identity_filter(objects: Iterable[SegmentLike], exclude: Iterable[SegmentLike]) -> list[SegmentLike]:
    excluded = {id(obj) for obj in exclude}
    return [obj for obj in objects if id(obj) not in excluded]


def find_snap_target(
    point: Point,
    objects: Iterable[SegmentLike],
    threshold: float,
    exclude: Iterable[SegmentLike] = (),
) -> Optional[Point]:
    """Nearest endpoint or on-segment point within ``threshold``, if any.

    Candidates per object are its start, its end, then its closest point; only
    a strictly closer candidate replaces the current best.
    """
    px, py = point
    best: Optional[Point] = None
    best_dist = threshold
    for obj in _identity_filter(objects, exclude):
        candidates = (
            ((obj.x1, obj.y1), math.hypot(px - obj.x1, py - obj.y1)),
            ((obj.x2, obj.y2), math.hypot(px - obj.x2, py - obj.y2)),
            closest_point_on_segment(point, obj),
        )
        for candidate, dist in candidates:
            if dist < best_dist:
                best_dist = dist
                best = (float(candidate[0]), float(candidate[1]))
    return best


def snap_point(
    point: Point,
    objects: Iterable[SegmentLike],
    scale: float,
    exclude: Iterable[SegmentLike] = (),
    *,
    tolerances: Tolerances | None = None,
) -> Point:
    """Snap ``point`` onto nearby geometry; returns ``point`` unchanged when nothing is in range."""
    tol = _budget(scale, tolerances)
    target = find_snap_target(point, objects, tol.snap_distance, exclude)
    return target if target is not None else point


def alignment_correction(
    bounds: Bounds,
    delta: Tuple[float, float],
    targets: Iterable[SegmentLike],
    scale: float,
    *,
    tolerances: Tolerances | None = None,
) -> AxisCorrection:
    """Smallest shift per axis that puts an edge or center of the moved box on a target's edge or center.

    ``bounds`` is the selection's box before ``delta`` is applied. Every
    representative line of the moved box is tested against every
    representative line of each target's own bounding box, independently for
    x and y.
    """
    tol = _budget(scale, tolerances)
    moved = bounds.shifted(delta[0], delta[1])
    target_bounds = [b for b in (Bounds.of([t]) for t in targets) if b is not None]

    def _axis(axis: str) -> Optional[float]:
        best: Optional[float] = None
        best_abs = tol.alignment_distance
        own_lines = moved.lines(axis)
        for tb in target_bounds:
            for line in own_lines:
                for other in tb.lines(axis):
                    diff = other - line
                    if abs(diff) < best_abs:
                        best_abs = abs(diff)
                        best = diff
        return best

    return AxisCorrection(_axis("x"), _axis("y"))


def move_snap_correction(
    delta: Tuple[float, float],
    selection: Sequence[SegmentLike],
    objects: Iterable[SegmentLike],
    scale: float,
    *,
    tolerances: Tolerances | None = None,
) -> Vector:
    """Correction to add to ``delta`` so the moved selection lands on nearby geometry.

    The single closest (moved endpoint, unselected segment) pair wins the
    endpoint snap. Alignment of the whole selection's bounding box is then
    resolved per axis and replaces the endpoint correction on that axis when
    it is smaller in magnitude or the endpoint correction there is zero.
    """
    tol = _budget(scale, tolerances)
    targets = _identity_filter(objects, selection)
    if not targets:
        return Vector(0.0, 0.0)

    dx, dy = delta
    correction_x = 0.0
    correction_y = 0.0
    min_dist = tol.snap_distance

    for sel in selection:
        for px, py in ((sel.x1 + dx, sel.y1 + dy), (sel.x2 + dx, sel.y2 + dy)):
            for target in targets:
                (cx, cy), dist = closest_point_on_segment((px, py), target)
                if dist < min_dist:
                    min_dist = dist
                    correction_x = cx - px
                    correction_y = cy - py

    bounds = segments_bounds(selection)
    if bounds is not None:
        align = alignment_correction(bounds, delta, targets, scale, tolerances=tol)
        if align.x is not None and (correction_x == 0.0 or abs(align.x) < abs(correction_x)):
            correction_x = align.x
        if align.y is not None and (correction_y == 0.0 or abs(align.y) < abs(correction_y)):
            correction_y = align.y

    return Vector(correction_x, correction_y)


def axis_snap(
    value: float,
    axis: str,
    objects: Iterable[SegmentLike],
    exclude: Iterable[SegmentLike],
    scale: float,
    *,
    tolerances: Tolerances | None = None,
) -> Optional[float]:
    """Nearest edge or center line of another object's box along ``axis``, or ``None``."""
    if axis not in ("x", "y"):
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
    tol = _budget(scale, tolerances)
    best: Optional[float] = None
    best_dist = tol.axis_snap_distance
    for obj in _identity_filter(objects, exclude):
        box = Bounds.of([obj])
        if box is None:
            continue
        for line in box.lines(axis):
            dist = abs(value - line)
            if dist < best_dist:
                best_dist = dist
                best = line
    return best


def snap_angle(anchor: Point, point: Point, increment_deg: float = ANGLE_SNAP_INCREMENT_DEG) -> Point:
    """Rotate ``point`` about ``anchor`` to the nearest ``increment_deg`` direction, keeping the length."""
    ax, ay = anchor
    dx = point[0] - ax
    dy = point[1] - ay
    length = math.hypot(dx, dy)
    if length == 0.0:
        return (ax, ay)
    step = math.radians(increment_deg)
    # half-up rounding so ties break the same way in every quadrant
    snapped = math.floor(math.atan2(dy, dx) / step + 0.5) * step
    return (ax + math.cos(snapped) * length, ay + math.sin(snapped) * length)


def resolve_drag_point(
    anchor: Point,
    point: Point,
    objects: Iterable[SegmentLike],
    scale: float,
    exclude: Iterable[SegmentLike] = (),
    *,
    tolerances: Tolerances | None = None,
    angle_increment_deg: float = ANGLE_SNAP_INCREMENT_DEG,
) -> SnapResult:
    """Object snap for a dragged end point, falling back to angle snap around ``anchor``.

    The two never combine within one pointer event.
    """
    tol = _budget(scale, tolerances)
    target = find_snap_target(point, objects, tol.snap_distance, exclude)
    if target is not None:
        return SnapResult(target, SnapKind.OBJECT)
    return SnapResult(snap_angle(anchor, point, angle_increment_deg), SnapKind.ANGLE)


def resolve_resize_point(
    anchor: Point,
    point: Point,
    objects: Sequence[SegmentLike],
    scale: float,
    exclude: Sequence[SegmentLike] = (),
    *,
    tolerances: Tolerances | None = None,
    angle_increment_deg: float = ANGLE_SNAP_INCREMENT_DEG,
) -> SnapResult:
    """``resolve_drag_point`` followed by independent x/y axis snapping."""
    tol = _budget(scale, tolerances)
    result = resolve_drag_point(
        anchor, point, objects, scale, exclude, tolerances=tol, angle_increment_deg=angle_increment_deg
    )
    x, y = result.point
    snap_x = axis_snap(x, "x", objects, exclude, scale, tolerances=tol)
    snap_y = axis_snap(y, "y", objects, exclude, scale, tolerances=tol)
    if snap_x is not None:
        x = snap_x
    if snap_y is not None:
        y = snap_y
    return SnapResult((x, y), result.kind)
