from __future__ import annotations

from loguru import logger

from floorsnap.geometry.tolerances import Tolerances
from floorsnap.model.segment import Segment, SegmentCollection, Span
from floorsnap.topology.edits import TopologyEdit, apply_edit
from floorsnap.vector.geometry import are_collinear, is_contained, point_at, projected_interval


def plan_split(active: Segment, collection: SegmentCollection, tolerances: Tolerances) -> TopologyEdit:
    """Walls that ``active`` sits strictly inside, cut around it.

    Each such wall keeps the part before ``active``'s projected interval (in
    the wall's own direction) and a new wall with the same attributes covers
    the part after it. Every wall is tested against the geometry as it is now,
    so one call never splits a piece produced by another split.
    """
    edit = TopologyEdit()
    if active.is_degenerate:
        return edit
    for other in collection.walls():
        if other is active:
            continue
        if not are_collinear(other, active, tolerances.collinear_tolerance):
            continue
        if not is_contained(active, other, tolerances.containment_epsilon):
            continue

        interval = projected_interval(active, other)
        if interval is None:
            continue
        t_start, t_end = interval
        cut_start = point_at(other, t_start)
        cut_end = point_at(other, t_end)

        edit.truncations[other.id] = Span.between(other.start, cut_start)
        edit.inserted.append(other.derive(Span.between(cut_end, other.end)))
        logger.debug(
            "Splitting wall {} around {} at t=[{:.3f}, {:.3f}]",
            other.id, active.id, t_start, t_end,
        )
    return edit


def maintain_topology(
    active: Segment,
    collection: SegmentCollection,
    *,
    scale: float = 1.0,
    tolerances: Tolerances | None = None,
) -> bool:
    """Split every wall that now strictly contains ``active``; True if any split happened."""
    tol = tolerances if tolerances is not None else Tolerances.for_scale(scale)
    edit = plan_split(active, collection, tol)
    if edit.is_empty:
        return False
    apply_edit(collection, edit)
    logger.debug("Split pass produced {} new wall(s)", len(edit.inserted))
    return True
