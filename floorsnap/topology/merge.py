from __future__ import annotations

from typing import Optional

from loguru import logger

from floorsnap.geometry.tolerances import Tolerances
from floorsnap.model.segment import SegmentCollection, Selection, Span
from floorsnap.topology.edits import TopologyEdit, apply_edit, atomic
from floorsnap.vector.geometry import are_collinear, closest_endpoint_pair, combined_span, is_gap_blocked


def find_merge(
    collection: SegmentCollection,
    tolerances: Tolerances,
    selection: Selection | None = None,
) -> Optional[TopologyEdit]:
    """First fusable wall pair in collection order, as an edit; ``None`` if there is none.

    Pairs are visited as ``(i, j)`` with ``i < j``. A pair fuses when the walls
    are collinear, their nearest endpoints are within the merge distance, and
    no other object touches or lies along the gap between them.
    """
    walls = collection.walls()
    objects = list(collection)
    for i, w1 in enumerate(walls):
        for w2 in walls[i + 1:]:
            if not are_collinear(w1, w2, tolerances.collinear_tolerance):
                continue

            closest = closest_endpoint_pair(w1, w2)
            # merges stay local; distant collinear walls are never fused
            if closest.distance > tolerances.merge_distance:
                continue

            gap = Span.between(closest.first, closest.second)
            if is_gap_blocked(
                gap,
                w1,
                w2,
                objects,
                touch_tolerance=tolerances.gap_touch_tolerance,
                overlap_epsilon=tolerances.gap_overlap_epsilon,
                collinear_tolerance=tolerances.collinear_tolerance,
            ):
                continue

            span = combined_span(w1, w2)
            if span is None:
                continue

            merged = w1.derive(span)
            edit = TopologyEdit(removed=[w1.id, w2.id], inserted=[merged])
            if selection is not None and (selection.contains(w1) or selection.contains(w2)):
                edit.selection = [merged.id]
            logger.debug("Merging walls {} and {} across a gap of {:.3f}", w1.id, w2.id, closest.distance)
            return edit
    return None


def merge_walls(
    collection: SegmentCollection,
    selection: Selection | None,
    scale: float,
    *,
    tolerances: Tolerances | None = None,
) -> int:
    """Fuse collinear wall pairs until a full scan finds nothing; returns the merge count.

    The scan restarts from the first pair after every merge. Each merge removes
    one wall, so the loop ends after at most ``len(walls) - 1`` merges. The
    whole run is atomic.
    """
    tol = tolerances if tolerances is not None else Tolerances.for_scale(scale)
    merges = 0
    with atomic(collection, selection):
        while True:
            edit = find_merge(collection, tol, selection)
            if edit is None:
                break
            apply_edit(collection, edit, selection)
            merges += 1
    if merges:
        logger.debug("Merge pass fused {} wall pair(s)", merges)
    return merges
