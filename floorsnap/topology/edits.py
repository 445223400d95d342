"""Planned collection edits and their atomic application.

Split and merge passes first compute a ``TopologyEdit`` against the current
collection without touching it, then hand it to ``apply_edit``. A failure part
way through restores the collection and selection to their pre-edit state.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from loguru import logger

from floorsnap.exceptions import FloorsnapError, TopologyError
from floorsnap.model.segment import Segment, SegmentCollection, Selection, Span


@dataclass
class TopologyEdit:
    truncations: Dict[str, Span] = field(default_factory=dict)
    removed: List[str] = field(default_factory=list)
    inserted: List[Segment] = field(default_factory=list)
    selection: Optional[List[str]] = None

    @property
    def is_empty(self) -> bool:
        return not (self.truncations or self.removed or self.inserted) and self.selection is None


@contextmanager
def atomic(collection: SegmentCollection, selection: Selection | None = None) -> Iterator[None]:
    """Roll ``collection`` (and ``selection``) back if the block raises.

    Errors are re-raised as ``TopologyError`` unless they already belong to
    the floorsnap hierarchy.
    """
    snapshot = collection.snapshot()
    selected = selection.ids if selection is not None else None
    try:
        yield
    except Exception as exc:
        collection.restore(snapshot)
        if selection is not None and selected is not None:
            selection.replace(selected)
        logger.warning("Topology pass rolled back: {}", exc)
        if isinstance(exc, FloorsnapError):
            raise
        raise TopologyError(f"Topology pass failed: {exc}", {"error": type(exc).__name__}) from exc


def apply_edit(collection: SegmentCollection, edit: TopologyEdit, selection: Selection | None = None) -> None:
    """Apply ``edit`` to ``collection`` in full or not at all."""
    if edit.is_empty:
        return

    missing = [seg_id for seg_id in [*edit.truncations, *edit.removed] if collection.get(seg_id) is None]
    if missing:
        raise TopologyError("Edit refers to segments missing from the collection", {"missing": ",".join(missing)})

    with atomic(collection, selection):
        for seg_id, span in edit.truncations.items():
            collection.get(seg_id).set_span(span)  # type: ignore[union-attr]
        for seg_id in edit.removed:
            collection.remove(seg_id)
        collection.extend(edit.inserted)
        if selection is not None and edit.selection is not None:
            selection.replace(edit.selection)
