"""Edit session: the segment collection, the selection and the gesture hooks.

Pointer handlers call the ``*_selection``/``resize_endpoint`` methods on every
move event and the ``finish_*`` / ``create_segment`` / ``delete_selected``
methods once a gesture completes; only the latter run the topology passes.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

import numpy as np
from loguru import logger
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import box

from floorsnap.geometry.tolerances import Tolerances
from floorsnap.model.segment import Bounds, Point, Segment, SegmentCollection, SegmentKind, Selection, Vector
from floorsnap.settings import Settings, get_settings
from floorsnap.topology.merge import merge_walls
from floorsnap.topology.split import maintain_topology
from floorsnap.vector.geometry import closest_point_on_segment, segments_bounds
from floorsnap.vector.snap import (
    SnapKind,
    SnapResult,
    move_snap_correction,
    resolve_drag_point,
    resolve_resize_point,
)

HANDLES = ("start", "end")


class EditSession:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        scale: float = 1.0,
        segments: Iterable[Segment] = (),
    ) -> None:
        self.settings = settings or get_settings()
        self.collection = SegmentCollection(segments)
        self.selection = Selection()
        self.clipboard: List[Segment] = []
        self._tolerances = Tolerances.for_scale(scale, self.settings.tolerances)

    # -- zoom -------------------------------------------------------------

    @property
    def scale(self) -> float:
        return self._tolerances.scale

    @scale.setter
    def scale(self, value: float) -> None:
        self._tolerances = Tolerances.for_scale(value, self.settings.tolerances)

    @property
    def tolerances(self) -> Tolerances:
        return self._tolerances

    def _px(self, distance_px: float) -> float:
        return distance_px / self.scale

    # -- selection --------------------------------------------------------

    def selected_segments(self) -> List[Segment]:
        return self.selection.resolve(self.collection)

    def selection_bounds(self) -> Optional[Bounds]:
        return segments_bounds(self.selected_segments())

    def select(self, segments: Iterable[Segment], *, additive: bool = False) -> None:
        if additive:
            for segment in segments:
                self.selection.add(segment)
        else:
            self.selection.replace(segments)

    def toggle_selection(self, segment: Segment) -> None:
        """Add ``segment`` to the selection, or drop it if it is already selected."""
        if self.selection.contains(segment):
            self.selection.discard(segment)
        else:
            self.selection.add(segment)

    def hit_test(self, point: Point) -> Optional[Segment]:
        """First segment (in collection order) within the hit distance of ``point``."""
        limit = self._px(self.settings.editor.hit_px)
        for segment in self.collection:
            if closest_point_on_segment(point, segment).distance < limit:
                return segment
        return None

    def handle_at(self, point: Point, segment: Segment) -> Optional[str]:
        """``"start"`` or ``"end"`` when ``point`` is on that endpoint's resize handle."""
        size = self._px(self.settings.editor.handle_px)
        if math.hypot(point[0] - segment.x1, point[1] - segment.y1) < size:
            return "start"
        if math.hypot(point[0] - segment.x2, point[1] - segment.y2) < size:
            return "end"
        return None

    def box_select(self, corner_a: Point, corner_b: Point, *, additive: bool = False) -> List[Segment]:
        """Select segments whose both endpoints lie inside the box (edges included)."""
        area = box(
            min(corner_a[0], corner_b[0]),
            min(corner_a[1], corner_b[1]),
            max(corner_a[0], corner_b[0]),
            max(corner_a[1], corner_b[1]),
        )
        hits = [
            seg for seg in self.collection
            if area.covers(ShapelyPoint(seg.start)) and area.covers(ShapelyPoint(seg.end))
        ]
        self.select(hits, additive=additive)
        return hits

    # -- drawing ----------------------------------------------------------

    def new_segment(self, kind: SegmentKind | str, start: Point, end: Point) -> Segment:
        kind = SegmentKind(kind)
        style = self.settings.style_for(kind.value)
        return Segment(
            kind=kind,
            x1=float(start[0]),
            y1=float(start[1]),
            x2=float(end[0]),
            y2=float(end[1]),
            width=style.width,
            height=style.height,
            color=style.color,
            subtype="single" if kind is SegmentKind.DOOR else None,
            is_open=False,
        )

    def preview_end_point(self, start: Point, point: Point, *, snap: bool = True) -> SnapResult:
        if not snap:
            return SnapResult(point, SnapKind.NONE)
        return resolve_drag_point(
            start,
            point,
            list(self.collection),
            self.scale,
            tolerances=self._tolerances,
            angle_increment_deg=self.settings.editor.angle_increment_deg,
        )

    def create_segment(
        self,
        kind: SegmentKind | str,
        start: Point,
        end: Point,
        *,
        snap: bool = True,
    ) -> Optional[Segment]:
        """Finish a drawing drag; drags shorter than the minimum length are dropped."""
        if math.hypot(end[0] - start[0], end[1] - start[1]) < self.settings.editor.min_segment_length:
            logger.debug("Discarding {} drag shorter than {}", kind, self.settings.editor.min_segment_length)
            return None

        end_point = self.preview_end_point(start, end, snap=snap).point
        segment = self.collection.add(self.new_segment(kind, start, end_point))
        maintain_topology(segment, self.collection, tolerances=self._tolerances)
        return segment

    # -- moving -----------------------------------------------------------

    def move_started(self, press: Point, point: Point) -> bool:
        """Whether the pointer has travelled far enough from ``press`` to count as a move."""
        travelled = math.hypot(point[0] - press[0], point[1] - press[1])
        return travelled > self._px(self.settings.editor.move_start_px)

    def move_selection(self, delta: Tuple[float, float], *, snap: bool = True) -> Vector:
        """Translate the selection by ``delta`` plus any snap correction; returns the applied delta."""
        selected = self.selected_segments()
        if not selected:
            return Vector(0.0, 0.0)

        dx, dy = float(delta[0]), float(delta[1])
        if snap:
            correction = move_snap_correction(
                (dx, dy), selected, list(self.collection), self.scale, tolerances=self._tolerances
            )
            dx += correction.x
            dy += correction.y

        for segment in selected:
            segment.translate(dx, dy)
        return Vector(dx, dy)

    def finish_move(self) -> None:
        merge_walls(self.collection, self.selection, self.scale, tolerances=self._tolerances)
        self.selection.prune(self.collection)
        selected = self.selected_segments()
        if len(selected) == 1:
            maintain_topology(selected[0], self.collection, tolerances=self._tolerances)

    # -- resizing ---------------------------------------------------------

    def resize_endpoint(self, segment: Segment, handle: str, point: Point, *, snap: bool = True) -> Point:
        """Drag one endpoint of ``segment`` to ``point`` (snapped unless ``snap`` is False)."""
        if handle not in HANDLES:
            raise ValueError(f"handle must be one of {HANDLES}, got {handle!r}")
        if segment not in self.collection:
            logger.debug("Ignoring resize of segment {} outside the collection", segment.id)
            return point

        anchor = segment.end if handle == "start" else segment.start
        if snap:
            point = resolve_resize_point(
                anchor,
                point,
                list(self.collection),
                self.scale,
                [segment],
                tolerances=self._tolerances,
                angle_increment_deg=self.settings.editor.angle_increment_deg,
            ).point

        if handle == "start":
            segment.x1, segment.y1 = point
        else:
            segment.x2, segment.y2 = point
        return point

    def finish_resize(self, segment: Segment) -> None:
        merge_walls(self.collection, self.selection, self.scale, tolerances=self._tolerances)
        if segment in self.collection:
            maintain_topology(segment, self.collection, tolerances=self._tolerances)

    # -- other edits ------------------------------------------------------

    def delete_selected(self) -> int:
        """Remove the selection and heal the walls around the hole; returns how many were removed."""
        selected = self.selected_segments()
        if not selected:
            return 0
        for segment in selected:
            self.collection.remove(segment)
        self.selection.clear()
        merge_walls(self.collection, self.selection, self.scale, tolerances=self._tolerances)
        return len(selected)

    def rotate_selection(self, angle_rad: float, center: Point | None = None) -> None:
        """Rotate the selection by ``angle_rad`` about ``center`` (default: its bounds center)."""
        selected = self.selected_segments()
        if not selected:
            return
        if center is None:
            bounds = segments_bounds(selected)
            center = (bounds.center_x, bounds.center_y)  # type: ignore[union-attr]

        cos_a, sin_a = math.cos(angle_rad), math.sin(angle_rad)
        rotation = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
        origin = np.array(center, dtype=float)
        for segment in selected:
            pts = np.array([segment.start, segment.end], dtype=float) - origin
            (x1, y1), (x2, y2) = pts @ rotation.T + origin
            segment.x1, segment.y1, segment.x2, segment.y2 = float(x1), float(y1), float(x2), float(y2)

    def flip_selection(self, axis: str, anchor: Point | None = None) -> None:
        """Mirror the selection; ``horizontal`` flips x, ``vertical`` flips y."""
        if axis not in ("horizontal", "vertical"):
            raise ValueError(f"axis must be 'horizontal' or 'vertical', got {axis!r}")
        selected = self.selected_segments()
        if not selected:
            return
        if anchor is None:
            bounds = segments_bounds(selected)
            anchor = (bounds.center_x, bounds.center_y)  # type: ignore[union-attr]

        for segment in selected:
            if axis == "horizontal":
                segment.x1 = 2 * anchor[0] - segment.x1
                segment.x2 = 2 * anchor[0] - segment.x2
            else:
                segment.y1 = 2 * anchor[1] - segment.y1
                segment.y2 = 2 * anchor[1] - segment.y2

    # -- clipboard --------------------------------------------------------

    def copy_selection(self) -> int:
        """Snapshot the selection into the clipboard; an empty selection leaves it untouched."""
        selected = self.selected_segments()
        if selected:
            self.clipboard = [segment.derive(segment.span) for segment in selected]
        return len(selected)

    def paste_clipboard(self, target: Point | None = None) -> List[Segment]:
        """Insert fresh copies of the clipboard centred on ``target`` and select them.

        The group is nudged by the paste offset so it never lands exactly on
        top of the source. ``target`` defaults to the world origin.
        """
        if not self.clipboard:
            return []
        clones = [segment.derive(segment.span) for segment in self.clipboard]
        bounds = segments_bounds(clones)
        tx, ty = target if target is not None else (0.0, 0.0)
        offset = self._px(self.settings.editor.paste_offset_px)
        dx = tx - bounds.center_x + offset  # type: ignore[union-attr]
        dy = ty - bounds.center_y + offset  # type: ignore[union-attr]
        for clone in clones:
            clone.translate(dx, dy)
        self.collection.extend(clones)
        self.selection.replace(clones)
        logger.debug("Pasted {} segment(s) at ({:.1f}, {:.1f})", len(clones), tx, ty)
        return clones
