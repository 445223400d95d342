from __future__ import annotations

import math

import pytest

from floorsnap.geometry.tolerances import Tolerances
from floorsnap.model.segment import Bounds
from floorsnap.vector.snap import (
    SnapKind,
    alignment_correction,
    axis_snap,
    move_snap_correction,
    resolve_drag_point,
    resolve_resize_point,
    snap_angle,
    snap_point,
)
from tests.utils_segments import make_segment


def test_snap_point_threshold_boundary():
    target = make_segment("wall", 0, 0, 100, 0)
    scale = 2.0
    threshold = 15 / scale
    eps = 1e-6

    outside = (100 + threshold + eps, 0.0)
    inside = (100 + threshold - eps, 0.0)

    assert snap_point(outside, [target], scale) == outside
    assert snap_point(inside, [target], scale) == (100.0, 0.0)


def test_snap_point_is_idempotent_on_vertex():
    objects = [make_segment("wall", 0, 0, 100, 0), make_segment("wall", 100, 0, 100, 80)]
    once = snap_point((103.0, -4.0), objects, 1.0)
    assert once == (100.0, 0.0)
    assert snap_point(once, objects, 1.0) == once


def test_snap_point_projects_onto_segment():
    target = make_segment("wall", 0, 0, 100, 0)
    assert snap_point((50.0, 5.0), [target], 1.0) == (50.0, 0.0)


def test_snap_point_ignores_excluded_and_far_objects():
    target = make_segment("wall", 0, 0, 100, 0)
    assert snap_point((50.0, 5.0), [target], 1.0, exclude=[target]) == (50.0, 5.0)
    assert snap_point((50.0, 40.0), [target], 1.0) == (50.0, 40.0)


def test_snap_point_prefers_closest_candidate():
    near = make_segment("wall", 0, 10, 100, 10)
    far = make_segment("wall", 0, 0, 100, 0)
    assert snap_point((50.0, 8.0), [far, near], 1.0) == (50.0, 10.0)


def test_snap_tolerance_shrinks_with_zoom():
    target = make_segment("wall", 0, 0, 100, 0)
    assert snap_point((50.0, 10.0), [target], 1.0) == (50.0, 0.0)
    assert snap_point((50.0, 10.0), [target], 4.0) == (50.0, 10.0)


def test_move_snap_without_unselected_targets_is_zero():
    selected = make_segment("wall", 0, 0, 50, 0)
    assert move_snap_correction((3.0, 4.0), [selected], [selected], 1.0) == (0.0, 0.0)


def test_move_snap_brings_endpoint_onto_target():
    moving = make_segment("wall", 0, 50, 0, 80)
    target = make_segment("wall", 10, 0, 10, 100)
    correction = move_snap_correction((7.0, 0.0), [moving], [moving, target], 1.0)
    assert correction.x == pytest.approx(3.0)
    assert correction.y == pytest.approx(0.0)


def test_move_alignment_only_touches_the_aligned_axis():
    moving = make_segment("furniture", 0, 200, 50, 200)
    target = make_segment("wall", 100, 0, 100, 50)
    correction = move_snap_correction((95.0, 0.0), [moving], [moving, target], 1.0)
    # left edge of the moved box lands on the target's center line
    assert correction.x == pytest.approx(5.0)
    assert correction.y == 0.0


def test_move_alignment_replaces_zero_endpoint_axis():
    moving = make_segment("furniture", 0, 0, 0, 20)
    target = make_segment("wall", 0, 30, 100, 30)
    correction = move_snap_correction((47.0, 0.0), [moving], [moving, target], 1.0)
    # end point snaps straight down onto the wall; x comes from the center line at 50
    assert correction.x == pytest.approx(3.0)
    assert correction.y == pytest.approx(10.0)


def test_move_alignment_replaces_larger_endpoint_axis():
    moving = make_segment("furniture", 8.5, 6.5, 8.5, 28)
    target = make_segment("wall", 20, 0, 0, 20)
    correction = move_snap_correction((0.0, 2.0), [moving], [moving, target], 1.0)
    # end point snaps diagonally by (1.5, 1.5); the box center line is 0.75 from y=20
    assert correction.x == pytest.approx(1.5)
    assert correction.y == pytest.approx(0.75)


def test_alignment_correction_is_per_axis():
    bounds = Bounds(0.0, 0.0, 10.0, 10.0)
    target = make_segment("wall", 13, 50, 13, 80)
    result = alignment_correction(bounds, (0.0, 0.0), [target], 1.0)
    assert result.x == pytest.approx(3.0)
    # nearest y line is exactly 40 away, which is not inside the budget
    assert result.y is None


def test_alignment_correction_uses_delta():
    bounds = Bounds(0.0, 0.0, 10.0, 10.0)
    target = make_segment("wall", 100, 100, 140, 100)
    result = alignment_correction(bounds, (96.0, 91.0), [target], 1.0)
    assert result.x == pytest.approx(-1.0)
    assert result.y == pytest.approx(-1.0)


def test_axis_snap_returns_none_when_nothing_close():
    objects = [make_segment("wall", 0, 0, 100, 0)]
    assert axis_snap(70.0, "x", objects, [], 1.0) is None


def test_axis_snap_picks_nearest_line():
    other = make_segment("wall", 0, 0, 100, 0)
    assert axis_snap(55.0, "x", [other], [], 1.0) == 50.0
    assert axis_snap(5.0, "y", [other], [], 1.0) == 0.0
    assert axis_snap(55.0, "x", [other], [other], 1.0) is None


def test_axis_snap_rejects_unknown_axis():
    with pytest.raises(ValueError):
        axis_snap(1.0, "z", [], [], 1.0)


def test_snap_angle_keeps_length():
    x, y = snap_angle((0.0, 0.0), (10.0, 1.0))
    assert y == pytest.approx(0.0, abs=1e-9)
    assert x == pytest.approx(math.hypot(10.0, 1.0))

    x, y = snap_angle((10.0, 10.0), (20.0, 19.0))
    length = math.hypot(10.0, 9.0)
    assert x == pytest.approx(10.0 + length / math.sqrt(2))
    assert y == pytest.approx(10.0 + length / math.sqrt(2))


def test_drag_point_object_snap_wins_over_angle_snap():
    target = make_segment("wall", 0, 0, 100, 0)
    result = resolve_drag_point((0.0, 50.0), (60.0, 3.0), [target], 1.0)
    assert result.kind is SnapKind.OBJECT
    assert result.point == (60.0, 0.0)


def test_drag_point_falls_back_to_angle_snap():
    result = resolve_drag_point((0.0, 0.0), (100.0, 3.0), [], 1.0)
    assert result.kind is SnapKind.ANGLE
    assert result.point[1] == pytest.approx(0.0, abs=1e-9)


def test_resize_point_applies_axis_snap_after_angle_snap():
    other = make_segment("wall", 0, 0, 100, 0)
    resized = make_segment("wall", 40, 60, 60, 60)
    result = resolve_resize_point((40.0, 60.0), (49.0, 30.0), [other, resized], 1.0, [resized])
    assert result.kind is SnapKind.ANGLE
    assert result.point[0] == 50.0
    assert result.point[1] == pytest.approx(60.0 - math.hypot(9.0, 30.0))


def test_explicit_tolerances_override_scale():
    target = make_segment("wall", 0, 0, 100, 0)
    tol = Tolerances.for_scale(0.5)
    assert snap_point((50.0, 20.0), [target], 1.0, tolerances=tol) == (50.0, 0.0)
