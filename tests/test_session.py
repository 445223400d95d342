from __future__ import annotations

import math

import pytest

from floorsnap.exceptions import InvalidScaleError
from floorsnap.model.segment import SegmentKind
from floorsnap.session.editor import EditSession
from tests.utils_segments import coords, make_segment


@pytest.fixture
def session(settings) -> EditSession:
    return EditSession(settings, scale=1.0)


def test_short_drag_is_discarded(session):
    assert session.create_segment("wall", (0.0, 0.0), (6.0, 5.0)) is None
    assert len(session.collection) == 0


def test_created_segment_uses_kind_defaults(session):
    door = session.create_segment(SegmentKind.DOOR, (0.0, 0.0), (40.0, 0.0))
    assert door is not None
    assert (door.width, door.height, door.color) == (2.0, 70.0, "#ffd700")
    assert door.subtype == "single"
    assert door.is_open is False


def test_free_drawing_snaps_to_45_degrees(session):
    segment = session.create_segment("wall", (0.0, 0.0), (100.0, 3.0))
    assert segment.y2 == pytest.approx(0.0, abs=1e-9)
    assert segment.x2 == pytest.approx(math.hypot(100.0, 3.0))


def test_drawing_a_door_into_a_wall_splits_it(session):
    wall = session.create_segment("wall", (0.0, 0.0), (100.0, 0.0))
    door = session.create_segment("door", (30.0, 0.0), (70.0, 0.0))

    walls = session.collection.walls()
    assert len(walls) == 2
    assert coords(wall) == pytest.approx((0.0, 0.0, 30.0, 0.0))
    assert coords(walls[1]) == pytest.approx((70.0, 0.0, 100.0, 0.0))
    assert door in session.collection


def test_moving_a_wall_onto_its_neighbour_merges_on_release(session):
    left = session.collection.add(make_segment("wall", 0, 0, 50, 0))
    right = session.collection.add(make_segment("wall", 70, 0, 120, 0))
    session.select([right])

    applied = session.move_selection((-18.0, 0.0))
    assert applied.x == pytest.approx(-20.0)
    assert applied.y == pytest.approx(0.0)
    assert coords(right) == pytest.approx((50.0, 0.0, 100.0, 0.0))

    session.finish_move()

    (merged,) = list(session.collection)
    assert coords(merged) == pytest.approx((0.0, 0.0, 100.0, 0.0))
    assert session.selection.ids == [merged.id]
    assert left not in session.collection


def test_move_without_snap_applies_raw_delta(session):
    session.collection.add(make_segment("wall", 0, 0, 50, 0))
    mover = session.collection.add(make_segment("wall", 70, 0, 120, 0))
    session.select([mover])

    assert session.move_selection((-18.0, 0.0), snap=False) == (-18.0, 0.0)
    assert coords(mover) == (52.0, 0.0, 102.0, 0.0)


def test_move_with_empty_selection_is_noop(session):
    session.collection.add(make_segment("wall", 0, 0, 50, 0))
    assert session.move_selection((5.0, 5.0)) == (0.0, 0.0)


def test_deleting_a_door_heals_the_wall(session):
    session.create_segment("wall", (0.0, 0.0), (100.0, 0.0))
    door = session.create_segment("door", (30.0, 0.0), (70.0, 0.0))
    session.select([door])

    assert session.delete_selected() == 1

    (healed,) = list(session.collection)
    assert healed.is_wall
    assert coords(healed) == pytest.approx((0.0, 0.0, 100.0, 0.0))
    assert len(session.selection) == 0


def test_resize_snaps_to_nearby_endpoint(session):
    session.collection.add(make_segment("wall", 0, 0, 100, 0))
    resized = session.collection.add(make_segment("wall", 100, 200, 100, 60))

    point = session.resize_endpoint(resized, "end", (103.0, 4.0))

    assert point == (100.0, 0.0)
    assert resized.end == (100.0, 0.0)


def test_resize_rejects_bad_handle_and_ignores_foreign_segment(session):
    inside = session.collection.add(make_segment("wall", 0, 0, 100, 0))
    with pytest.raises(ValueError):
        session.resize_endpoint(inside, "middle", (1.0, 1.0))

    stale = make_segment("wall", 0, 0, 1, 1)
    assert session.resize_endpoint(stale, "end", (7.0, 8.0)) == (7.0, 8.0)
    assert coords(stale) == (0, 0, 1, 1)
    assert list(session.collection) == [inside]


def test_finish_resize_splits_wall_around_contained_segment(session):
    wall = session.collection.add(make_segment("wall", 0, 0, 100, 0))
    window = session.collection.add(make_segment("window", 30, 40, 70, 40))
    window.y1 = window.y2 = 0.0

    session.finish_resize(window)

    assert len(session.collection.walls()) == 2
    assert wall.x2 == pytest.approx(30.0)


def test_box_select_needs_both_endpoints_inside(session):
    inside = session.collection.add(make_segment("furniture", 10, 10, 20, 20))
    edge = session.collection.add(make_segment("furniture", 0, 0, 30, 30))
    session.collection.add(make_segment("wall", 10, 10, 50, 10))

    hits = session.box_select((30.0, 30.0), (0.0, 0.0))

    assert hits == [inside, edge]
    assert session.selection.ids == [inside.id, edge.id]


def test_hit_test_and_handles_follow_zoom(settings):
    session = EditSession(settings, scale=2.0)
    segment = session.collection.add(make_segment("wall", 0, 0, 100, 0))

    assert session.hit_test((50.0, 3.9)) is segment
    assert session.hit_test((50.0, 4.1)) is None
    assert session.handle_at((4.0, 0.0), segment) == "start"
    assert session.handle_at((97.0, 1.0), segment) == "end"
    assert session.handle_at((50.0, 0.0), segment) is None


def test_rotate_selection_about_its_center(session):
    segment = session.collection.add(make_segment("furniture", 0, 0, 10, 0))
    session.select([segment])

    session.rotate_selection(math.pi / 2)

    assert coords(segment) == pytest.approx((5.0, -5.0, 5.0, 5.0))


def test_flip_selection_around_anchor(session):
    segment = session.collection.add(make_segment("furniture", 0, 0, 10, 0))
    session.select([segment])

    session.flip_selection("horizontal", anchor=(20.0, 0.0))
    assert coords(segment) == (40.0, 0.0, 30.0, 0.0)

    with pytest.raises(ValueError):
        session.flip_selection("diagonal")


def test_move_started_uses_screen_threshold(settings):
    session = EditSession(settings, scale=5.0)
    assert not session.move_started((0.0, 0.0), (0.9, 0.0))
    assert session.move_started((0.0, 0.0), (1.1, 0.0))


def test_scale_must_be_positive(session):
    with pytest.raises(InvalidScaleError):
        session.scale = 0.0
    session.scale = 4.0
    assert session.tolerances.snap_distance == pytest.approx(3.75)


def test_toggle_selection_adds_then_removes(session):
    first = session.collection.add(make_segment("wall", 0, 0, 100, 0))
    second = session.collection.add(make_segment("door", 0, 50, 40, 50))
    session.select([first])

    session.toggle_selection(second)
    assert session.selection.ids == [first.id, second.id]

    session.toggle_selection(first)
    assert session.selection.ids == [second.id]


def test_copy_then_paste_centres_on_target_with_offset(settings):
    session = EditSession(settings, scale=2.0)
    source = session.collection.add(make_segment("furniture", 0, 0, 40, 20, color="#123456"))
    session.select([source])

    assert session.copy_selection() == 1
    pasted = session.paste_clipboard((100.0, 100.0))

    (clone,) = pasted
    # bounds center (20, 10) lands on the target plus 20px / 2.0 scale
    assert coords(clone) == pytest.approx((90.0, 100.0, 130.0, 120.0))
    assert clone.id != source.id
    assert clone.color == "#123456"
    assert coords(source) == (0, 0, 40, 20)
    assert list(session.collection) == [source, clone]
    assert session.selection.ids == [clone.id]


def test_each_paste_gets_fresh_ids(session):
    source = session.collection.add(make_segment("window", 0, 0, 10, 0))
    session.select([source])
    session.copy_selection()

    first = session.paste_clipboard()
    second = session.paste_clipboard()

    ids = {source.id, first[0].id, second[0].id}
    assert len(ids) == 3
    assert coords(first[0]) == pytest.approx((15.0, 20.0, 25.0, 20.0))
    assert session.selection.ids == [second[0].id]


def test_clipboard_is_independent_of_later_edits(session):
    source = session.collection.add(make_segment("furniture", 0, 0, 10, 0))
    session.select([source])
    session.copy_selection()
    source.translate(500, 500)

    (clone,) = session.paste_clipboard((5.0, 0.0))

    assert coords(clone) == pytest.approx((20.0, 20.0, 30.0, 20.0))


def test_paste_with_empty_clipboard_is_noop(session):
    session.select([])
    assert session.copy_selection() == 0
    assert session.paste_clipboard((10.0, 10.0)) == []
    assert len(session.collection) == 0
