from __future__ import annotations

"""
Geometry Contract

Single source of truth for the numeric thresholds used by the snap resolver
and the topology maintainer. Screen-space values end with _PX and are divided
by the zoom scale (pixels per world unit) before use; everything else is in
world units or normalized projection units.
"""

# Degeneracy
DEGENERATE_LENGTH_SQ = 1e-6  # squared world units (length < 1e-3)

# Snapping (screen space)
SNAP_DISTANCE_PX = 15.0
ALIGNMENT_DISTANCE_PX = 40.0
AXIS_SNAP_DISTANCE_PX = 12.0
ANGLE_SNAP_INCREMENT_DEG = 45.0

# Topology
MERGE_DISTANCE_PX = 150.0
COLLINEAR_TOLERANCE = 6.0  # world units of perpendicular distance
CONTAINMENT_EPSILON = 0.01  # normalized projection units
OVERLAP_EPSILON = 0.01  # normalized projection units
GAP_TOUCH_TOLERANCE = 2.0  # world units
GAP_OVERLAP_EPSILON = 0.001  # normalized projection units

# Editing
MIN_SEGMENT_LENGTH = 10.0  # world units
HIT_DISTANCE_PX = 8.0
HANDLE_SIZE_PX = 10.0
MOVE_START_PX = 5.0
PASTE_OFFSET_PX = 20.0


def screen_to_world(distance_px: float, scale: float) -> float:
    """Convert a screen-space distance to world units at the given zoom."""
    return float(distance_px / scale)
