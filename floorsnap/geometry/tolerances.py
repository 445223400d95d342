"""Zoom-dependent tolerance budget.

Screen-space thresholds shrink in world units as the user zooms in, so the hit
area stays the same size on screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from floorsnap.exceptions import InvalidScaleError
from floorsnap.geometry import contract
from floorsnap.settings import ToleranceSettings, get_settings


@dataclass(frozen=True)
class Tolerances:
    scale: float
    snap_distance: float
    alignment_distance: float
    axis_snap_distance: float
    merge_distance: float
    collinear_tolerance: float = contract.COLLINEAR_TOLERANCE
    containment_epsilon: float = contract.CONTAINMENT_EPSILON
    overlap_epsilon: float = contract.OVERLAP_EPSILON
    gap_touch_tolerance: float = contract.GAP_TOUCH_TOLERANCE
    gap_overlap_epsilon: float = contract.GAP_OVERLAP_EPSILON

    @classmethod
    def for_scale(cls, scale: float, settings: ToleranceSettings | None = None) -> "Tolerances":
        """Build the budget for ``scale`` pixels per world unit.

        Without explicit ``settings`` the loaded configuration is used.

        Raises:
            InvalidScaleError: If ``scale`` is not a positive finite number.
        """
        try:
            scale = float(scale)
        except (TypeError, ValueError) as exc:
            raise InvalidScaleError(f"Scale must be numeric, got {scale!r}") from exc
        if not math.isfinite(scale) or scale <= 0.0:
            raise InvalidScaleError(f"Scale must be positive and finite, got {scale}", {"scale": str(scale)})

        cfg = settings or get_settings().tolerances
        return cls(
            scale=scale,
            snap_distance=contract.screen_to_world(cfg.snap_px, scale),
            alignment_distance=contract.screen_to_world(cfg.alignment_px, scale),
            axis_snap_distance=contract.screen_to_world(cfg.axis_snap_px, scale),
            merge_distance=contract.screen_to_world(cfg.merge_px, scale),
            collinear_tolerance=cfg.collinear_tolerance,
            containment_epsilon=cfg.containment_epsilon,
            overlap_epsilon=cfg.overlap_epsilon,
            gap_touch_tolerance=cfg.gap_touch_tolerance,
            gap_overlap_epsilon=cfg.gap_overlap_epsilon,
        )
