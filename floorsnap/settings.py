from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from floorsnap.exceptions import ConfigurationError
from floorsnap.geometry import contract

_PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "default.yaml"

# Load .env file from project root
_env_path = _PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class ToleranceSettings(BaseModel):
    # Screen-space distances (px), divided by the zoom scale at use
    snap_px: float = Field(contract.SNAP_DISTANCE_PX, gt=0.0)
    alignment_px: float = Field(contract.ALIGNMENT_DISTANCE_PX, gt=0.0)
    axis_snap_px: float = Field(contract.AXIS_SNAP_DISTANCE_PX, gt=0.0)
    merge_px: float = Field(contract.MERGE_DISTANCE_PX, gt=0.0)

    # World / projection units
    collinear_tolerance: float = Field(contract.COLLINEAR_TOLERANCE, gt=0.0)
    containment_epsilon: float = Field(contract.CONTAINMENT_EPSILON, ge=0.0, lt=0.5)
    overlap_epsilon: float = Field(contract.OVERLAP_EPSILON, ge=0.0)
    gap_touch_tolerance: float = Field(contract.GAP_TOUCH_TOLERANCE, ge=0.0)
    gap_overlap_epsilon: float = Field(contract.GAP_OVERLAP_EPSILON, ge=0.0)


class EditorSettings(BaseModel):
    min_segment_length: float = Field(contract.MIN_SEGMENT_LENGTH, ge=0.0)
    angle_increment_deg: float = Field(contract.ANGLE_SNAP_INCREMENT_DEG, gt=0.0, le=180.0)
    hit_px: float = Field(contract.HIT_DISTANCE_PX, gt=0.0)
    handle_px: float = Field(contract.HANDLE_SIZE_PX, gt=0.0)
    move_start_px: float = Field(contract.MOVE_START_PX, ge=0.0)
    paste_offset_px: float = Field(contract.PASTE_OFFSET_PX, ge=0.0)


class SegmentStyle(BaseModel):
    width: float = Field(..., gt=0.0)
    height: float = Field(..., gt=0.0)
    color: str = "#ffffff"

    @field_validator("color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        from floorsnap.model.segment import normalize_color

        return normalize_color(value)


def _default_styles() -> dict[str, SegmentStyle]:
    return {
        "wall": SegmentStyle(width=3.0, height=80.0, color="#00ffcc"),
        "door": SegmentStyle(width=2.0, height=70.0, color="#ffd700"),
        "window": SegmentStyle(width=2.0, height=50.0, color="#87cefa"),
        "furniture": SegmentStyle(width=3.0, height=45.0, color="#ff69b4"),
    }


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    log_file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        level = str(value or "INFO").upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class Settings(BaseModel):
    tolerances: ToleranceSettings = Field(default_factory=ToleranceSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    segment_defaults: dict[str, SegmentStyle] = Field(default_factory=_default_styles)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("segment_defaults", mode="before")
    @classmethod
    def _merge_styles(cls, value: Any) -> Any:
        if value is None:
            return _default_styles()
        if not isinstance(value, dict):
            raise ValueError("segment_defaults must be a mapping of kind to style")
        merged: dict[str, Any] = dict(_default_styles())
        merged.update(value)
        return merged

    def style_for(self, kind: str) -> SegmentStyle:
        """Default style for a segment kind; unknown kinds fall back to wall."""
        return self.segment_defaults.get(kind) or self.segment_defaults["wall"]

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                FLOORSNAP_CONFIG environment variable or config/default.yaml.

        Returns:
            Settings instance with loaded configuration. Built-in defaults are
            used when no file was requested and the default file is absent.

        Raises:
            ConfigurationError: If a requested file does not exist or is invalid.
        """
        requested = path or (Path(os.environ["FLOORSNAP_CONFIG"]) if os.getenv("FLOORSNAP_CONFIG") else None)
        config_path = requested or DEFAULT_CONFIG_PATH
        if not config_path.exists():
            if requested is not None:
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    {"path": str(config_path)},
                )
            return cls()
        with config_path.open("r", encoding="utf-8") as fp:
            try:
                payload = yaml.safe_load(fp) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}", {"path": str(config_path)}) from exc
        try:
            return cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "Settings",
    "ToleranceSettings",
    "EditorSettings",
    "SegmentStyle",
    "LoggingSettings",
    "get_settings",
]
