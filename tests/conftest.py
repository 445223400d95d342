from __future__ import annotations

import pytest

from floorsnap.settings import Settings, get_settings
from tests.utils_segments import make_segment


@pytest.fixture
def wall():
    def _wall(x1: float, y1: float, x2: float, y2: float, **attrs):
        attrs.setdefault("width", 3.0)
        attrs.setdefault("height", 80.0)
        attrs.setdefault("color", "#00ffcc")
        return make_segment("wall", x1, y1, x2, y2, **attrs)

    return _wall


@pytest.fixture(autouse=True)
def fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()
