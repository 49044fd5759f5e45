# tests/conftest.py
"""Shared fixtures for Monolith tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to path so tests run without installing the package
_src_path = str(Path(__file__).parent.parent / "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

from monolith.registry import InstanceCounter  # noqa: E402
from monolith.templates import reset_jinja_env  # noqa: E402
from monolith.video import Video  # noqa: E402
from tests.fixtures.samples import ICON_SVG  # noqa: E402

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def counter():
    """A private instance counter starting at zero."""
    return InstanceCounter()


@pytest.fixture
def icon_file(tmp_path):
    """ICON_SVG written to disk."""
    path = tmp_path / "icon.svg"
    path.write_bytes(ICON_SVG.encode("utf-8"))
    return path


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep Monolith settings and shared state from leaking between tests."""
    for key in (
        "MONOLITH_HTTP_TIMEOUT",
        "MONOLITH_VIDEO_CACHE_TTL",
        "MONOLITH_VIDEO_CACHE_DIR",
        "MONOLITH_DEFAULT_COUNTRY_CODE",
        "MONOLITH_EVENT_SAMPLE_RATE",
    ):
        monkeypatch.delenv(key, raising=False)

    # Wide events are sampled; tests that inspect them opt back in
    monkeypatch.setenv("MONOLITH_EVENT_SAMPLE_RATE", "0")

    Video.cache(None)
    reset_jinja_env()
    yield
    Video.cache(None)
    reset_jinja_env()
