"""
Pytest configuration and fixtures.
"""

import pytest

from fake_app import FakePageSpec, FakeWebApp, build_settings, link


@pytest.fixture
def settings():
    """Provide default test settings (desktop only, no delays)."""
    return build_settings()


@pytest.fixture
def settings_app():
    """Two pages: Home links to Settings, Settings links back Home."""
    return FakeWebApp({
        "/": FakePageSpec("Home", [link("#settings", "Settings", "/settings")]),
        "/settings": FakePageSpec("Settings", [link("#home", "Home", "/")]),
    })
