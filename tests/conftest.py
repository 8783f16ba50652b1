"""Shared pytest configuration and fixtures for the Casdoor client tests."""

from __future__ import annotations

import pytest

from casdoor_client.config import CasdoorConfig


def pytest_configure(config):
    """Register the live marker."""
    config.addinivalue_line(
        "markers", "live: mark test as talking to a real Casdoor server"
    )


def pytest_addoption(parser):
    """Add live option to pytest."""
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="run live tests against a Casdoor server",
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless explicitly requested."""
    if config.getoption("--live", default=False):
        return
    skip_live = pytest.mark.skip(reason="Need --live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# --------------------------------------------------------------------------- #
# Fixtures                                                                    #
# --------------------------------------------------------------------------- #
@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def config() -> CasdoorConfig:
    """Config pointing at an in-memory Casdoor on ``id.example``."""
    return CasdoorConfig(
        endpoint="https://id.example/",
        api_endpoint="https://id.example/api/",
        client_id="abc",
        organization_name="built-in",
        application_name="app-built-in",
        redirect_uri="https://app.example/cb",
    )


@pytest.fixture(autouse=True)
def _clean_casdoor_env(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient ``CASDOOR_*`` variables from leaking into unit tests."""
    if request.node.get_closest_marker("live"):
        return
    for name in (
        "CASDOOR_ENDPOINT",
        "CASDOOR_API_ENDPOINT",
        "CASDOOR_CLIENT_ID",
        "CASDOOR_CLIENT_SECRET",
        "CASDOOR_ORGANIZATION_NAME",
        "CASDOOR_APPLICATION_NAME",
        "CASDOOR_APPLICATION_OWNER",
        "CASDOOR_REDIRECT_URI",
        "CASDOOR_VERIFY_SSL",
    ):
        monkeypatch.delenv(name, raising=False)
