"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import logging
import os
from pathlib import Path

import pytest

from dify_app.client import CacheConfig, RateLimitConfig, RateLimiter, ResponseCache
from dify_app.client.gateway import RequestGateway
from tests.helpers import FakeTransport, ManualClock

TEST_API_KEY = "app-test-secret-key-0123456789abcdef"


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_dify_env(request, monkeypatch):
    """Ensure a clean DIFY_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("DIFY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_home_config(request, monkeypatch, tmp_path):
    """Point the home-config path to an isolated temp file by default.

    Prevents reading a developer's real ~/.config/dify_app.toml during tests.
    """
    if request.node.get_closest_marker("allow_real_home_config"):
        return

    fake_home_dir = tmp_path / "home_config_isolated"
    fake_home_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("DIFY_APP_CONFIG_HOME", str(fake_home_dir / "dify_app.toml"))


@pytest.fixture
def isolated_config_sources(tmp_path, monkeypatch):
    """Create project/home TOML files and env vars for one resolution.

    Yields the project root to pass as ``project_root``.
    """

    @contextmanager
    def _setup(
        *,
        pyproject_content: str = "",
        home_content: str = "",
        env_vars: dict[str, str] | None = None,
    ) -> Iterator[Path]:
        project_dir = tmp_path / "project"
        project_dir.mkdir(exist_ok=True)
        (project_dir / "pyproject.toml").write_text(pyproject_content)

        home_config_path = tmp_path / "home" / "dify_app.toml"
        home_config_path.parent.mkdir(exist_ok=True)
        if home_content:
            home_config_path.write_text(home_content)
        monkeypatch.setenv("DIFY_APP_CONFIG_HOME", str(home_config_path))

        for key, value in (env_vars or {}).items():
            monkeypatch.setenv(key, value)

        yield project_dir

    return _setup


# --- Core Fixtures ---


@pytest.fixture
def api_key() -> str:
    """A consistent, fake API key for tests."""
    return TEST_API_KEY


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_gateway(api_key, clock, transport) -> Callable[..., RequestGateway]:
    """Build a gateway on the fake transport and manual clock."""

    def _make(
        *,
        max_requests: int = 60,
        window_ms: int = 60_000,
        ttl_ms: int = 300_000,
        max_entries: int | None = None,
    ) -> RequestGateway:
        return RequestGateway(
            api_key,
            "https://api.example.test/v1",
            transport=transport,
            rate_limiter=RateLimiter(
                RateLimitConfig(max_requests=max_requests, window_ms=window_ms),
                clock=clock,
            ),
            cache=ResponseCache(
                CacheConfig(ttl_ms=ttl_ms, max_entries=max_entries), clock=clock
            ),
        )

    return _make


@pytest.fixture
def gateway(make_gateway) -> RequestGateway:
    return make_gateway()


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with a fake transport",
        "contract: Behavioral guarantees of the public API",
        "security: Secret handling guarantees",
        "allow_env_pollution: Keep DIFY_* variables from the real environment",
        "allow_real_home_config: Read the real home configuration file",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
