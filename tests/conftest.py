"""
Pytest configuration and shared fixtures for the cijobs test suite.
"""

import sys
from pathlib import Path

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cijobs.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def console():
    """Give every test a fresh, non-debug console."""
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def resolver_calls():
    return []


@pytest.fixture
def fake_resolver(resolver_calls):
    """
    Test environment resolver that never touches the network.

    Exact versions resolve to themselves, "prerelease"-style labels resolve
    to nothing, and the PHP version is passed through.
    """

    async def _resolve(config):
        resolver_calls.append(dict(config))
        env = {}
        wp_version = config.get("wp_version")
        if wp_version and wp_version[0].isdigit():
            env["WP_VERSION"] = wp_version
        if config.get("php_version"):
            env["WP_ENV_PHP_VERSION"] = config["php_version"]
        return env

    return _resolve
