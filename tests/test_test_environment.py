"""Tests for resolving test environment configs into environment variables."""

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from cijobs import test_environment
from cijobs.test_environment import (
    STABLE_CHECK_URL,
    VERSION_CHECK_URL,
    TestEnvError,
    WordPressVersions,
    is_prerelease_label,
    parse_test_env_config,
    resolve_wp_version,
)

STABLE = {
    "6.3": "insecure",
    "6.3.2": "outdated",
    "6.3.4": "outdated",
    "6.4": "outdated",
    "6.4.2": "outdated",
    "6.4.3": "latest",
    "6.2.5": "outdated",
}

BETA_WITH_OFFER = {
    "offers": [
        {"response": "development", "version": "6.5-RC2"},
        {"response": "autoupdate", "version": "6.4.3"},
    ]
}

BETA_WITHOUT_OFFER = {
    "offers": [
        {"response": "upgrade", "version": "6.4.3"},
        {"response": "autoupdate", "version": "6.4-RC1"},
    ]
}


def _fetcher(beta=BETA_WITH_OFFER, stable=STABLE):
    def _fetch(url):
        if url == STABLE_CHECK_URL:
            return stable
        if url == f"{VERSION_CHECK_URL}?channel=beta":
            return beta
        raise AssertionError(f"unexpected url {url}")

    return _fetch


class TestWordPressVersions:
    def test_latest(self):
        assert WordPressVersions(_fetcher()).latest_offset(0) == "6.4.3"

    def test_previous_majors(self):
        versions = WordPressVersions(_fetcher())
        assert versions.latest_offset(1) == "6.3.4"
        assert versions.latest_offset(2) == "6.2.5"
        assert versions.latest_offset(3) is None

    def test_prerelease_offer(self):
        assert WordPressVersions(_fetcher()).prerelease() == "6.5-RC2"

    def test_stale_prerelease_ignored(self):
        assert WordPressVersions(_fetcher(beta=BETA_WITHOUT_OFFER)).prerelease() is None


class TestResolveWpVersion:
    def test_exact_version(self):
        env = resolve_wp_version("6.4.2", WordPressVersions(_fetcher()))
        assert env == {
            "WP_ENV_CORE": "https://wordpress.org/wordpress-6.4.2.zip",
            "WP_VERSION": "6.4.2",
        }

    def test_latest_minus_one(self):
        env = resolve_wp_version("latest-1", WordPressVersions(_fetcher()))
        assert env["WP_VERSION"] == "6.3.4"

    def test_trunk(self):
        env = resolve_wp_version("trunk", WordPressVersions(_fetcher()))
        assert env == {"WP_ENV_CORE": "WordPress/WordPress#master"}

    @pytest.mark.parametrize("label", ["beta", "rc", "prerelease", "pre-release", "RC"])
    def test_prerelease_labels(self, label):
        env = resolve_wp_version(label, WordPressVersions(_fetcher()))
        assert env["WP_VERSION"] == "6.5-RC2"

    def test_prerelease_unavailable(self):
        env = resolve_wp_version("prerelease", WordPressVersions(_fetcher(beta=BETA_WITHOUT_OFFER)))
        assert env == {}

    def test_prerelease_lookup_failure_means_unavailable(self):
        def _fail(url):
            raise TestEnvError("Network error")

        assert resolve_wp_version("beta", WordPressVersions(_fail)) == {}

    def test_offers_without_version_are_skipped(self):
        beta = {"offers": [{"response": "development"}, {"version": "6.5-RC1"}]}
        versions = WordPressVersions(_fetcher(beta=beta))
        assert versions.prerelease() == "6.5-RC1"

    def test_prerelease_with_only_malformed_offers(self):
        beta = {"offers": [{"response": "development"}, {"version": None}, "6.5-RC1"]}
        assert resolve_wp_version("prerelease", WordPressVersions(_fetcher(beta=beta))) == {}

    def test_unsupported(self):
        with pytest.raises(TestEnvError, match="Unsupported wpVersion"):
            resolve_wp_version("six-point-four", WordPressVersions(_fetcher()))


class TestParseTestEnvConfig:
    @pytest.mark.asyncio
    async def test_wp_and_php(self):
        env = await parse_test_env_config(
            {"wp_version": "latest", "php_version": "8.1"},
            WordPressVersions(_fetcher()),
        )
        assert env == {
            "WP_ENV_CORE": "https://wordpress.org/wordpress-6.4.3.zip",
            "WP_VERSION": "6.4.3",
            "WP_ENV_PHP_VERSION": "8.1",
        }

    @pytest.mark.asyncio
    async def test_empty_config(self):
        assert await parse_test_env_config({}, WordPressVersions(_fetcher())) == {}


class TestFetchJson:
    def test_decodes_response(self):
        response = MagicMock()
        response.read.return_value = json.dumps(STABLE).encode("utf-8")
        response.__enter__.return_value = response

        with patch.object(test_environment.urllib.request, "urlopen", return_value=response):
            assert test_environment._fetch_json(STABLE_CHECK_URL) == STABLE

    def test_http_error(self):
        error = urllib.error.HTTPError(STABLE_CHECK_URL, 503, "Service Unavailable", {}, io.BytesIO(b""))
        with patch.object(test_environment.urllib.request, "urlopen", side_effect=error):
            with pytest.raises(TestEnvError, match="503"):
                test_environment._fetch_json(STABLE_CHECK_URL)


def test_is_prerelease_label():
    assert is_prerelease_label("Beta")
    assert not is_prerelease_label("latest")
    assert not is_prerelease_label(None)
