"""Unit tests for catalog and registry lookups."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from plugin_repo.operations.registry import fetch_catalog, fetch_latest_version


def _response(payload) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestFetchCatalog:
    """Test catalog assembly."""

    def test_prepends_bootstrap_and_removes_excluded(self):
        payload = ["homebridge-foo", "homebridge-config-ui-x", "homebridge-bar"]

        with patch("plugin_repo.operations.registry.requests.get", return_value=_response(payload)):
            catalog = fetch_catalog(
                "https://example.com/verified.json",
                bootstrap_package="homebridge",
                excluded=["homebridge-config-ui-x"],
            )

        assert catalog == ["homebridge", "homebridge-foo", "homebridge-bar"]

    def test_drops_duplicates_keeping_first(self):
        payload = ["homebridge-foo", "homebridge", "homebridge-foo"]

        with patch("plugin_repo.operations.registry.requests.get", return_value=_response(payload)):
            catalog = fetch_catalog("https://example.com/verified.json")

        assert catalog == ["homebridge", "homebridge-foo"]

    def test_rejects_non_list_payload(self):
        with patch(
            "plugin_repo.operations.registry.requests.get",
            return_value=_response({"plugins": []}),
        ):
            with pytest.raises(ValueError):
                fetch_catalog("https://example.com/verified.json")

    def test_http_error_propagates(self):
        response = _response([])
        response.raise_for_status.side_effect = requests.HTTPError("503")

        with patch("plugin_repo.operations.registry.requests.get", return_value=response):
            with pytest.raises(requests.HTTPError):
                fetch_catalog("https://example.com/verified.json")


class TestFetchLatestVersion:
    """Test latest version lookup."""

    def test_returns_latest_version(self):
        with patch(
            "plugin_repo.operations.registry.requests.get",
            return_value=_response({"name": "@scope/pkg", "version": "2.1.0"}),
        ) as get:
            version = fetch_latest_version("@scope/pkg", "https://registry.npmjs.org", timeout=5)

        assert version == "2.1.0"
        get.assert_called_once_with("https://registry.npmjs.org/@scope/pkg/latest", timeout=5)

    def test_missing_version_raises(self):
        with patch(
            "plugin_repo.operations.registry.requests.get", return_value=_response({"error": "x"})
        ):
            with pytest.raises(ValueError):
                fetch_latest_version("homebridge-gone")

    def test_non_mapping_response_raises_value_error(self):
        """A malformed response skips the package instead of aborting the run."""
        with patch(
            "plugin_repo.operations.registry.requests.get", return_value=_response(["2.1.0"])
        ):
            with pytest.raises(ValueError):
                fetch_latest_version("homebridge-odd")
