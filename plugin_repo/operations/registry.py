"""Catalog and npm registry lookups."""

from logging import getLogger

import requests

logger = getLogger(__name__)


def fetch_catalog(
    catalog_url: str,
    bootstrap_package: str = "homebridge",
    excluded: list[str] | None = None,
    timeout: int = 30,
) -> list[str]:
    """Return the ordered list of packages to track.

    Args:
        catalog_url: URL of a JSON array of package names
        bootstrap_package: Package always tracked, placed first
        excluded: Package names never tracked
        timeout: Request timeout in seconds

    Returns:
        Package names in catalog order, without duplicates
    """
    result = requests.get(catalog_url, timeout=timeout)
    result.raise_for_status()

    names = result.json()
    if not isinstance(names, list):
        raise ValueError(f"Catalog at {catalog_url} is not a list")

    excluded_set = set(excluded or [])
    catalog = [name for name in names if isinstance(name, str) and name not in excluded_set]
    logger.info(f"Processing {len(catalog)} catalog packages")

    return list(dict.fromkeys([bootstrap_package, *catalog]))


def fetch_latest_version(
    package: str,
    registry_url: str = "https://registry.npmjs.org",
    timeout: int = 30,
) -> str:
    """Return the version tagged ``latest`` for a package.

    Raises:
        requests.RequestException: If the registry request fails
        ValueError: If the registry response carries no version
    """
    result = requests.get(f"{registry_url}/{package}/latest", timeout=timeout)
    result.raise_for_status()

    payload = result.json()
    version = payload.get("version") if isinstance(payload, dict) else None
    if not isinstance(version, str) or not version:
        raise ValueError(f"Registry returned no version for {package}")
    return version
