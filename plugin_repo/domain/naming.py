"""Asset naming conventions.

Assets are stored under a file-system friendly name and carry a label from
which the package identity is recovered, since the release schema has no room
for custom metadata:

    name:  @scope@plugin-1.2.3.tar.gz
    label: @scope/plugin@1.2.3.tar.gz
"""

from typing import NamedTuple

from plugin_repo.domain.models import AssetKind


class AssetIdentity(NamedTuple):
    """Package identity decoded from an asset label."""

    package: str
    version: str
    kind: AssetKind


def asset_kind(filename: str) -> AssetKind | None:
    """Return the asset kind implied by a file name, if any."""
    for kind in AssetKind:
        if filename.endswith(kind.suffix):
            return kind
    return None


def asset_name(package: str, version: str, kind: AssetKind) -> str:
    """Return the file name for a package bundle asset."""
    return f"{package.replace('/', '@')}-{version}{kind.suffix}"


def asset_label(package: str, version: str, kind: AssetKind) -> str:
    """Return the display label that encodes the package identity."""
    return f"{package}@{version}{kind.suffix}"


def parse_label(label: str) -> AssetIdentity | None:
    """Decode ``(package, version, kind)`` from a label.

    The package is everything before the last ``@`` so scoped names survive.
    Returns None for labels that were not produced by :func:`asset_label`.
    """
    kind = asset_kind(label)
    separator = label.rfind("@")
    if kind is None or separator <= 0:
        return None

    package = label[:separator]
    version = label[separator + 1 :].removesuffix(kind.suffix)
    if not version:
        return None
    return AssetIdentity(package, version, kind)
