"""Package installation, archiving and checksumming."""

import hashlib
import os
import subprocess
import tarfile
from logging import getLogger
from pathlib import Path

import orjson
from atomicwrites import atomic_write

logger = getLogger(__name__)

# npm configuration applied to every install; values already set in the
# environment take precedence.
NPM_ENVIRONMENT = {
    "npm_config_audit": "false",
    "npm_config_fund": "false",
    "npm_config_update_notifier": "false",
    "npm_config_auto_install_peers": "true",
    "npm_config_global_style": "true",
    "npm_config_ignore_scripts": "true",
    "npm_config_package_lock": "false",
    "npm_config_loglevel": "error",
}

LOCKFILE_NAME = ".package-lock.json"


def compute_sha256(file_path: Path, chunk_size: int = 64 * 1024) -> str:
    """Compute SHA256 hash of a file.

    Args:
        file_path: Path to the file
        chunk_size: Size of chunks to read (default 64KB)

    Returns:
        Hexadecimal SHA256 hash string
    """
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            sha256_hash.update(chunk)
    return sha256_hash.hexdigest()


def _exclude_lockfile(member: tarfile.TarInfo) -> tarfile.TarInfo | None:
    if Path(member.name).name == LOCKFILE_NAME:
        return None
    return member


class NpmToolchain:
    """Installs a package with npm and packs its dependency tree."""

    def __init__(self, npm_command: str = "npm"):
        self.npm_command = npm_command

    def install(self, package: str, version: str, target_dir: Path) -> Path:
        """Install exactly ``package@version`` into ``target_dir``.

        Install scripts are disabled and no lockfile is written. Returns the
        ``node_modules`` directory holding the installed tree.

        Raises:
            subprocess.CalledProcessError: If npm exits with an error
        """
        target_dir.mkdir(parents=True, exist_ok=True)
        manifest = target_dir / "package.json"
        manifest.write_bytes(orjson.dumps({"private": True}))

        env = {**NPM_ENVIRONMENT, **os.environ}
        try:
            subprocess.run(
                [self.npm_command, "install", f"{package}@{version}"],
                cwd=target_dir,
                env=env,
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"npm install {package}@{version} failed: {e.stderr.strip()}")
            raise

        manifest.unlink(missing_ok=True)
        node_modules = target_dir / "node_modules"
        (node_modules / LOCKFILE_NAME).unlink(missing_ok=True)
        return node_modules

    def archive(self, source_dir: Path, archive_path: Path) -> Path:
        """Pack the contents of ``source_dir`` into a POSIX gzip tarball.

        The tarball is built under a temporary name and moved into place once
        complete, so ``archive_path`` never holds a truncated archive.
        """
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Nothing to archive at {source_dir}")

        partial_path = archive_path.with_name(f"{archive_path.name}.partial")
        try:
            with tarfile.open(partial_path, "w:gz", format=tarfile.PAX_FORMAT) as tar:
                tar.add(source_dir, arcname=".", filter=_exclude_lockfile)
            partial_path.replace(archive_path)
        finally:
            partial_path.unlink(missing_ok=True)
        return archive_path

    def checksum(self, archive_path: Path, checksum_path: Path) -> Path:
        """Write a ``shasum -a 256`` compatible checksum file atomically."""
        digest = compute_sha256(archive_path)
        with atomic_write(checksum_path, mode="w", overwrite=True) as f:
            f.write(f"{digest}  {archive_path.name}\n")
        return checksum_path
