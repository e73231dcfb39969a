"""Bundle construction orchestrator.

Materializes an archive and checksum pair in the work directory for every
package that needs a new bundle.
"""

import shutil
from logging import getLogger
from pathlib import Path

from plugin_repo.config import Settings
from plugin_repo.domain.models import AssetKind, BundleArtifact, PackageRecord, RunContext
from plugin_repo.domain.naming import asset_name
from plugin_repo.operations.toolchain import NpmToolchain
from plugin_repo.ui import Reporter

logger = getLogger(__name__)


class BundleCache:
    """Idempotent, failure-isolated bundle builder.

    A bundle whose archive and checksum are both on disk is never rebuilt, so a
    run interrupted between building and uploading resumes without reinstalling.
    Each install happens in a throwaway directory under ``<work_dir>/install``
    that is removed whether or not the build succeeds.
    """

    INSTALL_DIR_NAME = "install"

    def __init__(self, config: Settings | None = None, toolchain: NpmToolchain | None = None):
        """Initialize the bundle cache.

        Args:
            config: Pipeline configuration. If None, creates new Settings() from environment.
            toolchain: Installer and packer. Defaults to npm.
        """
        self.config = config if config is not None else Settings()
        self.toolchain = toolchain or NpmToolchain(self.config.npm_command)

    @property
    def work_dir(self) -> Path:
        return self.config.work_dir

    @property
    def install_root(self) -> Path:
        return self.work_dir / self.INSTALL_DIR_NAME

    def artifact_for(self, record: PackageRecord) -> BundleArtifact:
        """Return the expected bundle files for a package version."""
        return BundleArtifact(
            package=record.name,
            version=record.latest_version,
            archive_path=self.work_dir
            / asset_name(record.name, record.latest_version, AssetKind.ARCHIVE),
            checksum_path=self.work_dir
            / asset_name(record.name, record.latest_version, AssetKind.CHECKSUM),
        )

    def install_dir_for(self, record: PackageRecord) -> Path:
        return self.install_root / f"{record.name.replace('/', '@')}@{record.latest_version}"

    def ensure_bundles(self, context: RunContext, reporter: Reporter | None = None) -> RunContext:
        """Build bundles for every stale package in the context.

        Args:
            context: Run context with resolved package records
            reporter: Optional reporter for progress and failures

        Returns:
            Context whose stale records carry ``packaged`` set to the outcome
        """
        reporter = reporter or Reporter(silent=True)
        stale = context.stale_packages
        reporter.report_packages_to_bundle(len(stale), len(context.packages))

        self._remove_orphaned_install_dirs()

        records: list[PackageRecord] = []
        with reporter.bundle_context():
            progress_hook = reporter.create_bundle_progress_hook()
            built = 0

            for record in context.packages:
                if not record.needs_bundle:
                    records.append(record)
                    continue

                packaged = self.ensure_bundle(record, reporter)
                records.append(record.model_copy(update={"packaged": packaged}))

                built += 1
                progress_hook(record.name, built, len(stale))

        return context.model_copy(update={"packages": records})

    def ensure_bundle(self, record: PackageRecord, reporter: Reporter | None = None) -> bool:
        """Make sure the bundle for one package exists.

        Returns:
            True if a complete archive and checksum pair is on disk
        """
        artifact = self.artifact_for(record)
        if artifact.exists:
            logger.info(f"Reusing existing bundle for {record.name}@{record.latest_version}")
            return True

        install_dir = self.install_dir_for(record)
        logger.info(f"Bundling {record.name}@{record.latest_version} in {install_dir}")

        try:
            shutil.rmtree(install_dir, ignore_errors=True)
            tree = self.toolchain.install(record.name, record.latest_version, install_dir)
            self.toolchain.archive(tree, artifact.archive_path)
            self.toolchain.checksum(artifact.archive_path, artifact.checksum_path)
        except Exception as e:
            logger.warning(f"Failed to pack {record.name}: {e}")
            if reporter:
                reporter.report_error(f"Failed to pack {record.name}: {e}")
            artifact.archive_path.unlink(missing_ok=True)
            artifact.checksum_path.unlink(missing_ok=True)
            return False
        finally:
            shutil.rmtree(install_dir, ignore_errors=True)

        return True

    def _remove_orphaned_install_dirs(self) -> None:
        """Remove install directories left behind by a killed run."""
        if not self.install_root.exists():
            return
        for leftover in self.install_root.iterdir():
            logger.debug(f"Removing orphaned install directory {leftover}")
            if leftover.is_dir():
                shutil.rmtree(leftover, ignore_errors=True)
            else:
                leftover.unlink(missing_ok=True)
