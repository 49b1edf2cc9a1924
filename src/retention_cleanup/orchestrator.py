"""Run a cleanup pass over all configured folders."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .archive import ArchivePackager, ArchiveResult
from .probe import LivenessProbe
from .transfer import SafeTransfer, unique_path
from .walker import DirectoryWalker, TransferRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import QuarantineTarget, RetentionPolicy


# Refused together with their direct children
CRITICAL_ROOTS: frozenset[str] = frozenset(
    {"/", "/home", "/users", "c:/users"} | {f"{chr(letter)}:" for letter in range(ord("a"), ord("z") + 1)}
)

# Refused together with everything beneath them
CRITICAL_TREES: frozenset[str] = frozenset({
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/lib64",
    "/proc",
    "/sbin",
    "/sys",
    "/usr",
    "/var",
    "/system",
    "/library",
    "/applications",
    "/private/etc",
    "c:/windows",
    "c:/program files",
    "c:/program files (x86)",
    "c:/programdata",
})


class ConfigurationError(Exception):
    """The configuration is unsafe to run; no file has been touched."""


@dataclass
class CleanupReport:
    """Aggregated outcome of a cleanup run."""

    total_files: int = 0
    transferred_files: int = 0
    skipped_files: int = 0
    records: list[TransferRecord] = field(default_factory=list)
    compression: ArchiveResult | None = None


def _normalize(path: Path | str) -> str:
    """Lowercase a path with forward slashes and no trailing separator."""
    text = str(path).replace("\\", "/").rstrip("/").lower()
    return text or "/"


def _resolve(folder: Path | str) -> Path:
    """Absolute folder path with ``~`` expanded and symbolic links followed."""
    return Path(os.path.realpath(os.path.expanduser(str(folder))))


def _parent(normalized: str) -> str | None:
    """Parent of a normalized path, or None for a bare relative name."""
    head, sep, _ = normalized.rpartition("/")
    if not sep:
        return None
    return head or "/"


def critical_path_violation(folder: Path | str) -> str | None:
    """Return the critical path a folder collides with, if any.

    Roots such as ``/``, drive roots and profile roots are refused along with
    the folders directly under them. Deeper folders are allowed, so
    ``/home/alice/Downloads`` passes while ``/home/alice`` does not.

    Args:
        folder: Configured folder to check.

    Returns:
        The matching critical path, or None if the folder is safe.

    """
    normalized = _normalize(folder)

    home = _normalize(Path.home())
    if normalized in CRITICAL_ROOTS or normalized == home:
        return normalized

    for tree in CRITICAL_TREES:
        if normalized == tree or normalized.startswith(tree + "/"):
            return tree

    parent = _parent(normalized)
    if parent in CRITICAL_ROOTS:
        return parent

    return None


class CleanupOrchestrator:
    """Walks every configured folder and aggregates a report."""

    def __init__(
        self,
        policy: RetentionPolicy,
        target: QuarantineTarget,
        logger: logging.Logger,
        packager: ArchivePackager | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            policy: Retention policy for this run.
            target: Quarantine settings.
            logger: Logger instance.
            packager: Archive packager used when compression is enabled.

        """
        self.policy = policy
        self.target = target
        self.logger = logger
        self.packager = packager or ArchivePackager(logger)

    def check_safety(self, folders: Sequence[Path], policy: RetentionPolicy | None = None) -> None:
        """Refuse a wildcard run on system-critical folders.

        Raises:
            ConfigurationError: If any folder is or lies under a critical path.

        """
        policy = policy or self.policy
        if not policy.is_wildcard:
            return

        self.logger.warning("Wildcard extension '*' configured: every file type will be processed")

        for folder in folders:
            # A symlinked folder is judged by its target as well as its own path
            absolute = os.path.abspath(os.path.expanduser(str(folder)))
            critical = (
                critical_path_violation(_resolve(folder))
                or critical_path_violation(absolute)
                or critical_path_violation(folder)
            )
            if critical:
                self.logger.error(
                    "Safety check failed: refusing to process all files in %s (critical path %s)",
                    folder,
                    critical,
                )
                raise ConfigurationError(f"Refusing to process all file types in system-critical path: {folder}")

        if policy.retention_days == 0:
            self.logger.warning("High-risk configuration: wildcard extensions with 0 retention days")

    def run(
        self,
        folders: Sequence[Path],
        retention_days: int | None = None,
        *,
        force_delete: bool = False,
    ) -> CleanupReport:
        """Clean all folders.

        Args:
            folders: Root folders to walk, in order.
            retention_days: Override for the policy's retention period.
            force_delete: Delete files permanently instead of quarantining them.

        Returns:
            Aggregated report.

        Raises:
            ConfigurationError: If the safety check fails.

        """
        policy = self.policy
        if retention_days is not None:
            policy = replace(policy, retention_days=retention_days)

        self.logger.info(
            "Starting cleanup: %d folders, retention_days=%d, force_delete=%s",
            len(folders),
            policy.retention_days,
            force_delete,
        )

        self.check_safety(folders, policy)

        walker = DirectoryWalker(
            policy,
            SafeTransfer(self.target, self.logger),
            LivenessProbe(self.logger),
            self.logger,
        )

        quarantine = _resolve(self.target.root)
        report = CleanupReport()
        for folder in folders:
            folder = _resolve(folder)
            if folder == quarantine or quarantine in folder.parents:
                self.logger.warning("Folder is inside the recycle bin, skipping: %s", folder)
                continue

            result = walker.walk(folder, force_delete=force_delete)
            self.logger.info(
                "Folder done: %s (total=%d, transferred=%d, skipped=%d)",
                folder,
                result.total_files,
                result.transferred_files,
                result.skipped_files,
            )
            report.total_files += result.total_files
            report.transferred_files += result.transferred_files
            report.skipped_files += result.skipped_files
            report.records.extend(result.records)

        if self.target.compress and not force_delete and report.transferred_files:
            report.compression = self._compress(report.records)

        self.logger.info(
            "Cleanup finished: total=%d, transferred=%d, skipped=%d",
            report.total_files,
            report.transferred_files,
            report.skipped_files,
        )
        return report

    def _compress(self, records: list[TransferRecord]) -> ArchiveResult:
        """Archive the files quarantined during this run."""
        root = self.target.root
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = unique_path(root, f"{self.target.archive_prefix}_{timestamp}.zip")
        manifest = [record.target_path for record in records if record.target_path is not None]

        result = self.packager.package(root, output_path, manifest)
        if result.success and self.target.delete_after_compress:
            self.packager.purge(root, manifest)
        return result
