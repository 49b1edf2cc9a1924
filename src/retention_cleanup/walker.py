"""Recursive folder traversal that applies the retention policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .classifier import EligibilityClassifier

if TYPE_CHECKING:
    from .config import RetentionPolicy
    from .probe import LivenessProbe
    from .transfer import SafeTransfer, TransferResult


@dataclass(frozen=True)
class TransferRecord:
    """One file that was moved to quarantine or deleted."""

    source_path: Path
    target_path: Path | None
    file_name: str
    file_size: str


@dataclass
class WalkResult:
    """Statistics accumulated while walking a folder tree."""

    total_files: int = 0
    transferred_files: int = 0
    skipped_files: int = 0
    records: list[TransferRecord] = field(default_factory=list)

    def skip(self) -> None:
        """Count an inspected file that was left in place."""
        self.total_files += 1
        self.skipped_files += 1

    def merge(self, other: WalkResult) -> None:
        """Add another result's counts and records to this one."""
        self.total_files += other.total_files
        self.transferred_files += other.transferred_files
        self.skipped_files += other.skipped_files
        self.records.extend(other.records)


class DirectoryWalker:
    """Walks folder trees and moves or deletes eligible files."""

    def __init__(
        self,
        policy: RetentionPolicy,
        transfer: SafeTransfer,
        probe: LivenessProbe,
        logger: logging.Logger,
    ) -> None:
        """Initialize the walker.

        Args:
            policy: Retention policy for this run.
            transfer: Safe transfer used for quarantine and deletion.
            probe: Liveness probe for in-use detection.
            logger: Logger instance.

        """
        self.policy = policy
        self.transfer = transfer
        self.probe = probe
        self.logger = logger
        self.classifier = EligibilityClassifier(policy, logger)

    def _is_quarantine_root(self, path: Path) -> bool:
        """Check whether a directory is the quarantine root itself."""
        try:
            return path.resolve() == self.transfer.target.root.resolve()
        except OSError:
            return False

    def walk(
        self,
        folder: Path,
        base_dir: Path | None = None,
        *,
        force_delete: bool = False,
    ) -> WalkResult:
        """Clean a folder tree.

        Args:
            folder: Folder to walk.
            base_dir: Root of the walk; nested files keep paths relative to it.
                Defaults to ``folder``.
            force_delete: Delete eligible files instead of moving them to quarantine.

        Returns:
            Statistics for this folder and everything below it.

        """
        result = WalkResult()
        base_dir = base_dir or folder

        if not folder.exists():
            self.logger.warning("Folder does not exist, skipping: %s", folder)
            return result

        try:
            entries = sorted(folder.iterdir())
        except OSError as e:
            self.logger.error("Cannot list folder %s: %s", folder, e)
            return result

        self.logger.debug("Cleaning folder: %s (force_delete=%s)", folder, force_delete)

        for entry in entries:
            try:
                self._visit(entry, base_dir, result, force_delete=force_delete)
            except Exception as e:
                self.logger.error("Error processing %s: %s", entry, e)
                result.skip()

        self.logger.debug(
            "Finished folder %s: total=%d, transferred=%d, skipped=%d",
            folder,
            result.total_files,
            result.transferred_files,
            result.skipped_files,
        )
        return result

    def _visit(self, entry: Path, base_dir: Path, result: WalkResult, *, force_delete: bool) -> None:
        """Apply the policy to a single directory entry."""
        if self.classifier.is_protected(entry.name):
            if entry.is_dir() and not entry.is_symlink():
                self.logger.info("Skipping protected directory: %s", entry)
                return
            self.logger.info("Skipping protected file: %s", entry)
            result.skip()
            return

        if entry.is_symlink():
            self.logger.debug("Skipping symbolic link: %s", entry)
            result.skip()
            return

        if entry.is_dir():
            if self._is_quarantine_root(entry):
                self.logger.debug("Skipping quarantine directory: %s", entry)
                return
            result.merge(self.walk(entry, base_dir, force_delete=force_delete))
            return

        if not entry.is_file():
            self.logger.debug("Skipping non-regular file: %s", entry)
            result.skip()
            return

        if not self.classifier.is_allowed_extension(entry.name):
            self.logger.debug("Extension not allowed, skipping: %s", entry)
            result.skip()
            return

        if not self.classifier.is_path_expired(entry):
            self.logger.debug("Not expired, skipping: %s", entry)
            result.skip()
            return

        if self.probe.is_in_use(entry):
            self.logger.warning("File in use, skipping: %s", entry)
            result.skip()
            return

        outcome = self._dispatch(entry, base_dir, force_delete=force_delete)
        result.total_files += 1
        if not outcome.success:
            result.skipped_files += 1
            return

        result.transferred_files += 1
        result.records.append(
            TransferRecord(
                source_path=entry,
                target_path=outcome.target_path,
                file_name=outcome.file_name,
                file_size=outcome.file_size,
            )
        )

    def _dispatch(self, entry: Path, base_dir: Path, *, force_delete: bool) -> TransferResult:
        """Delete or quarantine an eligible file."""
        if force_delete:
            return self.transfer.delete_file(entry)
        return self.transfer.transfer(entry, base_dir)
