"""Decide whether a file is eligible for cleanup."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import RetentionPolicy

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class FileRecord:
    """Metadata snapshot of a file visited during a walk."""

    path: Path
    name: str
    size: int
    modified_at: float
    created_at: float | None = None

    @classmethod
    def from_path(cls, path: Path) -> FileRecord:
        """Read metadata for a path.

        Raises:
            OSError: If the file cannot be stat'ed.

        """
        stat = path.stat()
        return cls(
            path=path,
            name=path.name,
            size=stat.st_size,
            modified_at=stat.st_mtime,
            # Only some platforms report a real creation time
            created_at=getattr(stat, "st_birthtime", None),
        )

    @property
    def newest_timestamp(self) -> float:
        """Latest of the creation and modification times."""
        if self.created_at is None:
            return self.modified_at
        return max(self.created_at, self.modified_at)


def extension_of(name: str) -> str:
    """Text after the last dot, or an empty string."""
    _, dot, ext = name.rpartition(".")
    return ext if dot else ""


class EligibilityClassifier:
    """Applies a retention policy to individual files."""

    def __init__(self, policy: RetentionPolicy, logger: logging.Logger) -> None:
        """Initialize the classifier.

        Args:
            policy: Retention policy for this run.
            logger: Logger instance.

        """
        self.policy = policy
        self.logger = logger
        self._protected = frozenset(name.lower() for name in policy.protected_files)

    def is_protected(self, name: str) -> bool:
        """Check a file name against the protected list (case-insensitive, exact)."""
        return name.lower() in self._protected

    def is_allowed_extension(self, name: str) -> bool:
        """Check a file name against the extension allow-list (case-sensitive)."""
        if self.policy.is_wildcard:
            return True
        return extension_of(name) in self.policy.allowed_extensions

    def is_expired(
        self,
        record: FileRecord,
        retention_days: int | None = None,
        now: float | None = None,
    ) -> bool:
        """Check whether a file is older than the retention period.

        Args:
            record: File metadata.
            retention_days: Override for the policy's retention period.
            now: Reference time in seconds since the epoch.

        Returns:
            True if the file's newest timestamp is strictly older than the period.

        """
        days = self.policy.retention_days if retention_days is None else retention_days
        if days == 0:
            return True

        if now is None:
            now = time.time()
        age = now - record.newest_timestamp
        return age > days * SECONDS_PER_DAY

    def is_path_expired(
        self,
        path: Path,
        retention_days: int | None = None,
        now: float | None = None,
    ) -> bool:
        """Check expiry for a path, treating unreadable metadata as not expired."""
        try:
            record = FileRecord.from_path(path)
        except OSError as e:
            self.logger.warning("Could not read file metadata, keeping: %s (%s)", path, e)
            return False
        return self.is_expired(record, retention_days, now)

    def is_eligible(self, record: FileRecord, now: float | None = None) -> bool:
        """Check all three predicates for a file."""
        return (
            self.is_allowed_extension(record.name)
            and self.is_expired(record, now=now)
            and not self.is_protected(record.name)
        )
