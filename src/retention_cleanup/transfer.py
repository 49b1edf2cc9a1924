"""Verified relocation of files into the quarantine directory."""

from __future__ import annotations

import hashlib
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import QuarantineTarget

CHUNK_SIZE = 1024 * 1024

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class IntegrityError(OSError):
    """The copied file does not match its source."""


@dataclass
class TransferResult:
    """Result of moving or deleting a single file."""

    path: Path
    success: bool
    action: str  # "moved", "deleted", "error"
    target_path: Path | None = None
    file_name: str = ""
    file_size: str = "0 B"
    error: str | None = None


def format_file_size(size: int) -> str:
    """Format a byte count for humans, e.g. ``1.5 KB``."""
    if size < 1024:
        return f"{size} B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f}".rstrip("0").rstrip(".") + f" {_SIZE_UNITS[unit]}"


def file_checksum(path: Path) -> str:
    """Stream a file through MD5 and return the hex digest."""
    digest = hashlib.md5(usedforsecurity=False)
    with path.open("rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def unique_path(directory: Path, file_name: str) -> Path:
    """Return ``directory/file_name``, adding ``_1``, ``_2``... until unused.

    Not atomic: assumes a single writer in ``directory``.
    """
    candidate = directory / file_name
    if not candidate.exists():
        return candidate

    path = Path(file_name)
    stem, suffix = path.stem, path.suffix
    counter = 1
    while True:
        candidate = directory / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


class SafeTransfer:
    """Copies files into quarantine and removes the source only after verification."""

    def __init__(self, target: QuarantineTarget, logger: logging.Logger) -> None:
        """Initialize the transfer.

        Args:
            target: Quarantine settings.
            logger: Logger instance.

        """
        self.target = target
        self.logger = logger

    def _relative_path(self, source: Path, base_dir: Path | None) -> Path:
        """Path of ``source`` inside quarantine, keeping structure below ``base_dir``."""
        if base_dir is None:
            return Path(source.name)
        try:
            return source.relative_to(base_dir)
        except ValueError:
            self.logger.debug("%s is not under %s, using base name", source, base_dir)
            return Path(source.name)

    def destination_for(self, source: Path, base_dir: Path | None = None) -> Path:
        """Resolve a collision-free destination path for a source file."""
        relative = self._relative_path(source, base_dir)
        return unique_path(self.target.root / relative.parent, relative.name)

    def _copy_bytes(self, source: Path, destination: Path) -> None:
        """Copy file content and timestamps."""
        shutil.copy2(source, destination)

    def _verify(self, source_size: int, source_hash: str, destination: Path) -> None:
        """Check the destination against the source's size and checksum.

        Raises:
            IntegrityError: If the destination is missing or differs.

        """
        if not destination.is_file():
            raise IntegrityError(f"Destination missing after copy: {destination}")

        destination_size = destination.stat().st_size
        if destination_size != source_size:
            raise IntegrityError(
                f"Size mismatch: source {source_size} bytes, destination {destination_size} bytes"
            )

        destination_hash = file_checksum(destination)
        if destination_hash != source_hash:
            raise IntegrityError(f"Checksum mismatch: source {source_hash}, destination {destination_hash}")

    def _discard(self, destination: Path) -> None:
        """Remove a partial or unverified destination file."""
        try:
            destination.unlink(missing_ok=True)
        except OSError as e:
            self.logger.error("Could not remove partial copy %s: %s", destination, e)

    def transfer(self, source: Path, base_dir: Path | None = None) -> TransferResult:
        """Move a file into quarantine with size and checksum verification.

        Args:
            source: File to move.
            base_dir: Root of the current walk, used to keep directory structure.

        Returns:
            TransferResult with operation details. The source is only removed
            when the result is successful.

        """
        file_name = source.name

        try:
            source_size = source.stat().st_size
            destination = self.destination_for(source, base_dir)
        except OSError as e:
            self.logger.warning("Failed to prepare transfer for %s: %s", source, e)
            return TransferResult(path=source, success=False, action="error", file_name=file_name, error=str(e))

        copy_started = False
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            source_hash = file_checksum(source)
            copy_started = True
            self._copy_bytes(source, destination)
            self._verify(source_size, source_hash, destination)
        except IntegrityError as e:
            self._discard(destination)
            self.logger.error("Integrity check failed for %s -> %s: %s", source, destination, e)
            return TransferResult(path=source, success=False, action="error", file_name=file_name, error=str(e))
        except OSError as e:
            if copy_started:
                self._discard(destination)
            self.logger.warning("Failed to copy %s -> %s: %s", source, destination, e)
            return TransferResult(path=source, success=False, action="error", file_name=file_name, error=str(e))
        except BaseException:
            if copy_started:
                self._discard(destination)
            raise

        try:
            source.unlink()
        except OSError as e:
            # Source is still in place, so the file must not exist twice
            self._discard(destination)
            self.logger.warning("Copied but could not remove source %s: %s", source, e)
            return TransferResult(path=source, success=False, action="error", file_name=file_name, error=str(e))

        file_size = format_file_size(source_size)
        self.logger.info("Moved file: %s -> %s (%s)", source, destination, file_size)

        return TransferResult(
            path=source,
            success=True,
            action="moved",
            target_path=destination,
            file_name=file_name,
            file_size=file_size,
        )

    def delete_file(self, path: Path) -> TransferResult:
        """Delete a file permanently without quarantine.

        Args:
            path: File to delete.

        Returns:
            TransferResult with operation details.

        """
        file_name = path.name

        try:
            file_size = format_file_size(path.stat().st_size)
            path.unlink()
        except PermissionError as e:
            self.logger.error("Permission denied deleting %s: %s", path, e)
            return TransferResult(
                path=path,
                success=False,
                action="error",
                file_name=file_name,
                error=f"Permission denied: {e}",
            )
        except OSError as e:
            self.logger.warning("Failed to delete %s: %s", path, e)
            return TransferResult(path=path, success=False, action="error", file_name=file_name, error=str(e))

        self.logger.info("Deleted file: %s (%s)", path, file_size)

        return TransferResult(
            path=path,
            success=True,
            action="deleted",
            file_name=file_name,
            file_size=file_size,
        )
