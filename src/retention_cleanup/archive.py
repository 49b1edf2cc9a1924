"""Zip packaging of the quarantine directory after a cleanup run."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


@dataclass
class ArchiveResult:
    """Outcome of packaging quarantined files."""

    success: bool
    output_path: Path
    file_count: int = 0
    total_size: int = 0
    compressed_size: int = 0
    error: str | None = None


class ArchivePackager:
    """Packs quarantined files into a zip archive."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def _collect(self, source_dir: Path, output_path: Path, files: Iterable[Path] | None) -> list[Path]:
        """List the files to pack, skipping the archive itself."""
        if files is None:
            candidates = (path for path in sorted(source_dir.rglob("*")) if path.is_file())
        else:
            candidates = iter(files)
        return [path for path in candidates if path != output_path]

    def package(
        self,
        source_dir: Path,
        output_path: Path,
        files: Iterable[Path] | None = None,
    ) -> ArchiveResult:
        """Write files under ``source_dir`` into a zip archive.

        Args:
            source_dir: Directory the archive paths are relative to.
            output_path: Archive to create.
            files: Files to include. Packs the whole directory if None.

        Returns:
            ArchiveResult with counts and sizes.

        """
        try:
            members = self._collect(source_dir, output_path, files)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            total_size = 0
            with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zipf:
                for path in members:
                    zipf.write(path, str(path.relative_to(source_dir)))
                    total_size += path.stat().st_size

            compressed_size = output_path.stat().st_size
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            output_path.unlink(missing_ok=True)
            self.logger.error("Failed to create archive %s: %s", output_path, e)
            return ArchiveResult(success=False, output_path=output_path, error=str(e))

        self.logger.info(
            "Created archive %s: %d files, %d -> %d bytes",
            output_path,
            len(members),
            total_size,
            compressed_size,
        )

        return ArchiveResult(
            success=True,
            output_path=output_path,
            file_count=len(members),
            total_size=total_size,
            compressed_size=compressed_size,
        )

    def purge(self, source_dir: Path, files: Iterable[Path]) -> int:
        """Delete archived files and prune directories they leave empty.

        Args:
            source_dir: Directory the files live under; never removed itself.
            files: Files that were archived.

        Returns:
            Number of files removed.

        """
        removed = 0
        parents: set[Path] = set()

        for path in files:
            try:
                path.unlink()
            except OSError as e:
                self.logger.warning("Could not remove archived file %s: %s", path, e)
                continue
            removed += 1
            parents.add(path.parent)

        # Deepest first so children are pruned before their parents
        for directory in sorted(parents, key=lambda p: len(p.parts), reverse=True):
            current = directory
            while current != source_dir and source_dir in current.parents:
                try:
                    current.rmdir()
                except OSError:
                    break
                current = current.parent

        self.logger.debug("Removed %d archived files from %s", removed, source_dir)
        return removed
