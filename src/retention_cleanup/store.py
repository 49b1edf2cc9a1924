"""Persistent management of the configured folder list."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import CleanupConfig

logger = logging.getLogger("retention-cleanup")

_INVALID_CHARS = re.compile(r'[<>:"|?*]')
_DRIVE_PREFIX = re.compile(r"^[a-zA-Z]:[\\/]")


class FolderStoreError(Exception):
    """A folder list operation could not be applied."""


class FolderValidationError(FolderStoreError):
    """A folder path failed validation."""


def _clean_path_text(raw: str) -> str:
    """Strip whitespace and reject empty or malformed path strings."""
    text = (raw or "").strip()
    if not text:
        raise FolderValidationError("Folder path must not be empty")

    # A drive-letter colon is the only colon allowed
    checked = text[2:] if _DRIVE_PREFIX.match(text) else text
    if _INVALID_CHARS.search(checked):
        raise FolderValidationError('Path contains invalid characters (<>:"|?*)')

    return text


def validate_folder_path(raw: str) -> Path:
    """Validate a folder that will be cleaned.

    Args:
        raw: Absolute or relative path as typed by the user.

    Returns:
        Absolute path of the folder.

    Raises:
        FolderValidationError: If the folder is unusable.

    """
    path = Path(os.path.abspath(os.path.expanduser(_clean_path_text(raw))))

    if not path.exists():
        raise FolderValidationError(f"Folder does not exist: {path}")
    if not path.is_dir():
        raise FolderValidationError(f"Path is not a folder: {path}")
    if not os.access(path, os.R_OK):
        raise FolderValidationError(f"No read permission for folder: {path}")
    if not os.access(path, os.W_OK):
        raise FolderValidationError(f"No write permission for folder: {path}")

    return path


def validate_recycle_bin_path(raw: str) -> Path:
    """Validate a recycle bin directory, which need not exist yet."""
    return Path(os.path.abspath(os.path.expanduser(_clean_path_text(raw))))


class FolderStore:
    """Adds, removes and updates folders in the saved configuration."""

    def __init__(self, config: CleanupConfig, config_path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            config: Loaded configuration, updated in place.
            config_path: File the configuration is saved to. Uses default if None.

        """
        self.config = config
        self.config_path = config_path

    def _save(self) -> None:
        self.config.save(self.config_path)

    def list_folders(self) -> list[Path]:
        """Return the configured folders."""
        return list(self.config.folders)

    def add(self, raw: str) -> Path:
        """Validate a folder and add it to the configuration.

        Raises:
            FolderStoreError: If the folder is invalid or already configured.

        """
        path = validate_folder_path(raw)
        if path in self.config.folders:
            raise FolderStoreError(f"Folder already configured: {path}")

        self.config.folders.append(path)
        self._save()
        logger.info("Added folder: %s", path)
        return path

    def remove(self, raw: str) -> Path:
        """Remove a folder from the configuration.

        The folder does not need to exist on disk.

        Raises:
            FolderStoreError: If the folder is not configured.

        """
        path = Path(os.path.abspath(os.path.expanduser(_clean_path_text(raw))))
        if path not in self.config.folders:
            raise FolderStoreError(f"Folder is not configured: {path}")

        self.config.folders.remove(path)
        self._save()
        logger.info("Removed folder: %s", path)
        return path

    def update(self, old_raw: str, new_raw: str) -> Path:
        """Replace a configured folder with another, keeping its position.

        Raises:
            FolderStoreError: If the old folder is unknown or the new one invalid or duplicate.

        """
        old_path = Path(os.path.abspath(os.path.expanduser(_clean_path_text(old_raw))))
        if old_path not in self.config.folders:
            raise FolderStoreError(f"Folder is not configured: {old_path}")

        new_path = validate_folder_path(new_raw)
        if new_path != old_path and new_path in self.config.folders:
            raise FolderStoreError(f"Folder already configured: {new_path}")

        index = self.config.folders.index(old_path)
        self.config.folders[index] = new_path
        self._save()
        logger.info("Updated folder: %s -> %s", old_path, new_path)
        return new_path

    def clear(self) -> int:
        """Remove every configured folder, keeping all other settings.

        Returns:
            Number of folders removed.

        """
        count = len(self.config.folders)
        self.config.folders = []
        self._save()
        logger.info("Cleared %d folders", count)
        return count

    def recycle_bin(self) -> Path:
        """Return the configured recycle bin directory."""
        return self.config.recycle_bin_dir

    def set_recycle_bin(self, raw: str) -> Path:
        """Change the recycle bin directory.

        Raises:
            FolderValidationError: If the path is malformed.

        """
        path = validate_recycle_bin_path(raw)
        self.config.recycle_bin_dir = path
        self._save()
        logger.info("Recycle bin directory set to: %s", path)
        return path
