"""Tests for folder list management."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from retention_cleanup.config import CleanupConfig
from retention_cleanup.store import (
    FolderStore,
    FolderStoreError,
    FolderValidationError,
    validate_folder_path,
    validate_recycle_bin_path,
)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Config file location."""
    return tmp_path / "config" / "config.yaml"


@pytest.fixture
def store(config_path: Path) -> FolderStore:
    """Create a store over a fresh config."""
    return FolderStore(CleanupConfig(), config_path)


@pytest.fixture
def folder(tmp_path: Path) -> Path:
    """An existing folder."""
    path = tmp_path / "logs"
    path.mkdir()
    return path


class TestValidateFolderPath:
    """Tests for folder validation."""

    def test_valid_folder(self, folder: Path) -> None:
        """Test that an existing writable folder is accepted."""
        assert validate_folder_path(str(folder)) == folder

    def test_strips_whitespace(self, folder: Path) -> None:
        """Test that surrounding whitespace is ignored."""
        assert validate_folder_path(f"  {folder}  ") == folder

    def test_relative_path_made_absolute(self, folder: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that relative paths resolve against the working directory."""
        monkeypatch.chdir(folder.parent)
        assert validate_folder_path("./logs") == folder

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_rejected(self, raw: str) -> None:
        """Test that empty input is rejected."""
        with pytest.raises(FolderValidationError, match="empty"):
            validate_folder_path(raw)

    @pytest.mark.parametrize("raw", ["logs?", "a<b", "dir|x", 'say"hi', "c:d"])
    def test_invalid_characters_rejected(self, raw: str) -> None:
        """Test that reserved characters are rejected."""
        with pytest.raises(FolderValidationError, match="invalid characters"):
            validate_folder_path(raw)

    def test_drive_colon_allowed(self) -> None:
        """Test that a drive-letter colon passes the character check."""
        with pytest.raises(FolderValidationError) as exc_info:
            validate_folder_path("C:\\surely\\missing\\folder")
        assert "invalid characters" not in str(exc_info.value)

    def test_missing_folder_rejected(self, tmp_path: Path) -> None:
        """Test that a missing folder is rejected."""
        with pytest.raises(FolderValidationError, match="does not exist"):
            validate_folder_path(str(tmp_path / "missing"))

    def test_file_rejected(self, tmp_path: Path) -> None:
        """Test that a file is not accepted as a folder."""
        path = tmp_path / "file.txt"
        path.touch()
        with pytest.raises(FolderValidationError, match="not a folder"):
            validate_folder_path(str(path))

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_read_only_folder_rejected(self, folder: Path) -> None:
        """Test that a folder without write permission is rejected."""
        folder.chmod(0o555)
        try:
            with pytest.raises(FolderValidationError, match="write permission"):
                validate_folder_path(str(folder))
        finally:
            folder.chmod(0o755)

    def test_recycle_bin_need_not_exist(self, tmp_path: Path) -> None:
        """Test that a recycle bin path may be created later."""
        assert validate_recycle_bin_path(str(tmp_path / "new-bin")) == tmp_path / "new-bin"


class TestFolderStore:
    """Tests for FolderStore operations."""

    def test_add_saves_config(self, store: FolderStore, folder: Path, config_path: Path) -> None:
        """Test that adding a folder persists it."""
        assert store.add(str(folder)) == folder

        assert store.list_folders() == [folder]
        assert CleanupConfig.load(config_path).folders == [folder]

    def test_add_duplicate_rejected(self, store: FolderStore, folder: Path) -> None:
        """Test that a folder cannot be added twice."""
        store.add(str(folder))
        with pytest.raises(FolderStoreError, match="already configured"):
            store.add(str(folder))

    def test_add_invalid_rejected(self, store: FolderStore, tmp_path: Path, config_path: Path) -> None:
        """Test that an invalid folder is not added or saved."""
        with pytest.raises(FolderValidationError):
            store.add(str(tmp_path / "missing"))
        assert not config_path.exists()

    def test_remove(self, store: FolderStore, folder: Path, config_path: Path) -> None:
        """Test that a folder can be removed."""
        store.add(str(folder))

        store.remove(str(folder))

        assert store.list_folders() == []
        assert CleanupConfig.load(config_path).folders == []

    def test_remove_deleted_folder(self, store: FolderStore, folder: Path) -> None:
        """Test that a folder removed from disk can still be unconfigured."""
        store.add(str(folder))
        folder.rmdir()

        store.remove(str(folder))

        assert store.list_folders() == []

    def test_remove_unknown(self, store: FolderStore, folder: Path) -> None:
        """Test that removing an unknown folder fails."""
        with pytest.raises(FolderStoreError, match="not configured"):
            store.remove(str(folder))

    def test_update_keeps_position(self, store: FolderStore, tmp_path: Path) -> None:
        """Test that updating replaces a folder in place."""
        first, second, replacement = (tmp_path / name for name in ("one", "two", "three"))
        for path in (first, second, replacement):
            path.mkdir()
        store.add(str(first))
        store.add(str(second))

        store.update(str(first), str(replacement))

        assert store.list_folders() == [replacement, second]

    def test_update_to_existing_rejected(self, store: FolderStore, tmp_path: Path) -> None:
        """Test that updating onto another configured folder fails."""
        first, second = tmp_path / "one", tmp_path / "two"
        first.mkdir()
        second.mkdir()
        store.add(str(first))
        store.add(str(second))

        with pytest.raises(FolderStoreError, match="already configured"):
            store.update(str(first), str(second))

    def test_update_unknown(self, store: FolderStore, folder: Path) -> None:
        """Test that updating an unknown folder fails."""
        with pytest.raises(FolderStoreError, match="not configured"):
            store.update(str(folder), str(folder))

    def test_clear_keeps_other_settings(self, store: FolderStore, folder: Path, config_path: Path) -> None:
        """Test that clearing removes folders only."""
        store.config.retention_days = 9
        store.add(str(folder))

        assert store.clear() == 1

        loaded = CleanupConfig.load(config_path)
        assert loaded.folders == []
        assert loaded.retention_days == 9

    def test_set_recycle_bin(self, store: FolderStore, tmp_path: Path, config_path: Path) -> None:
        """Test that the recycle bin directory is stored as an absolute path."""
        path = store.set_recycle_bin(str(tmp_path / "bin"))

        assert path == tmp_path / "bin"
        assert store.recycle_bin() == path
        assert CleanupConfig.load(config_path).recycle_bin_dir == path

    def test_set_recycle_bin_invalid(self, store: FolderStore) -> None:
        """Test that a malformed recycle bin path is rejected."""
        with pytest.raises(FolderValidationError):
            store.set_recycle_bin("bad|name")
