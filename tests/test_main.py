"""Tests for the command-line interface."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from retention_cleanup.config import CleanupConfig
from retention_cleanup.main import LOGGER_NAME, main, parse_args, setup_logging


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Write a config with one folder and a temp recycle bin."""
    folder = tmp_path / "folder"
    folder.mkdir()
    config = CleanupConfig()
    config.folders = [folder]
    config.recycle_bin_dir = tmp_path / "trash"
    config.log_file = tmp_path / "logs" / "cleanup.log"
    path = tmp_path / "config.yaml"
    config.save(path)
    return path


@pytest.fixture(autouse=True)
def _reset_logger() -> Iterator[None]:
    """Detach handlers installed by setup_logging between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class TestParseArgs:
    """Tests for argument parsing."""

    def test_clean_options(self) -> None:
        """Test parsing the clean command."""
        args = parse_args(["clean", "--days", "30", "--force", "-y"])
        assert args.command == "clean"
        assert args.days == 30
        assert args.force is True
        assert args.yes is True

    def test_negative_days_rejected(self) -> None:
        """Test that negative days exit with a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["clean", "--days", "-1"])
        assert exc_info.value.code == 2

    def test_update_takes_two_paths(self) -> None:
        """Test that --update needs old and new paths."""
        args = parse_args(["folders", "--update", "/a", "/b"])
        assert args.update == ["/a", "/b"]

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that --version prints the version."""
        with pytest.raises(SystemExit):
            parse_args(["--version"])
        assert "file-cleanup" in capsys.readouterr().out


class TestSetupLogging:
    """Tests for logging configuration."""

    def test_invalid_log_level_raises(self, tmp_path: Path) -> None:
        """Test that an invalid log_level raises ValueError."""
        config = CleanupConfig()
        config.log_file = tmp_path / "test.log"
        config.log_level = "INVALID"

        with pytest.raises(ValueError, match="Invalid log_level"):
            setup_logging(config)

    def test_handlers_not_duplicated(self, tmp_path: Path) -> None:
        """Test that repeated setup keeps one console and one file handler."""
        config = CleanupConfig()
        config.log_file = tmp_path / "logs" / "test.log"

        setup_logging(config)
        logger = setup_logging(config)

        assert len(logger.handlers) == 2
        assert config.log_file.parent.exists()

    def test_warn_alias(self, tmp_path: Path) -> None:
        """Test that WARN is accepted as WARNING."""
        config = CleanupConfig()
        config.log_file = tmp_path / "test.log"
        config.log_level = "warn"

        logger = setup_logging(config)

        assert all(handler.level == logging.WARNING for handler in logger.handlers)


class TestMain:
    """Tests for command dispatch."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that running without a command shows help."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_clean_moves_files(self, config_path: Path, tmp_path: Path) -> None:
        """Test a full clean run through the CLI."""
        (tmp_path / "folder" / "notes.txt").write_text("notes")

        assert main(["--config", str(config_path), "clean"]) == 0

        assert (tmp_path / "trash" / "notes.txt").read_text() == "notes"
        assert not (tmp_path / "folder" / "notes.txt").exists()
        assert (tmp_path / "logs" / "cleanup.log").exists()

    def test_clean_without_folders_fails(self, tmp_path: Path) -> None:
        """Test that clean needs configured folders."""
        assert main(["--config", str(tmp_path / "none.yaml"), "clean"]) == 1

    def test_force_requires_confirmation(self, config_path: Path, tmp_path: Path) -> None:
        """Test that declining the prompt leaves files in place."""
        path = tmp_path / "folder" / "notes.txt"
        path.write_text("notes")

        with patch("retention_cleanup.main.Confirm.ask", return_value=False) as ask:
            assert main(["--config", str(config_path), "clean", "--force"]) == 0

        ask.assert_called_once()
        assert path.exists()

    def test_force_with_yes_deletes(self, config_path: Path, tmp_path: Path) -> None:
        """Test that -y skips the prompt and deletes permanently."""
        path = tmp_path / "folder" / "notes.txt"
        path.write_text("notes")

        with patch("retention_cleanup.main.Confirm.ask") as ask:
            assert main(["--config", str(config_path), "clean", "--force", "-y"]) == 0

        ask.assert_not_called()
        assert not path.exists()
        assert not (tmp_path / "trash").exists()

    def test_wildcard_on_critical_path_exits_with_error(self, tmp_path: Path) -> None:
        """Test that the safety guard makes the CLI fail."""
        config = CleanupConfig()
        config.allowed_extensions = ["*"]
        config.folders = [Path("/")]
        config.recycle_bin_dir = tmp_path / "trash"
        config.log_file = tmp_path / "cleanup.log"
        path = tmp_path / "config.yaml"
        config.save(path)

        assert main(["--config", str(path), "clean"]) == 1
        assert not (tmp_path / "trash").exists()

    def test_folders_add_and_list(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test adding and listing folders."""
        folder = tmp_path / "new"
        folder.mkdir()
        config_path = tmp_path / "config.yaml"

        assert main(["--config", str(config_path), "folders", "--add", str(folder)]) == 0
        assert main(["--config", str(config_path), "folders", "--list"]) == 0

        assert CleanupConfig.load(config_path).folders == [folder]
        assert "Configured folders" in capsys.readouterr().out

    def test_folders_add_invalid(self, tmp_path: Path) -> None:
        """Test that an invalid folder returns an error code."""
        config_path = tmp_path / "config.yaml"
        assert main(["--config", str(config_path), "folders", "--add", str(tmp_path / "missing")]) == 1

    def test_folders_clear_with_yes(self, config_path: Path) -> None:
        """Test clearing folders without a prompt."""
        assert main(["--config", str(config_path), "folders", "--clear", "-y"]) == 0
        assert CleanupConfig.load(config_path).folders == []

    def test_recycle_bin_set_and_show(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test changing and showing the recycle bin directory."""
        config_path = tmp_path / "config.yaml"
        target = tmp_path / "bin"

        assert main(["--config", str(config_path), "recycle-bin", "--set", str(target)]) == 0
        assert main(["--config", str(config_path), "recycle-bin", "--show"]) == 0

        assert CleanupConfig.load(config_path).recycle_bin_dir == target
        assert "Recycle bin directory" in capsys.readouterr().out

    def test_config_init(self, tmp_path: Path) -> None:
        """Test creating a default config file."""
        config_path = tmp_path / "new" / "config.yaml"

        assert main(["--config", str(config_path), "config", "--init"]) == 0
        assert config_path.exists()
        assert main(["--config", str(config_path), "config", "--init"]) == 1

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """Test that a broken config file returns an error code."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("retention_days: -5\n")

        assert main(["--config", str(config_path), "config", "--show"]) == 1
