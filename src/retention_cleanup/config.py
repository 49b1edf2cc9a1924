"""Configuration management for the retention cleanup tool."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

WILDCARD = "*"

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a YAML value as a boolean.

    Args:
        value: Raw value from the config file.
        default: Returned when the value is missing.

    Returns:
        Parsed boolean.

    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


@dataclass(frozen=True)
class RetentionPolicy:
    """Rules deciding which files are eligible for cleanup."""

    retention_days: int = 0
    allowed_extensions: frozenset[str] = frozenset()
    protected_files: frozenset[str] = frozenset()

    @property
    def is_wildcard(self) -> bool:
        """True when every extension is eligible."""
        return WILDCARD in self.allowed_extensions


@dataclass(frozen=True)
class QuarantineTarget:
    """Where eligible files are moved and how the batch is archived."""

    root: Path
    compress: bool = False
    archive_prefix: str = "cleanup"
    delete_after_compress: bool = True


@dataclass
class CleanupConfig:
    """Configuration for the retention cleanup tool."""

    # Files younger than this are kept (0 = no minimum age)
    retention_days: int = 0

    # Case-sensitive extensions without the dot, or "*" for all
    allowed_extensions: list[str] = field(
        default_factory=lambda: ["docx", "xlsx", "csv", "pptx", "txt"]
    )

    # Case-insensitive exact file names that are never touched
    protected_files: list[str] = field(
        default_factory=lambda: [
            "desktop.ini",
            "thumbs.db",
            "$recycle.bin",
            "system volume information",
        ]
    )

    # Folders to clean
    folders: list[Path] = field(default_factory=list)

    # Recycle bin settings
    recycle_bin_dir: Path = field(default_factory=lambda: Path("trash"))
    compress_enabled: bool = False
    compress_prefix: str = "cleanup"
    compress_delete_after: bool = True

    # Logging
    log_file: Path = field(default_factory=lambda: Path("logs/cleanup.log"))
    log_level: str = "INFO"
    log_max_size_mb: int = 10
    log_max_files: int = 5

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return Path.home() / ".config/retention-cleanup/config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> CleanupConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration.

        Raises:
            ValueError: If a setting has an invalid value.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        with config_path.open(encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> CleanupConfig:
        """Create config from dictionary."""
        config = cls()

        if "retention_days" in data:
            config.retention_days = parse_retention_days(data["retention_days"])

        if "allowed_extensions" in data:
            config.allowed_extensions = _parse_string_list(
                data["allowed_extensions"], "allowed_extensions"
            )
        if "protected_files" in data:
            config.protected_files = _parse_string_list(data["protected_files"], "protected_files")

        if data.get("folders"):
            config.folders = [
                Path(os.path.expanduser(str(p))) for p in data["folders"]
            ]

        # Recycle bin settings
        recycle = data.get("recycle_bin") or {}
        if "directory" in recycle:
            config.recycle_bin_dir = Path(os.path.expanduser(str(recycle["directory"])))
        compression = recycle.get("compression") or {}
        config.compress_enabled = parse_bool(compression.get("enabled"), config.compress_enabled)
        if "prefix" in compression:
            config.compress_prefix = str(compression["prefix"])
        config.compress_delete_after = parse_bool(
            compression.get("delete_after"), config.compress_delete_after
        )

        # Logging
        logging_cfg = data.get("logging") or {}
        if "file" in logging_cfg:
            config.log_file = Path(os.path.expanduser(str(logging_cfg["file"])))
        if "level" in logging_cfg:
            config.log_level = str(logging_cfg["level"]).upper()
        if "max_size_mb" in logging_cfg:
            config.log_max_size_mb = int(logging_cfg["max_size_mb"])
        if "max_files" in logging_cfg:
            config.log_max_files = int(logging_cfg["max_files"])

        return config

    def retention_policy(self, retention_days: int | None = None) -> RetentionPolicy:
        """Build the immutable policy for one run.

        Args:
            retention_days: Override for the configured retention period.

        Returns:
            Retention policy.

        """
        days = self.retention_days if retention_days is None else retention_days
        return RetentionPolicy(
            retention_days=parse_retention_days(days),
            allowed_extensions=frozenset(self.allowed_extensions),
            protected_files=frozenset(name.lower() for name in self.protected_files),
        )

    def quarantine_target(self) -> QuarantineTarget:
        """Build the immutable quarantine target for one run."""
        return QuarantineTarget(
            root=Path(os.path.abspath(self.recycle_bin_dir)),
            compress=self.compress_enabled,
            archive_prefix=self.compress_prefix,
            delete_after_compress=self.compress_delete_after,
        )

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "retention_days": self.retention_days,
            "allowed_extensions": list(self.allowed_extensions),
            "protected_files": list(self.protected_files),
            "folders": [str(p) for p in self.folders],
            "recycle_bin": {
                "directory": str(self.recycle_bin_dir),
                "compression": {
                    "enabled": self.compress_enabled,
                    "prefix": self.compress_prefix,
                    "delete_after": self.compress_delete_after,
                },
            },
            "logging": {
                "file": str(self.log_file),
                "level": self.log_level,
                "max_size_mb": self.log_max_size_mb,
                "max_files": self.log_max_files,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def parse_retention_days(value: Any) -> int:
    """Validate a retention period.

    Raises:
        ValueError: If the value is not a non-negative integer.

    """
    if isinstance(value, bool):
        raise ValueError(f"retention_days must be a non-negative integer, got {value!r}")
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"retention_days must be a non-negative integer, got {value!r}") from None
    if days < 0 or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"retention_days must be a non-negative integer, got {value!r}")
    return days


def _parse_string_list(value: Any, key: str) -> list[str]:
    """Coerce a YAML scalar or sequence into a list of strings."""
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        return [str(value)]
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list, got {type(value).__name__}")
    return ["" if item is None else str(item) for item in value]
