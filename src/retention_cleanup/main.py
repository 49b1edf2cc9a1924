"""Main entry point for the retention cleanup tool."""

from __future__ import annotations

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .config import CleanupConfig, parse_retention_days
from .orchestrator import CleanupOrchestrator, CleanupReport, ConfigurationError
from .store import FolderStore, FolderStoreError

LOGGER_NAME = "retention-cleanup"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(config: CleanupConfig) -> logging.Logger:
    """Set up console and rotating file logging.

    Args:
        config: Cleanup configuration.

    Returns:
        Configured logger instance.

    Raises:
        ValueError: If the configured log level is unknown.

    """
    level = config.log_level.upper()
    if level == "WARN":
        level = "WARNING"
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {config.log_level!r} (expected one of {', '.join(_LOG_LEVELS)})")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates if called again
    if logger.handlers:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
    )
    console_handler.setLevel(getattr(logging, level))
    logger.addHandler(console_handler)

    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.log_file,
        maxBytes=config.log_max_size_mb * 1024 * 1024,
        backupCount=config.log_max_files,
        encoding="utf-8",
    )
    file_handler.setLevel(getattr(logging, level))
    file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(file_handler)

    return logger


def _non_negative_int(value: str) -> int:
    """argparse type for ``--days``."""
    try:
        return parse_retention_days(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Arguments to parse. Uses ``sys.argv`` if None.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="file-cleanup",
        description="Move or delete expired files from configured folders",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Clean command
    clean_parser = subparsers.add_parser("clean", help="Clean the configured folders")
    clean_parser.add_argument(
        "--days",
        "-d",
        type=_non_negative_int,
        default=None,
        help="Retention period in days (overrides the config file)",
    )
    clean_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Delete files permanently instead of moving them to the recycle bin",
    )
    clean_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompts",
    )

    # Folders command
    folders_parser = subparsers.add_parser("folders", help="Manage configured folders")
    folders_group = folders_parser.add_mutually_exclusive_group()
    folders_group.add_argument("--add", "-a", metavar="PATH", help="Add a folder")
    folders_group.add_argument("--remove", "-r", metavar="PATH", help="Remove a folder")
    folders_group.add_argument(
        "--update",
        "-u",
        nargs=2,
        metavar=("OLD", "NEW"),
        help="Replace a folder path",
    )
    folders_group.add_argument("--list", "-l", action="store_true", dest="list_folders", help="List folders")
    folders_group.add_argument("--clear", action="store_true", help="Remove all folders")
    folders_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompts")

    # Recycle bin command
    recycle_parser = subparsers.add_parser("recycle-bin", help="Manage the recycle bin directory")
    recycle_group = recycle_parser.add_mutually_exclusive_group()
    recycle_group.add_argument("--set", metavar="PATH", dest="set_path", help="Set the recycle bin directory")
    recycle_group.add_argument("--show", action="store_true", help="Show the recycle bin directory")

    # Config command
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    args = parser.parse_args(argv)
    args.print_help = parser.print_help
    return args


def _print_report(console: Console, report: CleanupReport, *, force_delete: bool) -> None:
    """Print a summary of a cleanup run."""
    action = "Deleted" if force_delete else "Moved to recycle bin"

    table = Table(title="Cleanup summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Files inspected", str(report.total_files))
    table.add_row(action, str(report.transferred_files))
    table.add_row("Skipped", str(report.skipped_files))

    if report.compression is not None:
        compression = report.compression
        if compression.success:
            table.add_row("Archive", str(compression.output_path))
            table.add_row("Archived files", str(compression.file_count))
            table.add_row("Archive size", f"{compression.total_size} -> {compression.compressed_size} bytes")
        else:
            table.add_row("Archive", f"[red]failed: {compression.error}[/red]")

    console.print(table)


def cmd_clean(config: CleanupConfig, args: argparse.Namespace) -> int:
    """Execute clean command.

    Args:
        config: Cleanup configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()

    if not config.folders:
        console.print("[red]No folders configured.[/red] Use [bold]folders --add PATH[/bold] first.")
        return 1

    retention_days = config.retention_days if args.days is None else args.days
    console.print(f"Folders: {', '.join(str(f) for f in config.folders)}")
    console.print(f"Retention: {retention_days} days")

    if args.force and not args.yes:
        console.print("[yellow]--force deletes matching files permanently. They cannot be recovered.[/yellow]")
        if not Confirm.ask("Continue?", default=False, console=console):
            console.print("[yellow]Cancelled[/yellow]")
            return 0

    try:
        logger = setup_logging(config)
    except (OSError, ValueError) as e:
        console.print(f"[red]Failed to set up logging: {e}[/red]")
        return 1

    orchestrator = CleanupOrchestrator(
        config.retention_policy(retention_days),
        config.quarantine_target(),
        logger,
    )

    try:
        report = orchestrator.run(config.folders, retention_days, force_delete=args.force)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    _print_report(console, report, force_delete=args.force)
    return 0


def cmd_folders(config: CleanupConfig, args: argparse.Namespace) -> int:
    """Execute folders command.

    Args:
        config: Cleanup configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()
    store = FolderStore(config, args.config)

    try:
        if args.add:
            path = store.add(args.add)
            console.print(f"[green]Added folder: {path}[/green]")
            return 0

        if args.remove:
            path = store.remove(args.remove)
            console.print(f"[green]Removed folder: {path}[/green]")
            return 0

        if args.update:
            old, new = args.update
            path = store.update(old, new)
            console.print(f"[green]Updated folder: {path}[/green]")
            return 0

        if args.clear:
            if not args.yes and not Confirm.ask("Remove all configured folders?", default=False, console=console):
                console.print("[yellow]Cancelled[/yellow]")
                return 0
            count = store.clear()
            console.print(f"[green]Removed {count} folders[/green]")
            return 0
    except FolderStoreError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    if args.list_folders:
        folders = store.list_folders()
        if not folders:
            console.print("[yellow]No folders configured[/yellow]")
            return 0

        table = Table(title=f"Configured folders ({len(folders)})")
        table.add_column("#", style="dim")
        table.add_column("Folder", style="cyan")
        for index, folder in enumerate(folders, start=1):
            table.add_row(str(index), str(folder))
        console.print(table)
        return 0

    console.print("[yellow]Use --add, --remove, --update, --list, or --clear[/yellow]")
    return 1


def cmd_recycle_bin(config: CleanupConfig, args: argparse.Namespace) -> int:
    """Execute recycle-bin command.

    Args:
        config: Cleanup configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()
    store = FolderStore(config, args.config)

    if args.set_path:
        try:
            path = store.set_recycle_bin(args.set_path)
        except FolderStoreError as e:
            console.print(f"[red]{e}[/red]")
            return 1
        console.print(f"[green]Recycle bin directory: {path}[/green]")
        return 0

    if args.show:
        console.print(f"Recycle bin directory: {store.recycle_bin()}")
        return 0

    console.print("[yellow]Use --set or --show[/yellow]")
    return 1


def cmd_config(config: CleanupConfig, args: argparse.Namespace) -> int:
    """Execute config command.

    Args:
        config: Cleanup configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()

    if args.init:
        config_path = args.config or CleanupConfig.get_config_path()
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
            return 1
        config.save(config_path)
        console.print(f"[green]Created config: {config_path}[/green]")
        return 0

    if args.show:
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Folders", "\n".join(str(d) for d in config.folders) or "(none)")
        table.add_row("Retention days", str(config.retention_days))
        table.add_row("Allowed extensions", ", ".join(config.allowed_extensions))
        table.add_row("Protected files", ", ".join(config.protected_files))
        table.add_row("Recycle bin", str(config.recycle_bin_dir))
        table.add_row("Compression", str(config.compress_enabled))
        table.add_row("Log file", str(config.log_file))
        table.add_row("Log level", config.log_level)

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)

    if args.command is None:
        args.print_help()
        return 0

    try:
        config = CleanupConfig.load(args.config)
    except (OSError, ValueError) as e:
        Console(stderr=True).print(f"[red]Failed to load configuration: {e}[/red]")
        return 1

    if args.command == "clean":
        return cmd_clean(config, args)
    elif args.command == "folders":
        return cmd_folders(config, args)
    elif args.command == "recycle-bin":
        return cmd_recycle_bin(config, args)
    elif args.command == "config":
        return cmd_config(config, args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
