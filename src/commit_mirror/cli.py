import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import daemon
from .config import Config, parse_duration
from .constants import APP_NAME
from .errors import ArgumentError, MirrorError
from .models import SyncSummary
from .pipeline import SyncPipeline

console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser for the `commit-mirror` command."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Mirror unpushed commits from a source repository into per-file "
            "logs committed to a target repository."
        ),
    )
    parser.add_argument(
        "--sourceDir",
        metavar="PATH",
        help="Specify the source directory containing the commits",
    )
    parser.add_argument(
        "--newDir",
        metavar="PATH",
        help="Specify the new directory where the commits will be duplicated",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Enable watching for new commits (optional)",
    )
    parser.add_argument("--branch", help="Local branch to mirror (default: main)")
    parser.add_argument(
        "--remote", help="Remote marking the synced point (default: origin)"
    )
    parser.add_argument(
        "--debounce",
        metavar="DURATION",
        help="Quiet window before a watch-triggered sync (e.g. '1s', '500ms')",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _resolve_dirs(args: argparse.Namespace) -> tuple[Path, Path]:
    """Validates the directory arguments and makes them absolute.

    Raises:
        ArgumentError: If an argument is missing or the source is not a repository.
    """
    if not args.sourceDir:
        raise ArgumentError("--sourceDir parameter is missing.")
    if not args.newDir:
        raise ArgumentError("--newDir parameter is missing.")

    source_dir = Path(args.sourceDir).expanduser().resolve()
    target_dir = Path(args.newDir).expanduser().resolve()

    if not source_dir.is_dir():
        raise ArgumentError(f"Source directory does not exist: {source_dir}")
    if not (source_dir / ".git").exists():
        raise ArgumentError(f"Not a git repository: {source_dir}")
    if target_dir == source_dir:
        raise ArgumentError("--newDir must differ from --sourceDir.")
    if target_dir.exists() and not target_dir.is_dir():
        raise ArgumentError(f"Target path is not a directory: {target_dir}")

    return source_dir, target_dir


def _apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if args.branch:
        config.source.branch = args.branch
    if args.remote:
        config.source.remote = args.remote
    if args.debounce:
        try:
            config.watch.debounce = parse_duration(args.debounce)
        except ValueError as e:
            raise ArgumentError(f"--debounce: {e}") from e
    return config


def print_summary(summary: SyncSummary) -> None:
    """Prints the records added during a one-shot run."""
    if not summary.records:
        console.print("\n[dim]0 New Commits Added[/dim]")
    else:
        table = Table(
            title=f"{len(summary.records)} New Commits Added", show_header=True
        )
        table.add_column("File", style="cyan")
        table.add_column("Commit", style="dim")
        table.add_column("Message")
        for record in summary.records:
            first_line = record.message.splitlines()[0] if record.message else ""
            table.add_row(record.file_name, record.commit_hash[:8], first_line)
        console.print(table)

    if summary.skipped or summary.failed:
        console.print(
            f"[dim]{summary.skipped} skipped[/dim], "
            f"[{'red' if summary.failed else 'dim'}]{summary.failed} failed[/]"
        )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Commit Mirror CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        source_dir, target_dir = _resolve_dirs(args)
        config = _apply_overrides(Config.load(source_dir), args)
    except ArgumentError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    daemon.setup_logging(watch=args.watch, verbose=args.verbose, config=config)
    pipeline = SyncPipeline(config)

    if args.watch:
        daemon.run_watch(source_dir, target_dir, config, pipeline=pipeline)
        return

    try:
        with console.status("Mirroring new commits...", spinner="dots"):
            summary = pipeline.run(source_dir, target_dir)
    except MirrorError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    print_summary(summary)


if __name__ == "__main__":
    main()
