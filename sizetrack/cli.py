from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import brotli
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from sizetrack.config import (
    SizeTrackerConfig,
    load_config_file,
    regex_strip_hash,
)
from sizetrack.log import setup_logging
from sizetrack.models import Asset, Snapshot
from sizetrack.report import format_bytes
from sizetrack.store import load_history
from sizetrack.tracker import SizeTracker


app = typer.Typer(help="Track compressed sizes of build output files.")
console = Console()


def _read_assets(build_dir: Path) -> dict[str, Asset]:
    assets: dict[str, Asset] = {}
    for file_path in sorted(build_dir.rglob("*")):
        if file_path.is_file():
            assets[file_path.relative_to(build_dir).as_posix()] = Asset(source=file_path.read_bytes())
    return assets


def _build_config(base_dir: Path, overrides: dict[str, object]) -> SizeTrackerConfig:
    options = load_config_file(base_dir)
    options.update({key: value for key, value in overrides.items() if value is not None})
    options.setdefault("base_dir", str(base_dir))
    return SizeTrackerConfig(**options)


def _render_snapshot(snapshot: Snapshot) -> None:
    when = datetime.fromtimestamp(snapshot.timestamp / 1000, tz=timezone.utc)
    table = Table(title=when.strftime("%Y-%m-%d %H:%M:%S UTC"))
    table.add_column("File")
    table.add_column("Previous", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Diff", justify="right")

    for file in snapshot.files:
        style = "red" if file.diff > 0 else "green" if file.diff < 0 else ""
        diff_text = ("+" if file.diff > 0 else "") + format_bytes(file.diff)
        table.add_row(
            file.filename,
            format_bytes(file.previous),
            format_bytes(file.size),
            Text(diff_text, style=style),
        )

    console.print(table)


async def _report_async(build_dir: Path, previous_dir: Path | None, overrides: dict[str, object]) -> int:
    if not build_dir.is_dir():
        console.print(f"[red]Build directory does not exist: {escape(str(build_dir))}[/red]")
        return 1

    try:
        config = _build_config(Path.cwd(), overrides)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        return 1

    tracker = SizeTracker(config)
    assets = await asyncio.to_thread(_read_assets, build_dir.resolve())
    try:
        output = await tracker.output_sizes(assets, previous_dir, markup=True)
    except (OSError, ValueError, brotli.error) as exc:
        console.print(f"[red]Size tracking failed:[/red] {escape(str(exc))}")
        return 1

    if output:
        console.print(output, end="", highlight=False)
    else:
        console.print("[yellow]No tracked files found.[/yellow]")
    return 0


@app.command()
def report(
    build_dir: Path = typer.Argument(..., help="Directory containing the finished build output."),
    previous_dir: Path | None = typer.Option(
        None,
        "--previous-dir",
        help="Previous build output to scan when no snapshot has been recorded yet.",
    ),
    pattern: str | None = typer.Option(None, "--pattern", help="Glob pattern of files to track."),
    exclude: str | None = typer.Option(None, "--exclude", help="Glob pattern of files NOT to track."),
    hash_pattern: str | None = typer.Option(
        None,
        "--hash-pattern",
        help="Regular expression removed from filenames before comparing (e.g. '\\.[0-9a-f]{8}').",
    ),
    filename: str | None = typer.Option(None, "--filename", help="Snapshot history file name."),
    compression: str | None = typer.Option(None, "--compression", help="gzip or brotli."),
    mode: str | None = typer.Option(
        None, "--mode", help="Build mode. Snapshots are only saved in 'production'."
    ),
    publish: bool = typer.Option(False, "--publish", help="Publish sizes to the remote size store."),
    no_write: bool = typer.Option(False, "--no-write", help="Do not write the snapshot file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Report size changes of BUILD_DIR against the last recorded snapshot."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    overrides: dict[str, object] = {
        "pattern": pattern,
        "exclude": exclude,
        "filename": filename,
        "compression": compression,
        "mode": mode,
        "strip_hash": regex_strip_hash(hash_pattern) if hash_pattern else None,
        "publish": True if publish else None,
        "write_file": False if no_write else None,
    }
    raise typer.Exit(code=asyncio.run(_report_async(build_dir, previous_dir, overrides)))


@app.command()
def history(
    filename: str | None = typer.Option(None, "--filename", help="Snapshot history file name."),
    limit: int = typer.Option(5, "--limit", min=1, help="Number of snapshots to show."),
) -> None:
    """Show recorded snapshots, newest first."""
    try:
        config = _build_config(Path.cwd(), {"filename": filename})
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None

    snapshots = asyncio.run(load_history(config.filepath))
    if not snapshots:
        console.print(f"[yellow]No snapshots recorded in {escape(str(config.filepath))}[/yellow]")
        raise typer.Exit(code=0)

    for snapshot in snapshots[:limit]:
        _render_snapshot(snapshot)
    if len(snapshots) > limit:
        console.print(f"... {len(snapshots) - limit} older snapshot(s) not shown")


if __name__ == "__main__":
    app()
