"""CLI entry point for the Apple Books audiobook export."""

import json
import os
import sys
from pathlib import Path

import click
from loguru import logger

from .config import ExportConfig
from .errors import ExportError
from .models import ADD_DISPLAY_LIMIT, SKIP_DISPLAY_LIMIT, ExportStats
from .ops.export import export_audiobooks
from .ops.library_diff import DiffSummary, compute_diff, summarize_diff
from .ops.paths import symlinks_supported
from .plist_reader import load_library

log = logger.bind(stage="cli")

_RULE = "─" * 65


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def _load_env_file(env_file: Path) -> None:
    """Load a shell-style .env file into os.environ (without overriding)."""
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]
        # Don't override existing env vars (CLI > env > file)
        if key not in os.environ:
            os.environ[key] = value


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _section_header(marker: str, color: str, files: int, books: int) -> None:
    click.echo(f"┌{_RULE}┐")
    label = click.style(marker, fg=color)
    click.echo(f"│ {label} ({files} files in {books} books)")
    click.echo(f"└{_RULE}┘")


def _print_more(total: int, limit: int) -> None:
    if total > limit:
        click.echo(f"  ... and {total - limit} more books")


def _print_diff(summary: DiffSummary) -> None:
    """Print the boxed dry-run diff report."""
    click.echo(f"\n╔{'═' * 66}╗")
    click.echo(f"║{'DIFF SUMMARY':^66}║")
    click.echo(f"╚{'═' * 66}╝\n")

    if summary.new_files:
        _section_header("+ TO ADD", "green", summary.new_files, len(summary.to_add))
        plus = click.style("+", fg="green")
        for book_key, count in summary.to_add[:ADD_DISPLAY_LIMIT]:
            click.echo(f"  {plus} {book_key} ({count} files)")
        _print_more(len(summary.to_add), ADD_DISPLAY_LIMIT)
        click.echo("")

    if summary.existing_files:
        _section_header(
            "= ALREADY EXISTS",
            "yellow",
            summary.existing_files,
            len(summary.existing_books),
        )
        eq = click.style("=", fg="yellow")
        for book_key in summary.existing_books[:SKIP_DISPLAY_LIMIT]:
            click.echo(f"  {eq} {book_key}")
        _print_more(len(summary.existing_books), SKIP_DISPLAY_LIMIT)
        click.echo("")

    if summary.missing_files:
        _section_header(
            "! SOURCE MISSING",
            "red",
            summary.missing_files,
            len(summary.missing_books),
        )
        bang = click.style("!", fg="red")
        for book_key in summary.missing_books[:SKIP_DISPLAY_LIMIT]:
            click.echo(f"  {bang} {book_key}")
        _print_more(len(summary.missing_books), SKIP_DISPLAY_LIMIT)
        click.echo("")

    click.echo(f"┌{_RULE}┐")
    click.echo(f"│ {'TOTALS':<64}│")
    click.echo(f"├{_RULE}┤")
    rows = [
        ("+", "green", "New files to copy:", summary.new_files),
        ("=", "yellow", "Already exist (skip):", summary.existing_files),
        ("!", "red", "Source missing:", summary.missing_files),
    ]
    for marker, color, label, count in rows:
        click.echo(f"│  {click.style(marker, fg=color)} {label:<22} {count:>6}")
    click.echo(f"└{_RULE}┘")


def _print_summary(stats: ExportStats) -> None:
    click.echo("\n=== Export Summary ===")
    click.echo(f"Audiobooks processed: {stats.books_exported}")
    click.echo(f"Files copied: {stats.files_copied}")
    if stats.files_already_exist:
        click.echo(f"Files skipped (already exist): {stats.files_already_exist}")
    if stats.source_missing:
        click.echo(f"Files missing from source (skipped): {stats.source_missing}")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command()
@click.option(
    "-s",
    "--source",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Apple Books directory containing Books.plist "
    "(default: ~/Library/Containers/com.apple.BKAgentService/Data/Documents/iBooks/Books).",
)
@click.option(
    "-d",
    "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Destination Audiobookshelf library directory.",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be copied without copying."
)
@click.option("--symlink", is_flag=True, help="Symlink files instead of copying.")
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Print the dry-run diff as JSON.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
def main(
    source: Path | None,
    dest: Path | None,
    dry_run: bool,
    symlink: bool,
    json_out: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Export audiobooks from Apple Books to an Audiobookshelf library."""
    env_file = Path(config_file) if config_file else _find_config_file()
    if env_file and env_file.is_file():
        _load_env_file(env_file)

    # Pass CLI flags as kwargs to avoid env pollution. Flags that were not
    # given are left out so env vars and .env still apply.
    config_kwargs: dict = {}
    if dry_run:
        config_kwargs["dry_run"] = True
    if symlink:
        config_kwargs["symlink"] = True
    if verbose:
        config_kwargs["verbose"] = True
    if source is not None:
        config_kwargs["source_dir"] = source
    if dest is not None:
        config_kwargs["dest_dir"] = dest

    config = ExportConfig(**config_kwargs)
    config.setup_logging()
    if env_file and env_file.is_file():
        log.debug(f"Loaded env from {env_file}")

    if config.dest_dir is None:
        raise click.UsageError("Missing option '-d' / '--dest'.")

    # Symlink targets are interpreted relative to the link, so use absolute paths
    source_dir = config.source_dir.resolve()
    dest_dir = config.dest_dir.resolve()

    use_symlink = config.symlink
    if use_symlink and not symlinks_supported():
        log.warning("Symlinks are not supported on this platform, copying instead")
        use_symlink = False

    try:
        # Keep stdout clean for --json-output
        click.echo(
            f"Reading audiobook library from: {config.plist_path}", err=json_out
        )
        books = load_library(config.plist_path)
        click.echo(f"Found {len(books)} audiobooks", err=json_out)

        if config.dry_run:
            diffs = compute_diff(books, source_dir, dest_dir)
            summary = summarize_diff(diffs)
            if json_out:
                click.echo(json.dumps(summary.to_dict(), indent=2))
            else:
                click.echo("\n=== DRY RUN - No files will be copied ===")
                _print_diff(summary)
            return

        stats = export_audiobooks(
            books,
            source_dir,
            dest_dir,
            dry_run=False,
            use_symlink=use_symlink,
            show_progress=True,
        )
    except ExportError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _print_summary(stats)
