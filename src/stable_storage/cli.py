"""CLI for stable-storage."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .config import config_from_env, load_store_config
from .constants import DATA_SUFFIX, TEMP_SUFFIX
from .errors import ConfigError, InvalidArgumentError, StorageIOError
from .hashing import encode_key
from .store import DurableBlobStore


app = typer.Typer(help="""\
Inspect and modify a durable blob store directory. Every command needs the
storage root, given with --root, --config or the STABLE_STORAGE_ROOT
environment variable.""")

console = Console(stderr=True)

ROOT_OPTION = typer.Option(None, "--root", "-r", help="Storage root directory")
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="YAML store configuration")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Durable key-value blob store."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def open_store(root: Optional[Path], config: Optional[Path] = None) -> DurableBlobStore:
    """Open the store named on the command line, or exit with an error.

    Raises:
        typer.Exit: If the configuration is missing or the root is unusable
    """
    try:
        cfg = load_store_config(config) if config else config_from_env(root)
        return DurableBlobStore.from_config(cfg)
    except (ConfigError, StorageIOError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)


@app.command()
def put(
    key: str = typer.Argument(..., help="Key to store"),
    value: Optional[str] = typer.Argument(None, help="Value (UTF-8); read from stdin if omitted"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read the value from a file"),
    root: Optional[Path] = ROOT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
):
    """Durably store a value under KEY.

    Examples:
        stable-storage put --root ./data greeting hello
        stable-storage put --root ./data blob --file payload.bin
        echo -n hi | stable-storage put --root ./data greeting
    """
    if value is not None and file is not None:
        console.print("[red]✗[/red] Give either VALUE or --file, not both")
        raise typer.Exit(2)

    store = open_store(root, config)
    if file is not None:
        try:
            data = file.read_bytes()
        except OSError as e:
            console.print(f"[red]✗[/red] Cannot read {file}: {e}")
            raise typer.Exit(1)
    elif value is not None:
        data = value.encode("utf-8")
    else:
        data = sys.stdin.buffer.read()

    try:
        asyncio.run(store.put(key, data))
    except (InvalidArgumentError, StorageIOError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Stored {len(data)} bytes under '{key}'")


@app.command()
def get(
    key: str = typer.Argument(..., help="Key to read"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the value to a file"),
    root: Optional[Path] = ROOT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
):
    """Print the value stored under KEY (exit 1 if absent)."""
    store = open_store(root, config)
    data = asyncio.run(store.get(key))
    if data is None:
        console.print(f"[yellow]Key not found:[/yellow] {key}")
        raise typer.Exit(1)

    if output is not None:
        try:
            output.write_bytes(data)
        except OSError as e:
            console.print(f"[red]✗[/red] Cannot write {output}: {e}")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Wrote {len(data)} bytes to {output}")
    else:
        typer.echo(data, nl=False)


@app.command()
def remove(
    key: str = typer.Argument(..., help="Key to remove"),
    root: Optional[Path] = ROOT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
):
    """Remove KEY and its value (exit 1 if nothing was removed)."""
    store = open_store(root, config)
    if not asyncio.run(store.remove(key)):
        console.print(f"[yellow]Nothing removed:[/yellow] {key}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed '{key}'")


@app.command()
def digest(
    key: str = typer.Argument(..., help="Key to hash"),
):
    """Show the digest and file names derived from KEY."""
    stem = encode_key(key)
    typer.echo(stem)
    console.print(f"[dim]data file: {stem}{DATA_SUFFIX}  temp file: {stem}{TEMP_SUFFIX}[/dim]")


@app.command()
def cleanup(
    root: Optional[Path] = ROOT_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
):
    """Delete temp files left by interrupted writes.

    Only run this while no writer is using the store.
    """
    store = open_store(root, config)
    try:
        removed = asyncio.run(store.discard_stale_temp_files())
    except StorageIOError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed {removed} stale temp file(s)")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
