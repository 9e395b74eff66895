# src/vaultpack/cli.py
"""vaultpack Command Line Interface.

Entry point for the vaultpack CLI tool.
"""

from pathlib import Path

import typer
from pydantic import ValidationError

from vaultpack import __version__
from vaultpack.contracts import VaultpackError
from vaultpack.core.config import BackupSettings, load_settings
from vaultpack.core.logging import configure_logging
from vaultpack.engine import Pack
from vaultpack.prompt import is_interactive

app = typer.Typer(
    name="vaultpack",
    help="vaultpack: deduplicating, content-addressed backups.",
    no_args_is_help=True,
)

SETTINGS_OPTION = typer.Option(
    ...,
    "--settings",
    "-s",
    help="Path to settings YAML file.",
)

VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log every file and blob operation.",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"vaultpack version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """vaultpack: deduplicating, content-addressed backups."""
    pass


def _load_config(settings: str, verbose: bool) -> BackupSettings:
    """Load and validate settings, then configure logging from them."""
    try:
        config = load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    configure_logging(
        level="DEBUG" if verbose else config.logging.level,
        json_output=config.logging.format == "json",
    )
    return config


def _open_pack(config: BackupSettings, *, read_only: bool = False, interactive: bool = False) -> Pack:
    try:
        return Pack.open(
            config.destination_root,
            read_only=read_only,
            interactive=interactive,
            redundancy_level=config.redundancy_level,
        )
    except (VaultpackError, OSError) as e:
        typer.echo(f"Error: failed to open pack {config.destination_root}: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def backup(
    settings: str = SETTINGS_OPTION,
    interactive: bool | None = typer.Option(
        None,
        "--interactive/--no-interactive",
        help="Ask before saving changed files (default: when attached to a terminal).",
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Back up the configured source tree and commit the ledger."""
    config = _load_config(settings, verbose)
    if interactive is None:
        interactive = is_interactive()

    pack = _open_pack(config, interactive=interactive)
    try:
        results = pack.add_dir(config.source_dir, config.alias)
        pack.close()
    except (VaultpackError, OSError) as e:
        typer.echo(f"Error: failed to back up {config.source_dir}: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"done: {len(results)} file(s) processed")


@app.command("list")
def list_files(
    settings: str = SETTINGS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the logical paths currently held by the backup."""
    config = _load_config(settings, verbose)
    pack = _open_pack(config, read_only=True)
    for path in pack.list_paths():
        typer.echo(path)
    pack.close()


@app.command()
def verify(
    settings: str = SETTINGS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Verify the integrity of every stored blob (read-only)."""
    config = _load_config(settings, verbose)
    pack = _open_pack(config, read_only=True)
    try:
        report = pack.verify_report()
    except (VaultpackError, OSError) as e:
        typer.echo(f"Error: verification of {config.destination_root} failed: {e}", err=True)
        raise typer.Exit(1) from None
    finally:
        pack.close()

    if not report.passed:
        for check in report.failures:
            typer.echo(f"FAILED {check.entry.logical_path}: {'; '.join(check.errors)}", err=True)
        typer.echo(f"verification of {config.destination_root} failed", err=True)
        raise typer.Exit(1)
    typer.echo(f"verification of {config.destination_root} passed")


@app.command()
def recover(
    settings: str = SETTINGS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Repair corrupt blobs from their redundant copies."""
    config = _load_config(settings, verbose)
    pack = _open_pack(config)
    try:
        result = pack.recover()
        pack.close()
    except (VaultpackError, OSError) as e:
        typer.echo(f"Error: recovery of {config.destination_root} failed: {e}", err=True)
        raise typer.Exit(1) from None

    if not result.passed:
        typer.echo(
            f"recovery of {config.destination_root} failed to recover "
            f"{result.num_failed} file(s) ({result.num_recovered} file(s) were recovered, "
            f"{result.num_ok} file(s) were OK)",
            err=True,
        )
        raise typer.Exit(1)
    typer.echo(
        f"recovery of {config.destination_root} passed: {result.num_recovered} corrupt "
        f"file(s) were recovered ({result.num_ok} file(s) were OK)"
    )


@app.command()
def restore(
    paths: list[str] = typer.Argument(
        ...,
        help="Local paths under source_dir, or logical paths under alias_dir.",
    ),
    settings: str = SETTINGS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Overwrite local files with their backed-up copies."""
    config = _load_config(settings, verbose)
    pack = _open_pack(config, read_only=True)
    try:
        for path in paths:
            try:
                logical_path = config.to_logical(path)
                local_path = config.to_local(path)
            except ValueError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(1) from None
            try:
                pack.restore(logical_path, local_path)
            except (VaultpackError, OSError) as e:
                typer.echo(f"Error: restore of {local_path} failed: {e}", err=True)
                raise typer.Exit(1) from None
            typer.echo(f"restore of {local_path} done")
    finally:
        pack.close()


if __name__ == "__main__":
    app()
