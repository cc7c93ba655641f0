"""CLI entry point for pkgbuild-sync."""

from __future__ import annotations

from pathlib import Path

import click

from pkgbuild_sync.config import CONFIG_FILE, save_toml, scaffold_config
from pkgbuild_sync.errors import ConfigInvalid
from pkgbuild_sync.models import SyncOptions
from pkgbuild_sync.pipeline import run_update
from pkgbuild_sync.providers import PROVIDERS


@click.group()
@click.version_option(package_name="pkgbuild-sync")
def cli() -> None:
    """Keep AUR PKGBUILDs in step with upstream release tags."""


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.option(
    "-l", "--local", is_flag=True, help="Treat PACKAGES as local directories."
)
@click.option("-d", "--dry-run", is_flag=True, help="Do not commit or push changes.")
@click.option(
    "-f", "--force", is_flag=True, help="Update even if the tag was already applied."
)
@click.option(
    "-y", "--noconfirm", is_flag=True, help="Do not prompt during the makepkg build."
)
@click.option(
    "-w",
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory AUR repositories are cloned into.",
)
def update(
    packages: tuple[str, ...],
    local: bool,
    dry_run: bool,
    force: bool,
    noconfirm: bool,
    workdir: Path,
) -> None:
    """Update one or more AUR packages to their latest upstream tag."""
    options = SyncOptions(dry_run=dry_run, force=force, noconfirm=noconfirm)
    summary = run_update(list(packages), options, local=local, workdir=workdir)
    if not summary.ok:
        raise SystemExit(1)


@cli.command()
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "-t",
    "--type",
    "source_type",
    type=click.Choice(sorted(PROVIDERS)),
    required=True,
    help="Where upstream versions come from.",
)
@click.option("--repo", help="GitHub repository (owner/name).")
@click.option("--crate", help="crates.io crate name.")
@click.option("--prerelease", is_flag=True, help="Also accept GitHub pre-releases.")
def init(
    directory: Path,
    source_type: str,
    repo: str | None,
    crate: str | None,
    prerelease: bool,
) -> None:
    """Scaffold a ci.toml into a package directory."""
    if not (directory / "PKGBUILD").exists():
        raise click.ClickException(f"No PKGBUILD found in {directory}.")

    dest = directory / CONFIG_FILE
    if dest.exists():
        raise click.ClickException(f"{dest} already exists.")

    try:
        doc = scaffold_config(source_type, repo=repo, crate=crate, prerelease=prerelease)
    except ConfigInvalid as exc:
        raise click.ClickException(str(exc)) from exc

    save_toml(dest, doc)
    click.echo(f"✓ Wrote {dest}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Make sure the PKGBUILD assigns _pkgtag=")
    click.echo(f"  2. Run: pkgbuild-sync update --local --dry-run {directory}")
