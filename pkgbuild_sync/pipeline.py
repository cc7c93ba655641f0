"""Update pipeline: load → decide → mutate → regenerate → validate → build → persist → publish.

This module orchestrates the update of one AUR package directory:
1. Load .index.json, ci.toml and the current .SRCINFO
2. Ask the configured provider for the latest upstream tag and stop if it
   was already applied (unless forced)
3. Rewrite the tag assignment in the PKGBUILD
4. Refresh checksums and regenerate .SRCINFO with makepkg
5. Reset pkgrel to 1 when the computed pkgver changed, and regenerate again
6. Check the computed pkgver against the configured pattern
7. Run a verifying makepkg build
8. Write .SRCINFO and the new .index.json
9. Commit and push, unless this is a dry run

Packages are processed one after another. A failure aborts the remaining
stages for that package only; files mutated before the failure are restored
from a snapshot as long as nothing was persisted yet.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path

from .build import regenerate_metadata, run_verifying_build, sync_checksums
from .config import load_config
from .errors import PackageFailed, SyncError, VersionFormatError, format_error_chain
from .models import (
    BuildMetadata,
    Config,
    PackageResult,
    PackageStatus,
    RunSummary,
    SyncOptions,
    VersionRecord,
)
from .providers import latest_tag
from .recipe import RECIPE_FILE, RELEASE_KEY, RecipeSnapshot, assignment, rewrite_assignment
from .shell import error, step
from .srcinfo import METADATA_FILE, read_srcinfo, write_srcinfo
from .state import STATE_FILE, load_state, save_state
from .vcs import checkout_package, publish


class Stage(str, Enum):
    CHECKOUT = "checkout"
    LOAD = "load"
    DECIDE = "decide"
    MUTATE = "mutate"
    METADATA = "metadata"
    RELEASE_RESET = "release-reset"
    VALIDATE = "validate"
    BUILD = "build"
    PERSIST = "persist"
    PUBLISH = "publish"


@contextmanager
def _stage(package: str, stage: Stage) -> Iterator[None]:
    """Attach the package name and stage to any failure inside the block."""
    try:
        yield
    except PackageFailed:
        raise
    except SyncError as exc:
        raise PackageFailed(package, stage.value) from exc


def previous_build_version(package_dir: Path, record: VersionRecord) -> str | None:
    """The pkgver the package had before this run.

    Read from the .SRCINFO in the directory; the recorded pkgver is the
    fallback for packages without one. None means unknown.
    """
    print(f"  load {METADATA_FILE}")
    metadata = read_srcinfo(package_dir)
    if metadata is not None:
        return metadata.pkgver
    return record.pkgver


def apply_tag(package_dir: Path, config: Config, tag: str) -> None:
    """Point the PKGBUILD's tag assignment at the new upstream tag."""
    key = config.recipe.tag_key
    print(f"  set {key}={tag} in {RECIPE_FILE}")
    line = assignment(key, tag, annotate=config.recipe.annotate)
    rewrite_assignment(package_dir, key, line)


def reset_release(
    package_dir: Path, metadata: BuildMetadata, previous_pkgver: str | None
) -> bool:
    """Set pkgrel back to 1 if pkgver moved since the last run.

    Returns:
        True if the PKGBUILD was modified and .SRCINFO needs regenerating.
    """
    if metadata.pkgver == previous_pkgver:
        print(f"  pkgver unchanged ({metadata.pkgver}), keeping pkgrel={metadata.pkgrel}")
        return False
    print(f"  pkgver {previous_pkgver or '<none>'} → {metadata.pkgver}, reset {RELEASE_KEY}=1")
    return rewrite_assignment(package_dir, RELEASE_KEY, assignment(RELEASE_KEY, "1"))


def validate_version(config: Config, metadata: BuildMetadata) -> None:
    """Reject a computed pkgver that does not match check.pkgver_regex."""
    if not config.check.matches(metadata.pkgver):
        raise VersionFormatError(
            f"pkgver {metadata.pkgver!r} does not match {config.check.pkgver_regex!r}"
        )
    print(f"  pkgver {metadata.pkgver} ok")


def update_package(
    package_dir: Path, options: SyncOptions, name: str | None = None
) -> PackageResult:
    """Run the full pipeline for one package directory.

    Args:
        package_dir: Working directory holding PKGBUILD and ci.toml.
        options: Dry-run, force and noconfirm switches.
        name: Name used in output and errors. Defaults to the directory name.

    Raises:
        PackageFailed: Chained to the error of the stage that failed.
    """
    package = name or package_dir.name

    with _stage(package, Stage.LOAD):
        record = load_state(package_dir)
        config = load_config(package_dir)
        previous_pkgver = previous_build_version(package_dir, record)

    with _stage(package, Stage.DECIDE):
        tag = latest_tag(config.source)
    if tag == record.tag and not options.force:
        print("  package is already up to date")
        return PackageResult(
            package=package, status=PackageStatus.UP_TO_DATE, tag=tag, pkgver=record.pkgver
        )

    with _stage(package, Stage.MUTATE):
        snapshot = RecipeSnapshot(package_dir, [RECIPE_FILE, METADATA_FILE])
    try:
        with _stage(package, Stage.MUTATE):
            apply_tag(package_dir, config, tag)

        with _stage(package, Stage.METADATA):
            sync_checksums(package_dir)
            metadata, raw = regenerate_metadata(package_dir)

        with _stage(package, Stage.RELEASE_RESET):
            if reset_release(package_dir, metadata, previous_pkgver):
                metadata, raw = regenerate_metadata(package_dir)

        with _stage(package, Stage.VALIDATE):
            validate_version(config, metadata)

        with _stage(package, Stage.BUILD):
            run_verifying_build(package_dir, noconfirm=options.noconfirm)
    except SyncError:
        print(f"  restoring {RECIPE_FILE} and {METADATA_FILE}")
        snapshot.restore()
        raise

    with _stage(package, Stage.PERSIST):
        print(f"  write {METADATA_FILE} and {STATE_FILE}")
        write_srcinfo(package_dir, raw)
        save_state(package_dir, VersionRecord(tag=tag, pkgver=metadata.pkgver))

    if options.dry_run:
        print("  dry run: not committing")
        return PackageResult(
            package=package, status=PackageStatus.UPDATED, tag=tag, pkgver=metadata.pkgver
        )

    with _stage(package, Stage.PUBLISH):
        publish(package_dir, [RECIPE_FILE, METADATA_FILE, STATE_FILE], metadata.pkgver)
    return PackageResult(
        package=package, status=PackageStatus.PUBLISHED, tag=tag, pkgver=metadata.pkgver
    )


def run_update(
    packages: list[str],
    options: SyncOptions,
    *,
    local: bool = False,
    workdir: Path | None = None,
) -> RunSummary:
    """Update each package in turn, isolating failures.

    Args:
        packages: AUR package names, or directories when local is True.
        options: Switches applied to every package.
        local: Treat each entry as an existing directory instead of cloning.
        workdir: Where remote packages are cloned. Defaults to the cwd.

    Returns:
        Summary of successful results and names of failed packages.
    """
    workdir = workdir or Path.cwd()
    summary = RunSummary()

    for package in packages:
        step(f"Processing package {package}")
        try:
            if local:
                package_dir = Path(package)
            else:
                with _stage(package, Stage.CHECKOUT):
                    package_dir = checkout_package(package, workdir)
            summary.results.append(update_package(package_dir, options, name=package))
        except SyncError as exc:
            first, *causes = format_error_chain(exc)
            error(first)
            for line in causes:
                print(f"  {line}", file=sys.stderr)
            summary.failed.append(package)

    step("Summary")
    for result in summary.results:
        version = f" ({result.pkgver})" if result.pkgver else ""
        print(f"  {result.package}: {result.status.value} {result.tag}{version}")
    for package in summary.failed:
        print(f"  {package}: failed")
    return summary
