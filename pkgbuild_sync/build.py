"""Invocation of the Arch packaging tools.

Three synchronous steps, always run in this order by the pipeline:
updpkgsums, ``makepkg --printsrcinfo`` (possibly twice), and a verifying
``makepkg`` build. Checksum sync and the build inherit the terminal so the
operator can answer prompts; metadata generation is captured.
"""

from __future__ import annotations

from pathlib import Path

from .errors import BuildToolError
from .models import BuildMetadata
from .shell import run
from .srcinfo import parse_srcinfo


def _invoke(program: str, *args: str, cwd: Path, capture: bool) -> bytes:
    try:
        result = run(program, *args, cwd=cwd, capture=capture)
    except OSError as exc:
        raise BuildToolError(program, None, f"failed to start {program!r}: {exc}") from exc
    if result.returncode != 0:
        raise BuildToolError(program, result.returncode)
    return result.stdout or b""


def sync_checksums(package_dir: Path) -> None:
    """Refresh the checksum arrays of the PKGBUILD for the new sources."""
    print("  updpkgsums")
    _invoke("updpkgsums", cwd=package_dir, capture=False)


def regenerate_metadata(package_dir: Path) -> tuple[BuildMetadata, bytes]:
    """Run ``makepkg --printsrcinfo`` and parse its output.

    Returns:
        Tuple of (parsed metadata, raw .SRCINFO bytes to write back).
    """
    print("  makepkg --printsrcinfo")
    stdout = _invoke("makepkg", "--printsrcinfo", cwd=package_dir, capture=True)
    return parse_srcinfo(stdout.decode(errors="replace")), stdout


def run_verifying_build(package_dir: Path, *, noconfirm: bool = False) -> None:
    """Build the package with its check() step, without creating an archive.

    Missing dependencies are installed through pacman, which prompts unless
    noconfirm is set.
    """
    args = ["--syncdeps", "--check", "--noarchive"]
    if noconfirm:
        args.append("--noconfirm")
    print(f"  makepkg {' '.join(args)}")
    _invoke("makepkg", *args, cwd=package_dir, capture=False)
