"""Git checkout and publishing of package repositories."""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import CheckoutError, PublishError
from .shell import git

AUR_URL = "ssh://aur@aur.archlinux.org/{package}.git"


def checkout_package(package: str, workdir: Path) -> Path:
    """Clone an AUR package repository, or fast-forward an existing clone.

    Returns:
        Path to the package's working directory.
    """
    package_dir = workdir / package
    try:
        if package_dir.exists():
            print(f"  git pull ({package_dir})")
            git("pull", "--ff-only", cwd=package_dir)
        else:
            url = AUR_URL.format(package=package)
            print(f"  git clone {url}")
            git("clone", url, str(package_dir), cwd=workdir)
    except (subprocess.CalledProcessError, OSError) as exc:
        raise CheckoutError(f"failed to check out {package}: {_describe(exc)}") from exc
    return package_dir


def publish(package_dir: Path, files: list[str], pkgver: str) -> bool:
    """Commit the given files and push.

    Returns:
        False if nothing was staged and no commit was made, True otherwise.
    """
    try:
        git("add", "--", *files, cwd=package_dir)

        # Check if there are actually changes to commit
        result = subprocess.run(
            ["git", "diff", "--cached", "--quiet"], cwd=package_dir, capture_output=True
        )
        if result.returncode == 0:
            print("  No changes to commit")
            return False

        git("commit", "-m", f"update to {pkgver}", cwd=package_dir)
        git("push", cwd=package_dir)
    except (subprocess.CalledProcessError, OSError) as exc:
        raise PublishError(
            f"failed to publish {package_dir}: {_describe(exc)}"
            " (state already records the new tag; rerun with --force)"
        ) from exc
    print("  Committed and pushed")
    return True


def _describe(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        stderr = (exc.stderr or "").strip()
        cmd = " ".join(exc.cmd) if isinstance(exc.cmd, list) else str(exc.cmd)
        return f"{cmd!r} exited with {exc.returncode}" + (f": {stderr}" if stderr else "")
    return str(exc)
