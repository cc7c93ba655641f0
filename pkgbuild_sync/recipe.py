"""Line-scoped rewriting of PKGBUILD assignments.

The PKGBUILD is treated as a plain sequence of lines. Only lines starting
with the targeted key are replaced; everything else, including blank lines
and the presence or absence of a final newline, is written back untouched.
"""

from __future__ import annotations

from pathlib import Path

from .errors import RecipeIOError

RECIPE_FILE = "PKGBUILD"
RELEASE_KEY = "pkgrel"
ANNOTATION = "# updated by pkgbuild-sync"


def split_lines(text: str) -> list[str]:
    """Split on "\\n" only, so join_lines(split_lines(t)) == t for any t."""
    return text.split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


def assignment(key: str, value: str, *, annotate: bool = False) -> str:
    """Format a shell assignment line.

    Examples:
        assignment("pkgrel", "1") → "pkgrel=1"
        assignment("_pkgtag", "v2.0", annotate=True)
            → "_pkgtag=v2.0  # updated by pkgbuild-sync"
    """
    line = f"{key}={value}"
    if annotate:
        line += f"  {ANNOTATION}"
    return line


def set_assignment(lines: list[str], key: str, new_line: str) -> list[str]:
    """Replace every line assigning ``key`` with ``new_line``.

    A line matches when, ignoring leading whitespace, it starts with
    "<key>=". Non-matching lines are copied unchanged and order is kept.
    The input list is not modified.
    """
    prefix = key if key.endswith("=") else f"{key}="
    return [new_line if line.lstrip().startswith(prefix) else line for line in lines]


def has_assignment(lines: list[str], key: str) -> bool:
    prefix = key if key.endswith("=") else f"{key}="
    return any(line.lstrip().startswith(prefix) for line in lines)


def read_recipe(package_dir: Path) -> list[str]:
    path = package_dir / RECIPE_FILE
    try:
        return split_lines(path.read_bytes().decode())
    except (OSError, UnicodeDecodeError) as exc:
        raise RecipeIOError(f"failed to open {path}") from exc


def write_recipe(package_dir: Path, lines: list[str]) -> None:
    path = package_dir / RECIPE_FILE
    try:
        path.write_bytes(join_lines(lines).encode())
    except OSError as exc:
        raise RecipeIOError(f"failed to write {path}") from exc


def rewrite_assignment(package_dir: Path, key: str, new_line: str) -> bool:
    """Rewrite one assignment of the PKGBUILD in place.

    Returns:
        True if the file content changed.

    Raises:
        RecipeIOError: If the PKGBUILD has no such assignment.
    """
    lines = read_recipe(package_dir)
    if not has_assignment(lines, key):
        raise RecipeIOError(f"no {key}= assignment in {package_dir / RECIPE_FILE}")
    updated = set_assignment(lines, key, new_line)
    if updated == lines:
        return False
    write_recipe(package_dir, updated)
    return True


class RecipeSnapshot:
    """Saved copy of files the pipeline mutates, for restoring on failure.

    Files missing when the snapshot is taken are removed on restore.
    """

    def __init__(self, package_dir: Path, names: list[str]) -> None:
        self.package_dir = package_dir
        self._contents: dict[str, bytes | None] = {}
        for name in names:
            path = package_dir / name
            try:
                self._contents[name] = path.read_bytes()
            except FileNotFoundError:
                self._contents[name] = None
            except OSError as exc:
                raise RecipeIOError(f"failed to open {path}") from exc

    def restore(self) -> None:
        for name, content in self._contents.items():
            path = self.package_dir / name
            try:
                if content is None:
                    path.unlink(missing_ok=True)
                else:
                    path.write_bytes(content)
            except OSError as exc:
                raise RecipeIOError(f"failed to restore {path}") from exc
