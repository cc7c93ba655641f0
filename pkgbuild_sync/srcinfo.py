"""Parsing of .SRCINFO documents produced by ``makepkg --printsrcinfo``.

A .SRCINFO is a list of ``key = value`` lines. The ``pkgbase`` section runs
until the first ``pkgname`` line; each ``pkgname`` line opens the section of
one split package. Only the pkgbase fields and the package names are kept.
"""

from __future__ import annotations

from pathlib import Path

from .errors import MetadataInvalid
from .models import BuildMetadata

METADATA_FILE = ".SRCINFO"
_BASE_FIELDS = ("pkgbase", "pkgver", "pkgrel", "epoch")


def parse_srcinfo(text: str) -> BuildMetadata:
    """Parse the pkgbase section and package names of a .SRCINFO.

    Raises:
        MetadataInvalid: If pkgbase, pkgver or pkgrel is missing.
    """
    base: dict[str, str] = {}
    pkgnames: list[str] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(" = ")
        if not sep:
            # "key =" with an empty value
            key, sep, value = line.partition(" =")
            if not sep:
                raise MetadataInvalid(f"malformed .SRCINFO line: {raw!r}")
        key = key.strip()
        if key == "pkgname":
            pkgnames.append(value)
        elif not pkgnames and key in _BASE_FIELDS:
            base.setdefault(key, value)

    missing = [k for k in ("pkgbase", "pkgver", "pkgrel") if k not in base]
    if missing:
        raise MetadataInvalid(f".SRCINFO is missing {', '.join(missing)}")

    return BuildMetadata(
        pkgbase=base["pkgbase"],
        pkgver=base["pkgver"],
        pkgrel=base["pkgrel"],
        epoch=base.get("epoch") or None,
        pkgnames=pkgnames,
    )


def read_srcinfo(package_dir: Path) -> BuildMetadata | None:
    """Parse the .SRCINFO committed in a package directory.

    Returns:
        The parsed metadata, or None if the file does not exist yet.
    """
    path = package_dir / METADATA_FILE
    try:
        text = path.read_text()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataInvalid(f"failed to open {path}: {exc}") from exc
    return parse_srcinfo(text)


def write_srcinfo(package_dir: Path, content: bytes) -> None:
    """Write makepkg's output verbatim as the package's .SRCINFO."""
    path = package_dir / METADATA_FILE
    try:
        path.write_bytes(content)
    except OSError as exc:
        raise MetadataInvalid(f"failed to write {path}") from exc
