"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from pkgbuild_sync.models import BuildMetadata
from pkgbuild_sync.srcinfo import parse_srcinfo

PKGBUILD = """\
# Maintainer: Jane Doe <jane@example.com>
pkgname=foo
_pkgtag=1.1.0
pkgver=${_pkgtag}
pkgrel=3
pkgdesc="A tool that does things"
arch=('x86_64')
url="https://github.com/owner/foo"

source=("https://github.com/owner/foo/archive/${_pkgtag}.tar.gz")
sha256sums=('0000')

build() {
\tcd "foo-${pkgver}"
\tmake
}"""

CI_TOML = """\
[source]
type = "github_release"
repo = "owner/foo"
"""


def srcinfo_text(pkgver: str, pkgrel: str, pkgbase: str = "foo") -> str:
    return (
        f"pkgbase = {pkgbase}\n"
        "\tpkgdesc = A tool that does things\n"
        f"\tpkgver = {pkgver}\n"
        f"\tpkgrel = {pkgrel}\n"
        "\turl = https://github.com/owner/foo\n"
        "\tarch = x86_64\n"
        f"\tsource = https://github.com/owner/foo/archive/{pkgver}.tar.gz\n"
        "\tsha256sums = 0000\n"
        "\n"
        f"pkgname = {pkgbase}\n"
    )


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    """A package directory as committed after applying tag 1.1.0."""
    d = tmp_path / "foo"
    d.mkdir()
    (d / "PKGBUILD").write_text(PKGBUILD)
    (d / ".SRCINFO").write_text(srcinfo_text("1.1.0", "3"))
    (d / "ci.toml").write_text(CI_TOML)
    (d / ".index.json").write_text('{"tag": "1.1.0", "pkgver": "1.1.0"}\n')
    return d


def fake_printsrcinfo(package_dir: Path) -> tuple[BuildMetadata, bytes]:
    """Stand-in for makepkg --printsrcinfo driven by the PKGBUILD on disk.

    pkgver is taken verbatim from _pkgtag, pkgrel from pkgrel.
    """
    values: dict[str, str] = {}
    for line in (package_dir / "PKGBUILD").read_text().split("\n"):
        key, sep, value = line.partition("=")
        if sep and key in ("_pkgtag", "pkgrel"):
            values[key] = value.split()[0]
    text = srcinfo_text(values["_pkgtag"], values["pkgrel"])
    return parse_srcinfo(text), text.encode()


@pytest.fixture
def fake_makepkg() -> Callable[[Path], tuple[BuildMetadata, bytes]]:
    return fake_printsrcinfo


@pytest.fixture
def make_srcinfo() -> Callable[..., str]:
    return srcinfo_text
