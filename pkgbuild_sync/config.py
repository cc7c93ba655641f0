"""ci.toml reading and writing.

Uses tomlkit so that scaffolded files keep readable formatting. Loading is
strict: unknown tables or keys, and unknown source types, are rejected
rather than ignored.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import ParseError

from .errors import ConfigInvalid, ConfigMissing
from .models import Config

CONFIG_FILE = "ci.toml"


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file, preserving formatting."""
    return tomlkit.parse(path.read_text())


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk."""
    path.write_text(tomlkit.dumps(doc))


def load_config(package_dir: Path) -> Config:
    """Load and validate the ci.toml of a package directory.

    Raises:
        ConfigMissing: If ci.toml does not exist.
        ConfigInvalid: If it cannot be read, is not valid TOML, or does not
                       match the schema.
        InvalidPattern: If check.pkgver_regex does not compile.
    """
    path = package_dir / CONFIG_FILE
    print(f"  load {CONFIG_FILE}")
    try:
        doc = load_toml(path)
    except FileNotFoundError as exc:
        raise ConfigMissing(f"{path} not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigInvalid(f"failed to open {path}: {exc}") from exc
    except ParseError as exc:
        raise ConfigInvalid(f"failed to parse {path}: {exc}") from exc

    try:
        return Config.model_validate(doc.unwrap())
    except ValidationError as exc:
        raise ConfigInvalid(f"failed to parse {path}: {exc}") from exc


def scaffold_config(
    source_type: str,
    *,
    repo: str | None = None,
    crate: str | None = None,
    prerelease: bool = False,
) -> tomlkit.TOMLDocument:
    """Build a ci.toml document for a new package.

    The result is validated against the schema before being returned.

    Raises:
        ConfigInvalid: If the combination of options is not a valid source.
    """
    doc = tomlkit.document()
    source = tomlkit.table()
    source.add("type", source_type)
    if repo is not None:
        source.add("repo", repo)
    if crate is not None:
        source.add("crate", crate)
    if prerelease:
        source.add("prerelease", True)
    doc.add("source", source)

    try:
        Config.model_validate(doc.unwrap())
    except ValidationError as exc:
        raise ConfigInvalid(f"invalid source configuration: {exc}") from exc
    return doc
