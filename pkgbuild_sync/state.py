"""Load and persist the per-package .index.json record."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from .errors import StateCorrupt
from .models import VersionRecord

STATE_FILE = ".index.json"


def load_state(package_dir: Path) -> VersionRecord:
    """Read the last applied version of a package.

    A missing file is not an error: it yields an empty record, as for a
    package that has never been updated.

    Raises:
        StateCorrupt: If the file exists but cannot be read or decoded.
    """
    path = package_dir / STATE_FILE
    print(f"  load {STATE_FILE}")
    try:
        content = path.read_text()
    except FileNotFoundError:
        return VersionRecord()
    except (OSError, UnicodeDecodeError) as exc:
        raise StateCorrupt(f"failed to open {path}: {exc}") from exc

    try:
        return VersionRecord.model_validate_json(content)
    except ValidationError as exc:
        raise StateCorrupt(f"failed to parse {path}: {exc}") from exc


def save_state(package_dir: Path, record: VersionRecord) -> None:
    """Write the record, replacing the previous file atomically.

    Content goes to a temporary file in the same directory first and is
    renamed over the old file, so a crash never leaves a truncated record.
    """
    path = package_dir / STATE_FILE
    content = record.model_dump_json(indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(dir=package_dir, prefix=f"{STATE_FILE}.")
    try:
        with os.fdopen(fd, "w") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise StateCorrupt(f"failed to write {path}") from exc
