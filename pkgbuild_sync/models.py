"""Data models for pkgbuild-sync.

These Pydantic models represent the core data structures used throughout
the update pipeline: the per-package ci.toml configuration, the persisted
.index.json record, and the metadata parsed back out of .SRCINFO.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .errors import InvalidPattern

DEFAULT_PKGVER_REGEX = r"^[0-9]+(\.[0-9]+)+$"


class _Strict(BaseModel):
    """Base for config tables: unknown keys are an error, values are frozen."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class GithubRelease(_Strict):
    """Track the release list of a GitHub repository.

    Attributes:
        repo: Repository in "owner/name" form.
        prerelease: Also accept releases marked as pre-release. Drafts are
                    never accepted.
    """

    type: Literal["github_release"]
    repo: str
    prerelease: bool = False


class GithubTag(_Strict):
    """Track the raw tag list of a GitHub repository."""

    type: Literal["github_tag"]
    repo: str


class CratesIoRelease(_Strict):
    """Track the published versions of a crate on crates.io."""

    type: Literal["crates_io_release"]
    crate: str


SourceSpec = Annotated[
    Union[GithubRelease, GithubTag, CratesIoRelease],
    Field(discriminator="type"),
]


class CheckPolicy(_Strict):
    """Validation applied to the version computed by makepkg.

    Attributes:
        pkgver_regex: Pattern the computed pkgver must match. Defaults to
                      a dotted numeric version such as "2.14.0".
    """

    pkgver_regex: str = DEFAULT_PKGVER_REGEX
    _pattern: re.Pattern[str] = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        try:
            self._pattern = re.compile(self.pkgver_regex)
        except re.error as exc:
            raise InvalidPattern(
                f"invalid check.pkgver_regex {self.pkgver_regex!r}: {exc}"
            ) from exc

    def matches(self, version: str) -> bool:
        return self._pattern.search(version) is not None


class RecipeOptions(_Strict):
    """How the upstream tag is written into the PKGBUILD.

    Attributes:
        tag_key: Name of the assignment that holds the upstream tag.
        annotate: Append a comment marking the line as machine-written.
    """

    tag_key: str = "_pkgtag"
    annotate: bool = False


class Config(_Strict):
    """Parsed contents of a package's ci.toml."""

    source: SourceSpec
    check: CheckPolicy = Field(default_factory=CheckPolicy)
    recipe: RecipeOptions = Field(default_factory=RecipeOptions)


class VersionRecord(BaseModel):
    """Persisted per-package state stored in .index.json.

    Attributes:
        tag: The upstream tag applied by the last successful run.
        pkgver: The pkgver makepkg computed on that run. Kept separately
                from tag since the two differ whenever the PKGBUILD derives
                pkgver from the tag (e.g. stripping a "v" prefix).
    """

    model_config = ConfigDict(extra="ignore")

    tag: str = ""
    pkgver: str | None = None


class BuildMetadata(BaseModel):
    """The pkgbase section of a .SRCINFO document.

    Attributes:
        pkgbase: Base package name.
        pkgver: Version computed from the PKGBUILD.
        pkgrel: Release counter.
        epoch: Optional epoch, None when the PKGBUILD sets none.
        pkgnames: Names of the packages built from this base.
    """

    pkgbase: str
    pkgver: str
    pkgrel: str
    epoch: str | None = None
    pkgnames: list[str] = Field(default_factory=list)

    @property
    def full_version(self) -> str:
        prefix = f"{self.epoch}:" if self.epoch else ""
        return f"{prefix}{self.pkgver}-{self.pkgrel}"


class SyncOptions(BaseModel):
    """Per-invocation switches shared by every package.

    Attributes:
        dry_run: Mutate files locally but do not commit or push.
        force: Update even when the upstream tag was already applied.
        noconfirm: Pass --noconfirm to the verifying makepkg build.
    """

    dry_run: bool = False
    force: bool = False
    noconfirm: bool = False


class PackageStatus(str, Enum):
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"
    PUBLISHED = "published"


class PackageResult(BaseModel):
    """Outcome of a successful run for one package."""

    package: str
    status: PackageStatus
    tag: str
    pkgver: str | None = None


class RunSummary(BaseModel):
    """Outcome of an invocation over several packages."""

    results: list[PackageResult] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
