"""Upstream tag providers.

This module is the only place that talks to the hosting APIs. Each provider
turns one configured source into a list of version identifiers, newest
first, as the remote API orders them.

Responses are decoded into strict models listing the fields each endpoint
documents. A field we do not know about is a ProtocolError: it could carry
meaning (a new "yanked"-style flag) that silently ignoring would miss.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

import requests
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .errors import NetworkError, ProtocolError
from .models import CratesIoRelease, GithubRelease, GithubTag, SourceSpec

GITHUB_API = "https://api.github.com"
CRATES_IO_API = "https://crates.io/api/v1"
USER_AGENT = "pkgbuild-sync"
TIMEOUT = 30

S = TypeVar("S", bound=BaseModel)
T = TypeVar("T")


class _Response(BaseModel):
    model_config = ConfigDict(extra="forbid")


class GithubReleaseEntry(_Response):
    tag_name: str
    draft: bool
    prerelease: bool
    url: Any = None
    html_url: Any = None
    assets_url: Any = None
    upload_url: Any = None
    tarball_url: Any = None
    zipball_url: Any = None
    id: Any = None
    node_id: Any = None
    target_commitish: Any = None
    name: Any = None
    body: Any = None
    body_html: Any = None
    body_text: Any = None
    immutable: Any = None
    created_at: Any = None
    updated_at: Any = None
    published_at: Any = None
    author: Any = None
    assets: Any = None
    reactions: Any = None
    mentions_count: Any = None
    discussion_url: Any = None


class GithubTagEntry(_Response):
    name: str
    commit: Any = None
    zipball_url: Any = None
    tarball_url: Any = None
    node_id: Any = None


class CratesIoVersion(_Response):
    num: str
    yanked: bool = False
    id: Any = None
    crate: Any = None
    dl_path: Any = None
    readme_path: Any = None
    created_at: Any = None
    updated_at: Any = None
    downloads: Any = None
    features: Any = None
    yank_message: Any = None
    lib_links: Any = None
    license: Any = None
    links: Any = None
    crate_size: Any = None
    published_by: Any = None
    audit_actions: Any = None
    checksum: Any = None
    rust_version: Any = None
    has_lib: Any = None
    bin_names: Any = None
    edition: Any = None
    description: Any = None
    homepage: Any = None
    documentation: Any = None
    repository: Any = None
    linecounts: Any = None
    trustpub_data: Any = None


class CratesIoVersions(_Response):
    versions: list[CratesIoVersion]
    meta: Any = None


class TagProvider(ABC, Generic[S]):
    """Fetches the tag list for one kind of source.

    Subclasses set ``description`` (used in progress output) and implement
    get_tags().
    """

    description: ClassVar[str]

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    @abstractmethod
    def get_tags(self, source: S) -> list[str]:
        """Return candidate versions, newest first."""

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT}

    def _get_json(self, url: str) -> Any:
        try:
            r = self._session.get(url, headers=self._headers(), timeout=TIMEOUT)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"GET {url} failed: {exc}") from exc
        try:
            return r.json()
        except ValueError as exc:
            raise ProtocolError(f"GET {url} did not return JSON") from exc

    def _decode(self, url: str, payload: Any, adapter: TypeAdapter[T]) -> T:
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            raise ProtocolError(f"unexpected response from {url}: {exc}") from exc


class _GithubProvider(TagProvider[S]):
    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Accept"] = "application/vnd.github+json"
        headers["X-GitHub-Api-Version"] = "2022-11-28"
        token = os.environ.get("GITHUB_TOKEN", "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers


class GithubReleaseProvider(_GithubProvider[GithubRelease]):
    description = "github releases"
    _adapter = TypeAdapter(list[GithubReleaseEntry])

    def get_tags(self, source: GithubRelease) -> list[str]:
        url = f"{GITHUB_API}/repos/{source.repo}/releases"
        releases = self._decode(url, self._get_json(url), self._adapter)
        return [
            r.tag_name
            for r in releases
            if not r.draft and (source.prerelease or not r.prerelease)
        ]


class GithubTagProvider(_GithubProvider[GithubTag]):
    description = "github tags"
    _adapter = TypeAdapter(list[GithubTagEntry])

    def get_tags(self, source: GithubTag) -> list[str]:
        url = f"{GITHUB_API}/repos/{source.repo}/tags"
        tags = self._decode(url, self._get_json(url), self._adapter)
        return [t.name for t in tags]


class CratesIoReleaseProvider(TagProvider[CratesIoRelease]):
    description = "crates.io"
    _adapter = TypeAdapter(CratesIoVersions)

    def get_tags(self, source: CratesIoRelease) -> list[str]:
        url = f"{CRATES_IO_API}/crates/{source.crate}/versions"
        versions = self._decode(url, self._get_json(url), self._adapter)
        return [v.num for v in versions.versions if not v.yanked]


PROVIDERS: dict[str, type[TagProvider[Any]]] = {
    "github_release": GithubReleaseProvider,
    "github_tag": GithubTagProvider,
    "crates_io_release": CratesIoReleaseProvider,
}


def get_tags(source: SourceSpec, session: requests.Session | None = None) -> list[str]:
    """Fetch the tag list for a configured source, newest first."""
    provider = PROVIDERS[source.type](session)
    print(f"  get tags from {provider.description}")
    return provider.get_tags(source)


def latest_tag(source: SourceSpec, session: requests.Session | None = None) -> str:
    """Return the candidate version: the first tag the provider lists.

    Raises:
        ProtocolError: If the provider returned no acceptable tag.
    """
    tags = get_tags(source, session)
    print(f"  tags: {', '.join(tags[:5])}{' ...' if len(tags) > 5 else ''}")
    if not tags:
        raise ProtocolError("no suitable tag found")
    return tags[0]
