"""Tests for pkgbuild_sync.providers."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from pkgbuild_sync.errors import NetworkError, ProtocolError
from pkgbuild_sync.models import CratesIoRelease, GithubRelease, GithubTag
from pkgbuild_sync.providers import (
    CratesIoReleaseProvider,
    GithubReleaseProvider,
    GithubTagProvider,
    get_tags,
    latest_tag,
)


def _session(payload: Any) -> MagicMock:
    """A requests.Session whose get() returns payload as JSON."""
    response = MagicMock()
    response.json.return_value = payload
    session = MagicMock(spec=requests.Session)
    session.get.return_value = response
    return session


def _release(tag: str, *, draft: bool = False, prerelease: bool = False) -> dict[str, Any]:
    return {
        "url": f"https://api.github.com/repos/owner/foo/releases/{tag}",
        "id": 1,
        "node_id": "RE_x",
        "tag_name": tag,
        "target_commitish": "main",
        "name": tag,
        "draft": draft,
        "prerelease": prerelease,
        "created_at": "2024-01-01T00:00:00Z",
        "published_at": "2024-01-01T00:00:00Z",
        "assets": [],
        "tarball_url": "https://example.invalid/t",
        "zipball_url": "https://example.invalid/z",
        "body": "notes",
    }


GITHUB_RELEASE = GithubRelease(type="github_release", repo="owner/foo")


class TestGithubReleaseProvider:
    def test_returns_tags_in_api_order(self) -> None:
        session = _session([_release("1.2.0"), _release("1.1.0")])

        tags = GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)

        assert tags == ["1.2.0", "1.1.0"]
        url = session.get.call_args[0][0]
        assert url == "https://api.github.com/repos/owner/foo/releases"

    def test_excludes_drafts_and_prereleases(self) -> None:
        session = _session(
            [
                _release("2.0.0", draft=True),
                _release("1.3.0-rc1", prerelease=True),
                _release("1.2.0"),
            ]
        )
        assert GithubReleaseProvider(session).get_tags(GITHUB_RELEASE) == ["1.2.0"]

    def test_prerelease_opt_in_still_excludes_drafts(self) -> None:
        session = _session(
            [
                _release("2.0.0", draft=True, prerelease=True),
                _release("1.3.0-rc1", prerelease=True),
                _release("1.2.0"),
            ]
        )
        source = GithubRelease(type="github_release", repo="owner/foo", prerelease=True)
        assert GithubReleaseProvider(session).get_tags(source) == ["1.3.0-rc1", "1.2.0"]

    def test_unknown_field_is_protocol_error(self) -> None:
        entry = _release("1.2.0")
        entry["yanked"] = True
        with pytest.raises(ProtocolError, match="yanked"):
            GithubReleaseProvider(_session([entry])).get_tags(GITHUB_RELEASE)

    def test_missing_field_is_protocol_error(self) -> None:
        entry = _release("1.2.0")
        del entry["draft"]
        with pytest.raises(ProtocolError):
            GithubReleaseProvider(_session([entry])).get_tags(GITHUB_RELEASE)

    def test_wrong_shape_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            GithubReleaseProvider(_session({"message": "Not Found"})).get_tags(
                GITHUB_RELEASE
            )

    def test_sends_token_when_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        session = _session([])

        GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)

        headers = session.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"
        assert headers["User-Agent"] == "pkgbuild-sync"

    def test_anonymous_without_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        session = _session([])

        GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)

        assert "Authorization" not in session.get.call_args.kwargs["headers"]


class TestGithubTagProvider:
    def test_returns_raw_names(self) -> None:
        session = _session(
            [
                {"name": "v2.0.0-beta", "commit": {"sha": "a", "url": "u"}, "node_id": "x",
                 "zipball_url": "z", "tarball_url": "t"},
                {"name": "v1.9.0", "commit": {"sha": "b", "url": "u"}},
            ]
        )
        source = GithubTag(type="github_tag", repo="owner/foo")

        assert GithubTagProvider(session).get_tags(source) == ["v2.0.0-beta", "v1.9.0"]
        assert session.get.call_args[0][0] == "https://api.github.com/repos/owner/foo/tags"

    def test_unknown_field_is_protocol_error(self) -> None:
        source = GithubTag(type="github_tag", repo="owner/foo")
        with pytest.raises(ProtocolError):
            GithubTagProvider(_session([{"name": "v1", "signed": True}])).get_tags(source)


class TestCratesIoReleaseProvider:
    def test_returns_unyanked_versions(self) -> None:
        session = _session(
            {
                "versions": [
                    {"num": "14.1.1", "yanked": False, "crate": "ripgrep", "id": 3},
                    {"num": "14.1.0", "yanked": True, "crate": "ripgrep", "id": 2},
                    {"num": "14.0.0", "yanked": False, "crate": "ripgrep", "id": 1},
                ],
                "meta": {"total": 3, "next_page": None},
            }
        )
        source = CratesIoRelease(type="crates_io_release", crate="ripgrep")

        assert CratesIoReleaseProvider(session).get_tags(source) == ["14.1.1", "14.0.0"]
        assert (
            session.get.call_args[0][0]
            == "https://crates.io/api/v1/crates/ripgrep/versions"
        )


class TestTransportErrors:
    def test_http_error_is_network_error(self) -> None:
        session = _session([])
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError(
            "404 Client Error"
        )
        with pytest.raises(NetworkError, match="404"):
            GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)

    def test_connection_error_is_network_error(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("no route to host")
        with pytest.raises(NetworkError):
            GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)

    def test_invalid_json_is_protocol_error(self) -> None:
        session = _session(None)
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        with pytest.raises(ProtocolError, match="did not return JSON"):
            GithubReleaseProvider(session).get_tags(GITHUB_RELEASE)


class TestDispatch:
    def test_get_tags_selects_provider_by_type(self) -> None:
        session = _session([{"name": "v1.0"}])
        assert get_tags(GithubTag(type="github_tag", repo="a/b"), session) == ["v1.0"]

    def test_latest_tag_is_first(self) -> None:
        session = _session([_release("1.2.0"), _release("1.1.0")])
        assert latest_tag(GITHUB_RELEASE, session) == "1.2.0"

    def test_latest_tag_empty_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="no suitable tag"):
            latest_tag(GITHUB_RELEASE, _session([_release("1.0", draft=True)]))
