from __future__ import annotations

from ns8.core.result import Err, Ok
from ns8.services.release.model import CommitRef, Repository
from ns8.services.release.repo import (
    latest_release,
    release_commit_sha,
    resolve_commit,
    resolve_repository,
)
from ns8.test.services.fakes import MAIN_SHA, REPO, FakeHostingApi


def test_resolve_repository_uses_explicit_repo() -> None:
    api = FakeHostingApi(current=None)
    assert resolve_repository(api, REPO, module_prefix="ns8") == Ok(REPO)


def test_resolve_repository_falls_back_to_current_directory() -> None:
    api = FakeHostingApi(current=REPO)
    assert resolve_repository(api, "", module_prefix="ns8") == Ok(REPO)


def test_resolve_repository_returns_canonical_slug() -> None:
    api = FakeHostingApi(current=None)
    api.repos["nethserver/ns8-mail"] = Repository(
        owner="NethServer", name="ns8-mail", default_branch="main"
    )
    assert resolve_repository(api, "nethserver/ns8-mail", module_prefix="ns8") == Ok(REPO)


def test_resolve_repository_without_any_repo_is_ambiguous() -> None:
    api = FakeHostingApi(current=None)
    result = resolve_repository(api, "", module_prefix="ns8")
    assert isinstance(result, Err)
    assert result.error.kind == "ambiguous_repo"


def test_resolve_repository_current_lookup_failure_is_ambiguous() -> None:
    api = FakeHostingApi(failing={"current"})
    result = resolve_repository(api, "", module_prefix="ns8")
    assert isinstance(result, Err)
    assert result.error.kind == "ambiguous_repo"


def test_resolve_repository_enforces_naming_convention() -> None:
    api = FakeHostingApi()
    result = resolve_repository(api, "NethServer/mail", module_prefix="ns8")
    assert isinstance(result, Err)
    assert result.error.kind == "naming_convention"
    # Convention is checked before any lookup.
    assert api.calls == []


def test_resolve_repository_rejects_missing_owner() -> None:
    result = resolve_repository(FakeHostingApi(), "/ns8-mail", module_prefix="ns8")
    assert isinstance(result, Err)
    assert result.error.kind == "naming_convention"


def test_resolve_repository_reports_unreachable_repo() -> None:
    result = resolve_repository(FakeHostingApi(), "NethServer/ns8-missing", module_prefix="ns8")
    assert isinstance(result, Err)
    assert result.error.kind == "not_found"


def test_resolve_repository_honors_custom_prefix() -> None:
    api = FakeHostingApi()
    assert isinstance(resolve_repository(api, REPO, module_prefix="nx"), Err)


def test_resolve_commit_defaults_to_branch_tip_without_target() -> None:
    api = FakeHostingApi(refs={"heads/main": MAIN_SHA})
    assert resolve_commit(api, REPO, "") == Ok(CommitRef(sha=MAIN_SHA, target=None))


def test_resolve_commit_pins_ancestor_as_target() -> None:
    sha = "b" * 40
    api = FakeHostingApi(merge_bases={("main", sha): sha})
    assert resolve_commit(api, REPO, sha) == Ok(CommitRef(sha=sha, target=sha))


def test_resolve_commit_rejects_commit_outside_default_branch() -> None:
    sha = "b" * 40
    api = FakeHostingApi(merge_bases={("main", sha): "d" * 40})
    result = resolve_commit(api, REPO, sha)
    assert isinstance(result, Err)
    assert result.error.kind == "not_ancestor"
    assert "main" in result.error.message


def test_resolve_commit_reports_missing_tip() -> None:
    result = resolve_commit(FakeHostingApi(), REPO, "")
    assert isinstance(result, Err)
    assert "--release-refs" in (result.error.hint or "")


def test_latest_release_without_releases() -> None:
    result = latest_release(FakeHostingApi(), REPO, exclude_prereleases=True)
    assert isinstance(result, Err)
    assert result.error.kind == "no_release_found"


def test_latest_release_can_skip_prereleases() -> None:
    api = FakeHostingApi()
    api.add_release("1.0.0", prerelease=False, day=1)
    api.add_release("1.0.1-testing.1", prerelease=True, day=2)

    stable = latest_release(api, REPO, exclude_prereleases=True)
    any_kind = latest_release(api, REPO, exclude_prereleases=False)

    assert isinstance(stable, Ok) and stable.value.tag == "1.0.0"
    assert isinstance(any_kind, Ok) and any_kind.value.tag == "1.0.1-testing.1"


def test_release_commit_sha_wraps_failure_with_tag() -> None:
    result = release_commit_sha(FakeHostingApi(), REPO, "9.9.9")
    assert isinstance(result, Err)
    assert "9.9.9" in result.error.message
