from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal


class IssueStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class ProgressTier(StrEnum):
    IN_PROGRESS = "in-progress"
    TESTING = "testing"
    VERIFIED = "verified"


VERIFIED_LABEL = "verified"
TESTING_LABEL = "testing"


@dataclass(frozen=True, slots=True)
class Repository:
    owner: str
    name: str
    default_branch: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class CommitRef:
    """Commit a release points at.

    ``target`` is only set when the commit was pinned explicitly; an implicit
    branch tip leaves it empty so the release is created on the branch head.
    """

    sha: str
    target: str | None = None


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    body: str
    labels: tuple[str, ...] = ()

    def has_label(self, name: str) -> bool:
        return name in self.labels


@dataclass(frozen=True, slots=True)
class Issue:
    number: int
    title: str
    state: str
    labels: tuple[str, ...] = ()

    @property
    def is_closed(self) -> bool:
        return self.state.lower() == "closed"


@dataclass(frozen=True, slots=True)
class ReleaseTag:
    tag: str
    prerelease: bool
    # ISO-8601 timestamp as returned by the platform
    created_at: str


SkippedKind = Literal["commit", "pull_request", "issue", "parent", "comment", "release"]


@dataclass(frozen=True, slots=True)
class SkippedItem:
    """A per-item fetch or write that failed and was skipped."""

    kind: SkippedKind
    ref: str
    reason: str

    def describe(self) -> str:
        return f"{self.kind} {self.ref}: {self.reason}"
