from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "gh_missing",
    "gh_failed",
    "invalid_payload",
    "invalid_input",
    "invalid_version",
    "ambiguous_repo",
    "naming_convention",
    "not_found",
    "not_ancestor",
    "empty_range",
    "no_prs_found",
    "no_release_found",
    "nothing_to_release",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def wrap(self, context: str) -> ReleaseError:
        """Prefix the message with the failing operation, keeping kind and hint."""
        return ReleaseError(kind=self.kind, message=f"{context}: {self.message}", hint=self.hint)
