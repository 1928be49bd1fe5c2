"""Result type for explicit error handling.

Every operation that talks to the hosting platform can fail. Instead of
raising, those operations return either ``Ok(value)`` or ``Err(error)`` and
callers branch on the variant:

    tag = latest_release(api, repo, exclude_prereleases=True)
    if isinstance(tag, Err):
        return tag
    print(tag.value.tag)

Pattern matching works as well:

    match next_testing_version("1.0.0", False):
        case Ok(name):
            ...
        case Err(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
