"""Process exit codes for the ns8 CLI.

The numeric values are part of the CLI contract and must stay stable:
- 0: Success (including "nothing to release")
- 1: User error (bad flags, invalid version names, unready input)
- 2: Environment error (gh missing, invalid config file)
- 4: Network error (gh call failed, unexpected payload)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
