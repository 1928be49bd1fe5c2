"""Typed configuration for module-release commands.

Precedence, lowest first:
1. built-in defaults (``ModuleReleaseConfig()``)
2. ``[module_release]`` table in the TOML config file
3. environment variables (``NS8_ISSUES_REPO``, ``NS8_MODULE_PREFIX``)
4. CLI flags, applied by the command layer through ``ModuleReleaseOptions``

The config file is ``$NS8_CONFIG`` when set, otherwise
``$XDG_CONFIG_HOME/ns8/config.toml`` (``~/.config/ns8/config.toml``).
A missing file is not an error.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_table

__all__ = [
    "ConfigError",
    "ModuleReleaseConfig",
    "ModuleReleaseOptions",
    "default_config_path",
    "load_config",
    "DEFAULT_ISSUES_REPO",
    "DEFAULT_MODULE_PREFIX",
]

APP_NAME = "ns8"

DEFAULT_ISSUES_REPO = "NethServer/dev"
DEFAULT_MODULE_PREFIX = "ns8"
DEFAULT_HOST = "github.com"
DEFAULT_TRANSLATION_LABEL = "translation"
DEFAULT_RELEASE_LIST_LIMIT = 1000


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ModuleReleaseConfig:
    issues_repo: str = DEFAULT_ISSUES_REPO
    module_prefix: str = DEFAULT_MODULE_PREFIX
    host: str = DEFAULT_HOST
    translation_label: str = DEFAULT_TRANSLATION_LABEL
    release_list_limit: int = DEFAULT_RELEASE_LIST_LIMIT

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ModuleReleaseConfig:
        """Create config from parsed TOML; unknown keys are ignored."""
        table: StrDict = get_table(data, "module_release") or {}
        limit = get_int(table, "release_list_limit")
        if limit is not None and limit < 1:
            raise ValueError(f"release_list_limit must be >= 1 (got {limit})")

        return cls(
            issues_repo=get_str(table, "issues_repo") or DEFAULT_ISSUES_REPO,
            module_prefix=get_str(table, "module_prefix") or DEFAULT_MODULE_PREFIX,
            host=get_str(table, "host") or DEFAULT_HOST,
            translation_label=get_str(table, "translation_label") or DEFAULT_TRANSLATION_LABEL,
            release_list_limit=limit or DEFAULT_RELEASE_LIST_LIMIT,
        )

    def with_env(self, env: Mapping[str, str]) -> ModuleReleaseConfig:
        """Apply environment overrides on top of this config."""
        issues_repo = env.get("NS8_ISSUES_REPO", "").strip()
        module_prefix = env.get("NS8_MODULE_PREFIX", "").strip()
        return replace(
            self,
            issues_repo=issues_repo or self.issues_repo,
            module_prefix=module_prefix or self.module_prefix,
        )


@dataclass(frozen=True, slots=True)
class ModuleReleaseOptions:
    """Per-invocation parameters for a module-release command.

    ``repo`` empty means "use the repository of the current directory".
    ``issues_repo`` empty means "use the configured issues repository".
    """

    repo: str = ""
    issues_repo: str = ""
    release_name: str = ""
    release_refs: str = ""
    testing: bool = False
    draft: bool = False
    with_linked_issues: bool = False
    dry_run: bool = False
    config: ModuleReleaseConfig = field(default_factory=ModuleReleaseConfig)

    @property
    def effective_issues_repo(self) -> str:
        return self.issues_repo or self.config.issues_repo


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if env is None else env
    explicit = environ.get("NS8_CONFIG")
    if explicit:
        return Path(explicit).expanduser()

    xdg_config = environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / "config.toml"
    return Path.home() / ".config" / APP_NAME / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> Result[ModuleReleaseConfig, ConfigError]:
    """Load config from ``path`` (or the default location) plus environment.

    Returns:
        Ok(ModuleReleaseConfig) on success, Err(ConfigError) when the file
        exists but cannot be read or has an invalid structure.
    """
    environ = os.environ if env is None else env
    config_path = path if path is not None else default_config_path(environ)

    config = ModuleReleaseConfig()
    if config_path.is_file():
        parsed = _parse_toml(config_path)
        if isinstance(parsed, Err):
            return parsed
        try:
            config = ModuleReleaseConfig.from_dict(parsed.value)
        except (TypeError, ValueError) as e:
            return Err(ConfigError(f"Invalid config structure: {e}", path=config_path))

    return Ok(config.with_env(environ))
