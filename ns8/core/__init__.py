"""Core types shared by every layer."""

from .config import ConfigError, ModuleReleaseConfig, ModuleReleaseOptions, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "ModuleReleaseConfig",
    "ModuleReleaseOptions",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
