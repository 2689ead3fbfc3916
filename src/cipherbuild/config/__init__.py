"""Configuration for cipherbuild."""

from .build_config import (
    LIBRARIES,
    OPENSSL,
    SQLCIPHER,
    AndroidTools,
    AppleTools,
    BuildConfig,
    LibrarySpec,
    OpensslSettings,
    SourceSpec,
    ToolsConfig,
    WindowsTools,
)
from .ini_parser import CONFIG_FILE_NAME, BuildConfigLoader, load_config
from .options import CompilerOptionSet

__all__ = [
    "AndroidTools",
    "AppleTools",
    "BuildConfig",
    "BuildConfigLoader",
    "CompilerOptionSet",
    "CONFIG_FILE_NAME",
    "LIBRARIES",
    "LibrarySpec",
    "load_config",
    "OPENSSL",
    "OpensslSettings",
    "SQLCIPHER",
    "SourceSpec",
    "ToolsConfig",
    "WindowsTools",
]
