"""
cipherbuild - cross-platform OpenSSL and SQLCipher builds.

Builds OpenSSL and SQLCipher native libraries for Windows, Linux, Android,
macOS and iOS targets from one configuration file.
"""

__version__ = "0.1.0"

from .build.orchestrator import Orchestrator
from .build.pipeline import BuildAllResult, BuildResult
from .config import BuildConfig, load_config
from .errors import (
    BuildExecutionError,
    BuildFailedError,
    CipherBuildError,
    InvalidConfigurationError,
    PreconditionError,
    SourceAcquisitionError,
    UnsupportedHostError,
)

__all__ = [
    "BuildAllResult",
    "BuildConfig",
    "BuildExecutionError",
    "BuildFailedError",
    "BuildResult",
    "CipherBuildError",
    "InvalidConfigurationError",
    "load_config",
    "Orchestrator",
    "PreconditionError",
    "SourceAcquisitionError",
    "UnsupportedHostError",
]
