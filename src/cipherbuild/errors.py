"""Exception hierarchy for cipherbuild.

Fatal-for-the-run errors (unsupported host, invalid configuration) are raised
before any target starts. Everything else is scoped to one target: the
orchestrator records it on that target's result and carries on with the
siblings.
"""

from typing import Any, Dict, Optional


class CipherBuildError(Exception):
    """Base exception for all cipherbuild errors."""

    pass


class UnsupportedHostError(CipherBuildError):
    """Raised when the current operating system is not Linux, Windows or macOS."""

    pass


class InvalidConfigurationError(CipherBuildError):
    """Raised for forced options supplied, required options missing, or bad target ids."""

    pass


class PreconditionError(CipherBuildError):
    """Raised when a toolchain, interpreter or assembler required by a target is missing."""

    pass


class SourceAcquisitionError(CipherBuildError):
    """Raised when clone, download or extraction of library source fails."""

    pass


class BuildExecutionError(CipherBuildError):
    """Raised when a generated build script exits with a non-zero code.

    The captured stderr is kept verbatim, both in the message and on the
    ``stderr`` attribute.
    """

    def __init__(
        self,
        message: str,
        stderr: str = "",
        stdout: str = "",
        returncode: Optional[int] = None,
    ):
        self.stderr = stderr
        self.stdout = stdout
        self.returncode = returncode
        details = message
        if stderr:
            details += f"\nstderr:\n{stderr}"
        if stdout:
            details += f"\nstdout:\n{stdout}"
        super().__init__(details)


class BuildFailedError(CipherBuildError):
    """Raised by build-all when one or more targets failed."""

    def __init__(self, message: str, results: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.results = results or {}
