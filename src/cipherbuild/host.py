"""Host operating system detection.

The engine runs on three host families only. There is no degraded mode: an
unrecognised platform stops the run before anything is touched on disk.
"""

import platform
from enum import Enum
from typing import Optional

from .errors import UnsupportedHostError


class HostOs(Enum):
    """Operating system family of the machine running the build."""

    LINUX = "Linux"
    WINDOWS = "Windows"
    MAC = "Mac"

    def __str__(self) -> str:
        return self.value


def query(system: Optional[str] = None) -> HostOs:
    """Detect the host operating system family.

    Args:
        system: Platform identifier to classify. Defaults to platform.system().

    Returns:
        The matching HostOs

    Raises:
        UnsupportedHostError: If the platform is not Linux, Windows or macOS
    """
    name = (system if system is not None else platform.system()).lower()

    if name.startswith("linux"):
        return HostOs.LINUX
    elif name.startswith("windows"):
        return HostOs.WINDOWS
    elif name.startswith("darwin") or name.startswith("mac"):
        return HostOs.MAC

    raise UnsupportedHostError(f"Unsupported OS: {name or '<empty>'}")
