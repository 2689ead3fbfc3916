"""Catalog of build targets.

Each target is one (OS, architecture, toolchain) combination. The catalog is a
plain table of descriptors; host compatibility and family lookups are free
functions over it so they can be tested without any build machinery.

Hosts per target:
    vStudio64, mingwX64            Windows
    linuxX64, linuxArm64           Linux
    androidArm64, androidX64       Linux, Windows, macOS (NDK runs everywhere)
    ios*, macos*                   macOS
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from .errors import InvalidConfigurationError
from .host import HostOs


class ToolchainFamily(Enum):
    """Group of targets sharing a build strategy."""

    MSVC = "msvc"
    MINGW = "mingw"
    LINUX = "linux"
    ANDROID = "android"
    APPLE = "apple"


@dataclass(frozen=True)
class BuildTarget:
    """Immutable descriptor of one build variant."""

    id: str
    arch: str
    family: ToolchainFamily
    hosts: FrozenSet[HostOs]
    description: str = ""


_ALL_HOSTS = frozenset({HostOs.LINUX, HostOs.WINDOWS, HostOs.MAC})

TARGETS: Dict[str, BuildTarget] = {
    target.id: target
    for target in [
        BuildTarget(
            "vStudio64", "x86_64", ToolchainFamily.MSVC, frozenset({HostOs.WINDOWS}),
            "Visual Studio 64-bit toolchain",
        ),
        BuildTarget(
            "mingwX64", "x86_64", ToolchainFamily.MINGW, frozenset({HostOs.WINDOWS}),
            "MSYS2 mingw 64-bit toolchain",
        ),
        BuildTarget(
            "linuxX64", "x86_64", ToolchainFamily.LINUX, frozenset({HostOs.LINUX}),
            "Linux Intel/AMD 64-bit",
        ),
        BuildTarget(
            "linuxArm64", "arm64", ToolchainFamily.LINUX, frozenset({HostOs.LINUX}),
            "Linux ARM 64-bit",
        ),
        BuildTarget(
            "androidArm64", "arm64", ToolchainFamily.ANDROID, _ALL_HOSTS,
            "Android ARM 64-bit (NDK)",
        ),
        BuildTarget(
            "androidX64", "x86_64", ToolchainFamily.ANDROID, _ALL_HOSTS,
            "Android Intel/AMD 64-bit (NDK), typically emulators",
        ),
        BuildTarget(
            "iosX64", "x86_64", ToolchainFamily.APPLE, frozenset({HostOs.MAC}),
            "iOS simulator",
        ),
        BuildTarget(
            "iosArm64", "arm64", ToolchainFamily.APPLE, frozenset({HostOs.MAC}),
            "iOS ARM 64-bit",
        ),
        BuildTarget(
            "macosX64", "x86_64", ToolchainFamily.APPLE, frozenset({HostOs.MAC}),
            "macOS Intel 64-bit",
        ),
        BuildTarget(
            "macosArm64", "arm64", ToolchainFamily.APPLE, frozenset({HostOs.MAC}),
            "macOS Apple silicon",
        ),
    ]
}

# Targets whose artifacts are Windows-native (headers copied for cinterop)
WINDOWS_ONLY_TARGETS = frozenset({"vStudio64", "mingwX64"})


def get_target(target_id: str) -> BuildTarget:
    """Look up a target by id.

    Raises:
        InvalidConfigurationError: If the id is not in the catalog
    """
    try:
        return TARGETS[target_id]
    except KeyError:
        raise InvalidConfigurationError(
            f"Invalid build target: {target_id}. "
            + f"Available: {', '.join(TARGETS)}"
        ) from None


def supported_on(target: BuildTarget, host: HostOs) -> bool:
    """Return True if the target can be built on the host."""
    return host in target.hosts


def targets_for_host(host: HostOs) -> List[BuildTarget]:
    """All catalog targets buildable on the host, in catalog order."""
    return [target for target in TARGETS.values() if supported_on(target, host)]


def is_ios(target: BuildTarget) -> bool:
    return target.family is ToolchainFamily.APPLE and target.id.startswith("ios")


def select_targets(
    target_ids: Iterable[str],
    host: HostOs,
    logger: Optional[logging.Logger] = None,
) -> List[BuildTarget]:
    """Resolve a selection to the targets this host will actually build.

    Unsupported targets are not an error, so one target list can be shared by
    CI hosts running different operating systems. They are logged and dropped.

    Raises:
        InvalidConfigurationError: If an id is not in the catalog
    """
    logger = logger or logging.getLogger(__name__)
    selected: List[BuildTarget] = []
    for target_id in target_ids:
        target = get_target(target_id)
        if not supported_on(target, host):
            logger.info(f"Ignoring target {target.id} on host OS {host}")
            continue
        if target not in selected:
            selected.append(target)
    return selected
