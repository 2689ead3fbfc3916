"""Toolchain verification.

Before any source is fetched for a target, the tools its family needs are
checked and their versions recorded. A missing tool stops only that target.

Checks per family:
    MSVC      vcvars64.bat, Windows SDK, Windows perl
    MinGW     MSYS2 usr/bin, mingw64 gcc, MSYS2 perl
    Android   NDK root for the configured (or newest installed) version
    Linux     perl, and nasm unless OpenSSL is configured with no-asm
    Apple     perl, and nasm unless OpenSSL is configured with no-asm
"""

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import Dict, Optional

from ..catalog import BuildTarget, ToolchainFamily
from ..config.build_config import BuildConfig
from ..errors import BuildExecutionError, PreconditionError
from ..host import HostOs
from .executor import ProcessExecutor

PERL_VERSION_PATTERN = re.compile(r"This is perl.*?\(([^)]+)\)")
NASM_VERSION_PATTERN = re.compile(r"NASM version (\S+)")


@dataclass
class ToolchainReport:
    """Outcome of verifying one target's toolchain.

    Attributes:
        target_id: Verified target
        family: Toolchain family of the target
        versions: Reported version per tool
        locations: Checked location per component
        ndk_root: Resolved NDK root (Android targets)
        ndk_version: Resolved NDK version (Android targets)
    """

    target_id: str
    family: ToolchainFamily
    versions: Dict[str, str] = field(default_factory=dict)
    locations: Dict[str, str] = field(default_factory=dict)
    ndk_root: Optional[Path] = None
    ndk_version: Optional[str] = None


def parse_perl_version(output: str) -> Optional[str]:
    """Extract the version from ``perl --version`` output."""
    match = PERL_VERSION_PATTERN.search(output)
    return match.group(1) if match else None


def parse_nasm_version(output: str) -> Optional[str]:
    match = NASM_VERSION_PATTERN.search(output)
    return match.group(1) if match else None


def resolve_ndk_version(ndk_dir: Path) -> str:
    """Pick the lexicographically greatest NDK installed under ndk_dir.

    Raises:
        PreconditionError: If no NDK is installed there
    """
    if not ndk_dir.is_dir():
        raise PreconditionError(f"Android NDK directory not found: {ndk_dir}")
    versions = sorted(p.name for p in ndk_dir.iterdir() if p.is_dir())
    if not versions:
        raise PreconditionError(f"No Android NDK installed in {ndk_dir}")
    return versions[-1]


class Verifier:
    """Checks toolchain preconditions, once per target."""

    def __init__(
        self,
        config: BuildConfig,
        host: HostOs,
        executor: ProcessExecutor,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.host = host
        self.executor = executor
        self.logger = logger or logging.getLogger(__name__)
        self._reports: Dict[str, ToolchainReport] = {}
        self._lock = threading.Lock()

    def verify(self, target: BuildTarget) -> ToolchainReport:
        """Verify the toolchain of a target.

        Returns:
            ToolchainReport, cached after the first successful call

        Raises:
            PreconditionError: Naming the missing component and where it was expected
        """
        with self._lock:
            cached = self._reports.get(target.id)
        if cached is not None:
            return cached

        report = ToolchainReport(target.id, target.family)
        if target.family is ToolchainFamily.MSVC:
            self._verify_msvc(report)
        elif target.family is ToolchainFamily.MINGW:
            self._verify_mingw(report)
        elif target.family is ToolchainFamily.ANDROID:
            self._verify_android(report)
        else:
            self._verify_posix(report)

        self.logger.info(
            f"Toolchain for {target.id} verified: "
            + ", ".join(f"{k} {v}" for k, v in report.versions.items())
        )
        with self._lock:
            self._reports[target.id] = report
        return report

    def _verify_msvc(self, report: ToolchainReport) -> None:
        windows = self.config.tools.windows
        self._require(report, "vcvars", windows.vstudio_env_file,
                      "Visual Studio environment bootstrap file")
        self._require(report, "windows_sdk", windows.sdk_install, "Windows SDK")
        self._require(report, "perl", windows.windows_perl, "Windows-oriented perl")
        report.versions["perl"] = self._perl_version(windows.windows_perl)

    def _verify_mingw(self, report: ToolchainReport) -> None:
        windows = self.config.tools.windows
        self._require(report, "msys2", windows.msys2_usr_bin, "MSYS2 shell layer")
        gcc = str(PureWindowsPath(windows.mingw_install_directory) / "bin" / "gcc.exe")
        self._require(report, "gcc", gcc, "mingw64 gcc")
        self._require(report, "perl", windows.msys2_perl, "MSYS2 perl")
        report.versions["perl"] = self._perl_version(windows.msys2_perl)

    def _verify_android(self, report: ToolchainReport) -> None:
        android = self.config.tools.android
        if not android.sdk_location(self.host):
            raise PreconditionError(
                f"Android SDK location is not configured for host {self.host}, "
                + "set it in [tools.android]"
            )
        version = android.ndk_version or resolve_ndk_version(android.ndk_dir(self.host))
        ndk_root = android.ndk_root(self.host, version)
        if not ndk_root.is_dir():
            raise PreconditionError(f"Android NDK {version} not found at {ndk_root}")
        report.ndk_root = ndk_root
        report.ndk_version = version
        report.locations["ndk"] = str(ndk_root)
        report.versions["ndk"] = version

        # OpenSSL Configure runs under MSYS2 on Windows hosts
        if self.host is HostOs.WINDOWS:
            windows = self.config.tools.windows
            self._require(report, "perl", windows.msys2_perl, "MSYS2 perl")
            report.versions["perl"] = self._perl_version(windows.msys2_perl)
        else:
            report.versions["perl"] = self._perl_version(self.config.tools.perl)

    def _verify_posix(self, report: ToolchainReport) -> None:
        report.versions["perl"] = self._perl_version(self.config.tools.perl)
        if self.config.openssl.assembly_disabled:
            self.logger.debug(f"Assembly disabled for {report.target_id}, nasm not required")
            return
        output = self._tool_output(self.config.tools.nasm, "assembler nasm")
        version = parse_nasm_version(output)
        if version is None:
            raise PreconditionError(
                f"nasm at {self.config.tools.nasm} did not report a NASM version: {output.strip()}"
            )
        report.versions["nasm"] = version

    def _require(self, report: ToolchainReport, key: str, location: str, description: str) -> None:
        if not os.path.exists(location):
            raise PreconditionError(f"{description} not found at {location}")
        report.locations[key] = location

    def _perl_version(self, perl: str) -> str:
        output = self._tool_output(perl, "perl")
        version = parse_perl_version(output)
        if version is None:
            raise PreconditionError(
                f"perl at {perl} did not report a version: {output.strip()}"
            )
        return version

    def _tool_output(self, executable: str, description: str) -> str:
        try:
            result = self.executor.run([executable, "--version"], Path.cwd())
        except BuildExecutionError as e:
            raise PreconditionError(f"{description} not found: {executable} ({e})") from e
        if not result.success:
            raise PreconditionError(
                f"{description} at {executable} failed with exit code {result.returncode}: "
                + result.stderr.strip()
            )
        return result.stdout
