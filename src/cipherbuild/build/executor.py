"""Process execution for generated build scripts.

This module is the only place that spawns external processes. Builders render
script text, write it with ``write_script()`` and hand it to a ``ScriptRunner``,
which knows how the host runs shell scripts and batch files.

Design:
    - ProcessExecutor wraps subprocess.run and captures stdout/stderr
    - Environment variables are merged over os.environ for one invocation only
    - Output is logged stderr first, whether the command failed or not
    - A non-zero exit raises BuildExecutionError carrying stderr verbatim
    - On Windows, shell scripts run through MSYS2 bash and batch files through cmd.exe
"""

import logging
import os
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath
from typing import Dict, List, Optional, Sequence, Union

from ..config.build_config import CMD_EXE, WindowsTools
from ..errors import BuildExecutionError
from ..host import HostOs
from ..log import log_process_output

SCRIPT_PREFIX = "cipherbuild-"

MSYS2_ARGS = ["MSYSTEM=MINGW64", "CHERE_INVOKING=1", "MSYS2_PATH_TYPE=inherit", "/usr/bin/bash", "-lc"]


@dataclass
class ProcessResult:
    """Captured outcome of one process invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def combined(self) -> str:
        """Stderr followed by stdout."""
        return self.stderr + self.stdout


class ProcessExecutor:
    """Runs external commands and captures their output.

    Tests substitute this collaborator to build without any toolchain; only
    ``run`` needs overriding.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def run(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Optional[Dict[str, str]] = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            cwd: Working directory, must exist
            env: Variables set for this invocation only, over os.environ

        Returns:
            ProcessResult with captured output, undecodable bytes replaced

        Raises:
            BuildExecutionError: If the executable cannot be started
        """
        process_env = None
        if env:
            process_env = dict(os.environ)
            process_env.update(env)

        self.logger.info(f"Starting command: {' '.join(str(c) for c in cmd)}")
        try:
            result = subprocess.run(
                [str(c) for c in cmd],
                cwd=str(cwd),
                env=process_env,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise BuildExecutionError(f"Failed to start {cmd[0]}: {e}") from e

        return ProcessResult(result.returncode, result.stdout or "", result.stderr or "")

    def run_checked(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
    ) -> ProcessResult:
        """Run a command, log its output and fail on a non-zero exit.

        Raises:
            BuildExecutionError: If the exit code is not zero
        """
        result = self.run(cmd, cwd, env)
        log_process_output(self.logger, result.stderr, result.stdout, not result.success)
        if not result.success:
            raise BuildExecutionError(
                f"{description or cmd[0]} failed with exit code {result.returncode}",
                stderr=result.stderr,
                stdout=result.stdout,
                returncode=result.returncode,
            )
        return result


def write_script(
    directory: Path, name: str, content: str, prefix: bool = True
) -> Path:
    """Write a generated file so it stays around for inspection.

    An existing file with the same name is replaced, never appended to.

    Args:
        directory: Existing directory receiving the file
        name: File name, prefixed with ``cipherbuild-`` unless prefix is False
        content: Full file text
        prefix: Whether to apply the script prefix

    Returns:
        Path of the written file
    """
    path = Path(directory) / (f"{SCRIPT_PREFIX}{name}" if prefix else name)
    if path.exists():
        path.unlink()
    with open(path, "w", newline="\n") as f:
        f.write(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def forward_slash(path: Union[str, Path]) -> str:
    return str(path).replace("\\", "/")


def to_msys_path(path: Union[str, Path]) -> str:
    """Convert a Windows drive path to the form MSYS2 bash understands.

    ``C:\\work\\src`` becomes ``/C/work/src``.

    Raises:
        ValueError: If the path does not start with a drive letter
    """
    text = str(path)
    if len(text) < 2 or text[1] != ":":
        raise ValueError(f"Path does not start with a drive letter: {text}")
    return f"/{text[0]}{forward_slash(text[2:])}"


class ScriptRunner:
    """Runs generated scripts the way the host requires."""

    def __init__(
        self,
        host: HostOs,
        executor: ProcessExecutor,
        windows: Optional[WindowsTools] = None,
    ):
        self.host = host
        self.executor = executor
        self.windows = windows or WindowsTools()

    def shell_command(self, script: Path) -> List[str]:
        """Command line that runs a POSIX shell script on this host."""
        if self.host is HostOs.WINDOWS:
            return [self.windows.msys2_exec] + MSYS2_ARGS + [f"./{script.name}"]
        return [str(script)]

    def run_shell(
        self,
        script: Path,
        cwd: Path,
        env: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
    ) -> ProcessResult:
        """Run a shell script; through MSYS2 bash on Windows.

        Raises:
            BuildExecutionError: If the script exits non-zero
        """
        run_env = dict(env or {})
        if self.host is HostOs.WINDOWS:
            run_env["PATH"] = self.windows.mingw_bin_path
        return self.executor.run_checked(
            self.shell_command(script), cwd, run_env or None, description or script.name
        )

    def run_batch(
        self,
        script: Path,
        cwd: Path,
        args: Sequence[str] = (),
        env: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
    ) -> ProcessResult:
        """Run a Windows batch file or .cmd tool through cmd.exe.

        Raises:
            BuildExecutionError: If the command exits non-zero
        """
        cmd = [CMD_EXE, "/c", str(PureWindowsPath(script))] + list(args)
        return self.executor.run_checked(cmd, cwd, env, description or Path(script).name)
