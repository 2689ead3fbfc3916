"""Unit tests for process execution and generated scripts."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from cipherbuild.build.executor import (
    ProcessExecutor,
    ProcessResult,
    ScriptRunner,
    forward_slash,
    to_msys_path,
    write_script,
)
from cipherbuild.config.build_config import WindowsTools
from cipherbuild.errors import BuildExecutionError
from cipherbuild.host import HostOs


class TestWriteScript:
    """Tests for write_script()."""

    def test_prefix_and_content(self, tmp_path):
        """Test that generated files carry the tool prefix."""
        path = write_script(tmp_path, "sqlcipher-linuxX64.sh", "#!/bin/sh\nmake\n")

        assert path == tmp_path / "cipherbuild-sqlcipher-linuxX64.sh"
        assert path.read_bytes() == b"#!/bin/sh\nmake\n"

    def test_without_prefix(self, tmp_path):
        """Test writing a file under its own name."""
        assert write_script(tmp_path, "a.sh", "", prefix=False) == tmp_path / "a.sh"

    def test_existing_file_replaced(self, tmp_path):
        """Test that rewriting never appends."""
        write_script(tmp_path, "b.sh", "first\n")
        path = write_script(tmp_path, "b.sh", "second\n")
        assert path.read_text() == "second\n"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_executable(self, tmp_path):
        """Test that scripts can be run directly."""
        path = write_script(tmp_path, "c.sh", "#!/bin/sh\n")
        assert os.access(path, os.X_OK)


class TestPaths:
    """Tests for path conversion helpers."""

    def test_to_msys_path(self):
        """Test drive path conversion for MSYS2 bash."""
        assert to_msys_path("C:\\work\\srcOpenssl\\include") == "/C/work/srcOpenssl/include"
        assert to_msys_path("D:/sdk") == "/D/sdk"

    def test_to_msys_path_requires_drive(self):
        """Test that relative or POSIX paths are rejected."""
        with pytest.raises(ValueError):
            to_msys_path("/usr/lib")

    def test_forward_slash(self):
        """Test separator conversion."""
        assert forward_slash("C:\\a\\b") == "C:/a/b"


class TestProcessExecutor:
    """Tests for ProcessExecutor."""

    def test_run_captures_output(self, tmp_path):
        """Test that output is captured as text."""
        completed = subprocess.CompletedProcess(["x"], 0, stdout="out", stderr="err")
        with patch("cipherbuild.build.executor.subprocess.run", return_value=completed) as run:
            result = ProcessExecutor().run(["make", "all"], tmp_path)

        assert result == ProcessResult(0, "out", "err")
        assert result.combined == "errout"
        kwargs = run.call_args.kwargs
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["capture_output"] is True
        assert kwargs["encoding"] == "utf-8"
        assert kwargs["errors"] == "replace"
        assert kwargs["env"] is None

    def test_env_merged_over_process_environment(self, tmp_path, monkeypatch):
        """Test that extra variables apply to one invocation only."""
        monkeypatch.setenv("CIPHERBUILD_TEST_KEEP", "1")
        completed = subprocess.CompletedProcess(["x"], 0, stdout="", stderr="")
        with patch("cipherbuild.build.executor.subprocess.run", return_value=completed) as run:
            ProcessExecutor().run(["make"], tmp_path, env={"PATH": "/ndk/bin"})

        env = run.call_args.kwargs["env"]
        assert env["PATH"] == "/ndk/bin"
        assert env["CIPHERBUILD_TEST_KEEP"] == "1"
        assert os.environ.get("PATH") != "/ndk/bin"

    def test_missing_executable(self, tmp_path):
        """Test that an executable that cannot start is a build error."""
        with patch(
            "cipherbuild.build.executor.subprocess.run",
            side_effect=FileNotFoundError("no such file"),
        ):
            with pytest.raises(BuildExecutionError, match="Failed to start nasm"):
                ProcessExecutor().run(["nasm", "--version"], tmp_path)

    def test_run_checked_failure_keeps_stderr(self, tmp_path):
        """Test that stderr is carried verbatim on failure."""
        executor = ProcessExecutor()
        executor.run = Mock(return_value=ProcessResult(2, "partial", "error: x.c:1 boom"))

        with pytest.raises(BuildExecutionError) as exc_info:
            executor.run_checked(["make"], tmp_path, description="make")

        assert exc_info.value.stderr == "error: x.c:1 boom"
        assert exc_info.value.stdout == "partial"
        assert exc_info.value.returncode == 2
        message = str(exc_info.value)
        assert message.index("error: x.c:1 boom") < message.index("partial")

    def test_undecodable_output_is_a_build_error(self, tmp_path):
        """Test that output that is not UTF-8 still yields a build error."""
        script = "import sys; sys.stderr.buffer.write(b'\\xff bad'); sys.exit(1)"

        with pytest.raises(BuildExecutionError) as exc_info:
            ProcessExecutor().run_checked([sys.executable, "-c", script], tmp_path)

        assert exc_info.value.returncode == 1
        assert exc_info.value.stderr == "\ufffd bad"

    def test_run_checked_logs_stderr_first(self, tmp_path, caplog):
        """Test output logging order on success."""
        executor = ProcessExecutor()
        executor.run = Mock(return_value=ProcessResult(0, "stdout line", "stderr line"))

        with caplog.at_level("INFO"):
            executor.run_checked(["make"], tmp_path)

        messages = [r.getMessage() for r in caplog.records]
        assert messages.index("stderr line") < messages.index("stdout line")
        assert [r.levelname for r in caplog.records if r.getMessage() == "stderr line"] == ["WARNING"]


class TestScriptRunner:
    """Tests for ScriptRunner."""

    @pytest.fixture
    def executor(self):
        executor = Mock(spec=ProcessExecutor)
        executor.run_checked.return_value = ProcessResult(0)
        return executor

    def test_posix_runs_script_directly(self, tmp_path, executor):
        """Test that POSIX hosts execute the script file."""
        script = tmp_path / "cipherbuild-openssl-linuxX64.sh"
        ScriptRunner(HostOs.LINUX, executor).run_shell(script, tmp_path)

        cmd, cwd, env, description = executor.run_checked.call_args.args
        assert cmd == [str(script)]
        assert cwd == tmp_path
        assert env is None
        assert description == script.name

    def test_windows_runs_script_in_msys2(self, tmp_path, executor):
        """Test the MSYS2 bash invocation on Windows hosts."""
        windows = WindowsTools(msys2_install_directory="C:\\msys64")
        script = tmp_path / "cipherbuild-sqlcipher-mingwX64.sh"

        ScriptRunner(HostOs.WINDOWS, executor, windows).run_shell(script, tmp_path)

        cmd, _, env, _ = executor.run_checked.call_args.args
        assert cmd == [
            "C:\\msys64\\usr\\bin\\env.exe",
            "MSYSTEM=MINGW64",
            "CHERE_INVOKING=1",
            "MSYS2_PATH_TYPE=inherit",
            "/usr/bin/bash",
            "-lc",
            "./cipherbuild-sqlcipher-mingwX64.sh",
        ]
        assert env == {"PATH": "C:\\msys64\\usr\\bin;C:\\msys64\\mingw64\\bin"}

    def test_batch_runs_through_cmd(self, tmp_path, executor):
        """Test that batch files and .cmd tools run through cmd.exe."""
        ScriptRunner(HostOs.WINDOWS, executor).run_batch(
            Path("C:/ndk/ndk-build.cmd"), tmp_path, ["V=1", "all"]
        )

        cmd = executor.run_checked.call_args.args[0]
        assert cmd == ["cmd.exe", "/c", "C:\\ndk\\ndk-build.cmd", "V=1", "all"]
