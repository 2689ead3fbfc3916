"""Tests for the cipherbuild command line."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cipherbuild.build.pipeline import BuildAllResult, BuildResult
from cipherbuild.cli import main
from cipherbuild.errors import BuildFailedError, InvalidConfigurationError
from cipherbuild.host import HostOs


class TestCLIBuild:
    """Tests for the 'cipherbuild build' command."""

    @pytest.fixture
    def project_dir(self, tmp_path):
        """Project directory with a cipherbuild.ini."""
        (tmp_path / "cipherbuild.ini").write_text("[build]\ntargets = linuxX64 androidArm64\n")
        return tmp_path

    @pytest.fixture
    def mock_orchestrator(self):
        """Mock Orchestrator and logging setup."""
        with (
            patch("cipherbuild.cli.Orchestrator") as mock_orch_class,
            patch("cipherbuild.cli.setup_logging"),
        ):
            mock_instance = MagicMock()
            mock_orch_class.return_value = mock_instance
            mock_instance.class_mock = mock_orch_class
            yield mock_instance

    @pytest.fixture
    def success_result(self, tmp_path):
        result = BuildResult("sqlcipher", "linuxX64", tmp_path / "out" / "linuxX64", success=True)
        return BuildAllResult(
            "sqlcipher", {"linuxX64": result}, {"linuxX64": result.output_dir}
        )

    def test_build_success(self, mock_orchestrator, success_result, project_dir, monkeypatch, capsys):
        """Test a successful build."""
        mock_orchestrator.build_all.return_value = success_result
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "sqlcipher build successful" in out
        assert "linuxX64" in out
        mock_orchestrator.build_all.assert_called_once_with("sqlcipher")
        config = mock_orchestrator.class_mock.call_args.args[0]
        assert config.targets == ["linuxX64", "androidArm64"]

    def test_build_target_and_jobs_overrides(self, mock_orchestrator, success_result, project_dir, monkeypatch):
        """Test that command-line targets and jobs replace the file's."""
        mock_orchestrator.build_all.return_value = success_result
        monkeypatch.setattr(
            sys,
            "argv",
            ["cipherbuild", "build", str(project_dir), "-t", "androidX64", "-j", "3", "-l", "openssl"],
        )

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        config = mock_orchestrator.class_mock.call_args.args[0]
        assert config.targets == ["androidX64"]
        assert config.jobs == 3
        mock_orchestrator.build_all.assert_called_once_with("openssl")

    def test_build_failure(self, mock_orchestrator, project_dir, monkeypatch, capsys):
        """Test that failed targets give exit code 1."""
        failed = BuildResult("sqlcipher", "linuxX64", project_dir / "out", error="make failed")
        mock_orchestrator.build_all.side_effect = BuildFailedError(
            "sqlcipher build failed for target(s): linuxX64", {"linuxX64": failed}
        )
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(project_dir), "-v"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Build failed!" in out
        assert "linuxX64: make failed" in out

    def test_configuration_error(self, mock_orchestrator, project_dir, monkeypatch, capsys):
        mock_orchestrator.build_all.side_effect = InvalidConfigurationError("bad option")
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(project_dir)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "bad option" in capsys.readouterr().out

    def test_missing_project(self, tmp_path, monkeypatch):
        """Test that a directory without cipherbuild.ini is rejected."""
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(tmp_path / "nope")])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2

    def test_unknown_library_rejected(self, project_dir, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(project_dir), "-l", "zlib"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2


class TestCLIClean:
    """Tests for the 'cipherbuild clean' command."""

    def test_clean(self, tmp_path, monkeypatch, capsys):
        (tmp_path / "cipherbuild.ini").write_text("[build]\ntargets = linuxX64\n")
        monkeypatch.setattr(
            sys, "argv", ["cipherbuild", "clean", str(tmp_path), "-t", "androidArm64", "-l", "sqlcipher"]
        )

        with (
            patch("cipherbuild.cli.Orchestrator") as mock_orch_class,
            patch("cipherbuild.cli.setup_logging"),
        ):
            mock_orch_class.return_value.clean_all.return_value = [Path("/a"), Path("/b")]
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        assert mock_orch_class.call_args.args[0].targets == ["androidArm64"]
        mock_orch_class.return_value.clean_all.assert_called_once_with("sqlcipher")
        assert "Removed 2 path(s)" in capsys.readouterr().out


class TestCLITargets:
    """Tests for the 'cipherbuild targets' command."""

    def test_lists_catalog(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "targets"])

        with patch("cipherbuild.cli.host_module.query", return_value=HostOs.LINUX):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "Host OS: Linux" in out
        assert "* linuxX64" in out
        assert "  iosArm64" in out


def test_no_command_prints_help(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["cipherbuild"])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 0
    assert "usage: cipherbuild" in capsys.readouterr().out
