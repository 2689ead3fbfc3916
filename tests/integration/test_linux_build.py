"""
Integration tests building real libraries on a Linux host.

These download OpenSSL and SQLCipher and run the real toolchain, so they take
several minutes and need perl, make and a C compiler installed.
"""

import platform
import shutil
import subprocess
import sys

import pytest

from cipherbuild.build.orchestrator import Orchestrator
from cipherbuild.cli import main
from cipherbuild.config.ini_parser import load_config

pytestmark = pytest.mark.integration


def _tools_missing():
    return [tool for tool in ("perl", "make", "cc") if shutil.which(tool) is None]


@pytest.fixture
def project_dir(tmp_path):
    """Project building linuxX64 only; the other targets are ignored on Linux."""
    if platform.system() != "Linux":
        pytest.skip("Linux host required")
    missing = _tools_missing()
    if missing:
        pytest.skip(f"Missing tools: {', '.join(missing)}")

    (tmp_path / "cipherbuild.ini").write_text(
        "[build]\n"
        "targets = linuxX64 vStudio64 iosArm64\n"
        "workroot = build\n"
        "copy_to = sink/{target}\n"
        "copy_headers = true\n"
    )
    return tmp_path


class TestLinuxBuild:
    """Full linuxX64 build from downloaded archives."""

    def test_build_all(self, project_dir):
        """Test that artifacts reach the output and sink directories."""
        result = Orchestrator(load_config(project_dir)).build_all()

        assert list(result.results) == ["linuxX64"]
        output = result.target_directories["linuxX64"]
        assert (output / "sqlite3.h").exists()
        assert any(output.glob("libsqlcipher*.a"))
        assert (project_dir / "sink" / "linuxX64" / "libcrypto.a").exists()

        # The command line shell reports the cipher version
        shell = output / "sqlcipher"
        if shell.exists():
            version = subprocess.run(
                [str(shell), ":memory:", "PRAGMA cipher_version;"],
                capture_output=True,
                text=True,
            )
            assert version.stdout.strip()

    def test_rebuild_and_clean_via_cli(self, project_dir, monkeypatch):
        """Test that a second build reuses sources and clean removes them."""
        monkeypatch.setattr(sys, "argv", ["cipherbuild", "build", str(project_dir)])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0

        monkeypatch.setattr(sys, "argv", ["cipherbuild", "clean", str(project_dir)])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        workspace = Orchestrator(load_config(project_dir)).workspace("sqlcipher")
        assert not workspace.output_dir("linuxX64").exists()
        assert not workspace.target_src_dir("linuxX64").exists()
