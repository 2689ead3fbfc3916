"""Unit tests for the workspace layout."""

from pathlib import Path

import pytest

from cipherbuild.config.build_config import OPENSSL, SQLCIPHER, BuildConfig
from cipherbuild.host import HostOs
from cipherbuild.packages.workspace import Workspace


@pytest.fixture
def sqlcipher_workspace(tmp_path):
    """Workspace for SQLCipher 4.5.0 on a Linux host."""
    config = BuildConfig(workroot=tmp_path)
    return Workspace(tmp_path, config.library(SQLCIPHER, HostOs.LINUX))


class TestWorkspace:
    """Tests for Workspace paths."""

    def test_source_paths(self, sqlcipher_workspace, tmp_path):
        """Test the per-library source directory layout."""
        ws = sqlcipher_workspace
        assert ws.src_dir == tmp_path / "srcSqlCipher"
        assert ws.git_dir == tmp_path / "srcSqlCipher" / "git"
        assert ws.archive_path == tmp_path / "srcSqlCipher" / "v4.5.0.tar.gz"

    def test_target_paths(self, sqlcipher_workspace, tmp_path):
        """Test that every target has its own compile and output directory."""
        ws = sqlcipher_workspace
        assert ws.target_src_dir("linuxX64") == tmp_path / "srcSqlCipher" / "linuxX64"
        assert ws.compile_dir("linuxX64") == (
            tmp_path / "srcSqlCipher" / "linuxX64" / "sqlcipher-4.5.0"
        )
        assert ws.output_dir("androidArm64") == (
            tmp_path / "sqlCipherTargets" / "sqlcipher" / "androidArm64"
        )
        assert ws.marker_path("linuxX64") == ws.compile_dir("linuxX64") / "configure"

    def test_libraries_do_not_share_directories(self, tmp_path):
        """Test that OpenSSL and SQLCipher trees are separate."""
        config = BuildConfig(workroot=tmp_path)
        openssl = Workspace(tmp_path, config.library(OPENSSL, HostOs.LINUX))
        sqlcipher = Workspace(tmp_path, config.library(SQLCIPHER, HostOs.LINUX))

        assert openssl.src_dir != sqlcipher.src_dir
        assert openssl.output_dir("linuxX64") != sqlcipher.output_dir("linuxX64")
        assert openssl.marker_path("linuxX64").name == "Configure"

    def test_resolving_creates_nothing(self, sqlcipher_workspace, tmp_path):
        """Test that path lookups have no side effects."""
        ws = sqlcipher_workspace
        ws.compile_dir("iosArm64")
        ws.output_dir("iosArm64")
        assert list(Path(tmp_path).iterdir()) == []
