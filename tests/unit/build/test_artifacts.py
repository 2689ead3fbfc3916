"""Unit tests for artifact collection."""

import pytest

from cipherbuild.build.artifacts import (
    LINUX_PATTERNS,
    ArtifactCollector,
    CollectionReport,
    CollectionRule,
)


@pytest.fixture
def work_dir(tmp_path):
    """Build tree with artifacts and intermediate files."""
    work = tmp_path / "work"
    (work / ".libs").mkdir(parents=True)
    (work / "libx.a").write_bytes(b"archive")
    (work / "x.o").write_bytes(b"object")
    (work / "libx.so.1.0").write_bytes(b"shared")
    (work / "sqlite3.h").write_text("/* header */")
    (work / ".libs" / "libsqlcipher.a").write_bytes(b"a")
    (work / ".libs" / "nested").mkdir()
    (work / ".libs" / "nested" / "libsqlcipher.la").write_text("la")
    return work


class TestCollect:
    """Tests for ArtifactCollector.collect()."""

    def test_only_matching_files_copied(self, work_dir, tmp_path):
        """Test that patterns select artifacts and skip intermediates."""
        output = tmp_path / "out"
        report = ArtifactCollector().collect(work_dir, [CollectionRule(patterns=("*.a",))], output)

        assert sorted(p.name for p in output.iterdir()) == ["libx.a"]
        assert report.copied == [output / "libx.a"]
        assert report.ok

    def test_linux_patterns(self, work_dir, tmp_path):
        """Test versioned shared objects against the Linux patterns."""
        output = tmp_path / "out"
        ArtifactCollector().collect(work_dir, [CollectionRule(patterns=LINUX_PATTERNS)], output)

        assert sorted(p.name for p in output.iterdir()) == ["libx.a", "libx.so.1.0"]

    def test_empty_patterns_copy_whole_tree(self, work_dir, tmp_path):
        """Test recursive copy of a subdirectory."""
        output = tmp_path / "out"
        ArtifactCollector().collect(work_dir, [CollectionRule(subdirectory=".libs")], output)

        assert (output / "libsqlcipher.a").exists()
        assert (output / "nested" / "libsqlcipher.la").exists()

    def test_destination_subdirectory(self, work_dir, tmp_path):
        """Test rules that copy into a subdirectory of the output."""
        output = tmp_path / "out"
        ArtifactCollector().collect(
            work_dir, [CollectionRule(patterns=("*.h",), destination="include")], output
        )
        assert (output / "include" / "sqlite3.h").exists()

    def test_no_matches_creates_nothing(self, work_dir, tmp_path):
        """Test that output directories only appear for copied files."""
        output = tmp_path / "out"
        ArtifactCollector().collect(work_dir, [CollectionRule(patterns=("*.dll",))], output)
        assert not output.exists()

    def test_missing_directory_is_a_warning(self, work_dir, tmp_path, caplog):
        """Test that collection never raises for a missing directory."""
        report = ArtifactCollector().collect(
            work_dir, [CollectionRule(subdirectory="test", patterns=("*",))], tmp_path / "out"
        )
        assert not report.ok
        assert "Artifact directory not found" in report.errors[0]
        assert "Artifact directory not found" in caplog.text


class TestHandOff:
    """Tests for ArtifactCollector.hand_off()."""

    def test_mirror_with_extra_files(self, work_dir, tmp_path):
        """Test that the sink receives artifacts plus extra files."""
        output = tmp_path / "out"
        (output / "test").mkdir(parents=True)
        (output / "libsqlcipher.so").write_bytes(b"so")
        (output / "test" / "runner").write_bytes(b"exe")
        openssl = tmp_path / "openssl"
        openssl.mkdir()
        (openssl / "libcrypto.a").write_bytes(b"crypto")
        (openssl / "libssl.a").write_bytes(b"ssl")
        sink = tmp_path / "sink"

        report = ArtifactCollector().hand_off(output, sink, [(openssl, ("libcrypto.*",))])

        assert (sink / "libsqlcipher.so").exists()
        assert (sink / "test" / "runner").exists()
        assert (sink / "libcrypto.a").exists()
        assert not (sink / "libssl.a").exists()
        assert isinstance(report, CollectionReport)
        assert report.ok
