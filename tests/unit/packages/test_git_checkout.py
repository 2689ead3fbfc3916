"""Unit tests for the shallow tag clone."""

from unittest.mock import Mock

import pytest

from cipherbuild.build.executor import ProcessExecutor, ProcessResult
from cipherbuild.errors import BuildExecutionError, SourceAcquisitionError
from cipherbuild.packages.git_checkout import GitCheckout


class TestGitCheckout:
    """Tests for GitCheckout."""

    @pytest.fixture
    def executor(self):
        """Executor that accepts every command."""
        executor = Mock(spec=ProcessExecutor)
        executor.run_checked.return_value = ProcessResult(0)
        return executor

    def test_commands_fetch_only_the_tag(self, tmp_path, executor):
        """Test that only the one tag ref is fetched, at depth 1."""
        checkout = GitCheckout("https://github.com/openssl/openssl", "openssl-3.0.1", tmp_path, executor)

        assert checkout.commands() == [
            ["git", "init", "--quiet"],
            ["git", "remote", "add", "origin", "https://github.com/openssl/openssl"],
            [
                "git", "fetch", "--depth", "1", "origin",
                "refs/tags/openssl-3.0.1:refs/tags/openssl-3.0.1",
            ],
            ["git", "checkout", "--quiet", "openssl-3.0.1"],
        ]

    def test_clone_checkout_runs_commands_in_target_dir(self, tmp_path, executor):
        """Test that every command runs inside the new repository."""
        target_dir = tmp_path / "git"
        checkout = GitCheckout("https://example.com/repo", "v1", target_dir, executor)

        assert checkout.clone_checkout() == target_dir
        assert target_dir.is_dir()
        assert executor.run_checked.call_count == 4
        for call in executor.run_checked.call_args_list:
            assert call.args[1] == target_dir

    def test_partial_clone_is_removed(self, tmp_path, executor):
        """Test that leftovers of an interrupted clone are discarded."""
        target_dir = tmp_path / "git"
        target_dir.mkdir()
        (target_dir / "stale.txt").write_text("old")

        GitCheckout("https://example.com/repo", "v1", target_dir, executor).clone_checkout()

        assert not (target_dir / "stale.txt").exists()

    def test_failure_becomes_source_acquisition_error(self, tmp_path, executor):
        """Test that git failures carry the git output."""
        executor.run_checked.side_effect = [
            ProcessResult(0),
            ProcessResult(0),
            BuildExecutionError("git fetch failed", stderr="fatal: couldn't find remote ref"),
        ]
        checkout = GitCheckout("https://example.com/repo", "v0", tmp_path / "git", executor)

        with pytest.raises(SourceAcquisitionError, match="couldn't find remote ref"):
            checkout.clone_checkout()
