"""Shallow single-tag clone.

Cloning OpenSSL with full history takes minutes, so only the one tag reference
is fetched, at depth 1, and then checked out. The ``git`` command line is run
through the process executor like every other external tool.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from ..build.executor import ProcessExecutor
from ..errors import BuildExecutionError, SourceAcquisitionError


class GitCheckout:
    """Clones one tag of a repository into a local directory."""

    def __init__(
        self,
        uri: str,
        tag: str,
        target_dir: Path,
        executor: ProcessExecutor,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the checkout.

        Args:
            uri: Repository URI
            tag: Tag to fetch and check out
            target_dir: Directory that becomes the local repository
            executor: Runs the git commands
            logger: Logger for progress messages
        """
        self.uri = uri
        self.tag = tag
        self.target_dir = Path(target_dir)
        self.executor = executor
        self.logger = logger or logging.getLogger(__name__)

    def commands(self) -> List[List[str]]:
        """Git invocations performed by clone_checkout, in order."""
        ref = f"refs/tags/{self.tag}"
        return [
            ["git", "init", "--quiet"],
            ["git", "remote", "add", "origin", self.uri],
            ["git", "fetch", "--depth", "1", "origin", f"{ref}:{ref}"],
            ["git", "checkout", "--quiet", self.tag],
        ]

    def clone_checkout(self) -> Path:
        """Clone the tag and check it out.

        A partially populated directory from an interrupted clone is removed
        first.

        Returns:
            The repository directory

        Raises:
            SourceAcquisitionError: If any git command fails
        """
        if self.target_dir.exists():
            shutil.rmtree(self.target_dir)
        self.target_dir.mkdir(parents=True)

        self.logger.info(f"Cloning {self.uri} tag {self.tag} into {self.target_dir}")
        try:
            for cmd in self.commands():
                self.executor.run_checked(cmd, self.target_dir, description=" ".join(cmd[:2]))
        except BuildExecutionError as e:
            raise SourceAcquisitionError(
                f"Failed to clone {self.uri} tag {self.tag}: {e}"
            ) from e

        return self.target_dir
