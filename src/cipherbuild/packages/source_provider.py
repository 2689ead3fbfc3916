"""Source acquisition strategies.

Two strategies put a library's source into a target's compile directory:

- CloneSourceProvider: one shallow single-tag clone per run into
  ``<src>/git``, shared read-only; each target gets a private copy.
- DownloadSourceProvider: one HTTP GET of the tag archive into ``<src>``,
  extracted independently per target.

The strategy is chosen once per run by ``create_source_provider``. Both skip
all work for a target whose compile directory already holds the library's
marker file.
"""

import logging
import shutil
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..build.executor import ProcessExecutor
from ..errors import SourceAcquisitionError
from .downloader import ArchiveDownloader
from .git_checkout import GitCheckout
from .workspace import Workspace


class SourceProvider(ABC):
    """Base class for source acquisition strategies."""

    mode = ""

    def __init__(self, workspace: Workspace, logger: Optional[logging.Logger] = None):
        self.workspace = workspace
        self.logger = logger or logging.getLogger(__name__)

    @property
    def library_name(self) -> str:
        return self.workspace.library.name

    def acquire(self, target_id: str, compile_dir: Path) -> bool:
        """Make the library source available in a target's compile directory.

        Args:
            target_id: Target the source is for
            compile_dir: The target's compile directory

        Returns:
            True if source was acquired, False if the marker file was
            already present and nothing was done

        Raises:
            SourceAcquisitionError: If the source cannot be acquired
        """
        compile_dir = Path(compile_dir)
        marker = compile_dir / self.workspace.library.marker
        if marker.exists():
            self.logger.info(
                f"{self.library_name} source for {target_id} already present, skipping {self.mode}"
            )
            return False

        self._populate(target_id, compile_dir)

        if not marker.exists():
            raise SourceAcquisitionError(
                f"{self.library_name} source for {target_id} is incomplete, "
                + f"{marker.name} not found in {compile_dir}"
            )
        return True

    @abstractmethod
    def _populate(self, target_id: str, compile_dir: Path) -> None:
        """Fill compile_dir with the library source."""
        pass


class CloneSourceProvider(SourceProvider):
    """Clones the tag once, then copies the clone per target.

    The clone is made lazily by the first target that needs it. The lock only
    guards that clone; copies read the finished tree without coordination.
    """

    mode = "clone"

    def __init__(
        self,
        workspace: Workspace,
        executor: ProcessExecutor,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(workspace, logger)
        self.executor = executor
        self._lock = threading.Lock()
        self._cloned = False

    def ensure_clone(self) -> Path:
        """Clone the tag unless this run or an earlier one already did.

        Returns:
            Directory of the local clone
        """
        git_dir = self.workspace.git_dir
        with self._lock:
            if not self._cloned:
                if (git_dir / self.workspace.library.marker).exists():
                    self.logger.info(f"Using existing {self.library_name} clone at {git_dir}")
                else:
                    source = self.workspace.library.source
                    GitCheckout(
                        source.git_uri, source.tag, git_dir, self.executor, self.logger
                    ).clone_checkout()
                self._cloned = True
        return git_dir

    def _populate(self, target_id: str, compile_dir: Path) -> None:
        git_dir = self.ensure_clone()
        try:
            if compile_dir.exists():
                shutil.rmtree(compile_dir)
            compile_dir.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(
                git_dir,
                compile_dir,
                symlinks=True,
                ignore=shutil.ignore_patterns(".git"),
            )
        except (OSError, shutil.Error) as e:
            raise SourceAcquisitionError(
                f"Failed to copy {self.library_name} clone to {compile_dir}: {e}"
            ) from e
        self.logger.info(f"Copied {self.library_name} clone to {compile_dir}")


class DownloadSourceProvider(SourceProvider):
    """Downloads the tag archive once, extracts it per target."""

    mode = "download"

    def __init__(
        self,
        workspace: Workspace,
        downloader: Optional[ArchiveDownloader] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(workspace, logger)
        self.downloader = downloader or ArchiveDownloader(logger=self.logger)
        self._lock = threading.Lock()

    def ensure_archive(self) -> Path:
        """Download the archive unless it is already cached.

        Returns:
            Path of the archive file
        """
        archive = self.workspace.archive_path
        with self._lock:
            if archive.exists():
                self.logger.info(f"Using cached archive {archive}")
            else:
                self.downloader.download(self.workspace.library.source.download_url, archive)
        return archive

    def _populate(self, target_id: str, compile_dir: Path) -> None:
        archive = self.ensure_archive()
        if compile_dir.exists():
            shutil.rmtree(compile_dir)
        self.downloader.extract_archive(archive, compile_dir)


def create_source_provider(
    workspace: Workspace,
    use_git: bool,
    executor: Optional[ProcessExecutor] = None,
    downloader: Optional[ArchiveDownloader] = None,
    logger: Optional[logging.Logger] = None,
) -> SourceProvider:
    """Pick the acquisition strategy for a run.

    Args:
        workspace: Workspace of the library
        use_git: Clone when True, download otherwise
        executor: Process executor used by the clone strategy
        downloader: Downloader used by the download strategy
        logger: Logger passed to the provider

    Returns:
        The SourceProvider for the whole run
    """
    if use_git:
        return CloneSourceProvider(workspace, executor or ProcessExecutor(logger), logger)
    return DownloadSourceProvider(workspace, downloader, logger)
