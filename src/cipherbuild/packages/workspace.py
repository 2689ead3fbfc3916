"""Workspace layout for cipherbuild.

Every path the engine writes to is derived here, so sources, generated
scripts and collected artifacts always land in the same places.

Workspace Structure:
    <workroot>/
    ├── srcOpenssl/
    │   ├── openssl-3.0.1.tar.gz            # Downloaded archive (download mode)
    │   ├── git/                            # Shared read-only clone (git mode)
    │   └── {target_id}/
    │       └── openssl-openssl-3.0.1/      # Per-target compile tree
    ├── srcSqlCipher/
    │   ├── v4.5.0.tar.gz
    │   ├── git/
    │   └── {target_id}/
    │       └── sqlcipher-4.5.0/            # Scripts written here, build runs here
    └── sqlCipherTargets/
        ├── openssl/
        │   └── {target_id}/                # Collected OpenSSL artifacts
        └── sqlcipher/
            └── {target_id}/                # Collected SQLCipher artifacts

Each target only ever touches its own {target_id} subtrees, which is what
lets targets build concurrently without locking.
"""

from pathlib import Path

from ..config.build_config import LibrarySpec

GIT_DIR_NAME = "git"


class Workspace:
    """Resolves workspace paths for one library.

    No method creates directories; callers create what they write to, so that
    merely resolving paths for an ignored target has no side effects.
    """

    def __init__(self, workroot: Path, library: LibrarySpec):
        """Initialize workspace paths.

        Args:
            workroot: Root directory of the build
            library: Library whose paths are resolved
        """
        self.workroot = Path(workroot)
        self.library = library

    @property
    def src_dir(self) -> Path:
        """Parent of the per-target compile directories."""
        return self.workroot / self.library.src_dir_name

    @property
    def git_dir(self) -> Path:
        """Location of the shared clone."""
        return self.src_dir / GIT_DIR_NAME

    @property
    def archive_path(self) -> Path:
        """Location of the downloaded source archive."""
        return self.src_dir / self.library.source.archive_file_name

    def target_src_dir(self, target_id: str) -> Path:
        """Cached compile subdirectory of one target."""
        return self.src_dir / target_id

    def compile_dir(self, target_id: str) -> Path:
        """Directory the target's build runs in."""
        return self.target_src_dir(target_id) / self.library.source.archive_top_dir

    @property
    def targets_root(self) -> Path:
        """Parent of the per-target output directories of this library."""
        return self.workroot / self.library.targets_dir_name / self.library.name

    def output_dir(self, target_id: str) -> Path:
        """Directory receiving the collected artifacts of one target."""
        return self.targets_root / target_id

    def marker_path(self, target_id: str) -> Path:
        """File whose presence means the target's source is already in place."""
        return self.compile_dir(target_id) / self.library.marker
