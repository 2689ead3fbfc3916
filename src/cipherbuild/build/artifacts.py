"""Artifact collection.

Copies build products out of a target's compile directory into its output
directory and optionally hands them to a caller-supplied sink directory.

Collection is best effort: copy failures are logged as warnings and returned
in a CollectionReport, never raised, so a target's result only reflects
whether it built.
"""

import fnmatch
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

# Family artifact patterns
WINDOWS_PATTERNS: Tuple[str, ...] = ("*.lib", "*.dll", "*.exe")
MINGW_PATTERNS: Tuple[str, ...] = ("*.a", "*.dll", "*.pc", "*.rc", "*.def", "*.o")
LINUX_PATTERNS: Tuple[str, ...] = ("sqlcipher", "*.a", "*.so", "*.pc", "*.map", "*.so.*")
APPLE_PATTERNS: Tuple[str, ...] = ("*.a", "*.pc")
MACOS_PATTERNS: Tuple[str, ...] = APPLE_PATTERNS + ("*.dylib",)

# Extra headers Windows targets need for cinterop
WINDOWS_HEADERS: Tuple[str, ...] = ("sqlcipher.h", "sqliteInt.h", "vdbeInt.h")
LIBCRYPTO_PATTERNS: Tuple[str, ...] = ("libcrypto.*",)


@dataclass(frozen=True)
class CollectionRule:
    """Files to copy from one directory of the build tree.

    Attributes:
        subdirectory: Directory relative to the work directory ("" is the work directory)
        patterns: Globs matched against top-level file names; empty copies the whole tree
        destination: Directory relative to the output directory
    """

    subdirectory: str = ""
    patterns: Tuple[str, ...] = ()
    destination: str = ""


@dataclass
class CollectionReport:
    """What a collection copied and what went wrong."""

    copied: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ArtifactCollector:
    """Copies build products matching family patterns."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def collect(
        self,
        work_dir: Path,
        rules: Sequence[CollectionRule],
        output_dir: Path,
        report: Optional[CollectionReport] = None,
    ) -> CollectionReport:
        """Apply collection rules to a build tree.

        Args:
            work_dir: Directory the build ran in
            rules: What to copy
            output_dir: Target-specific output directory
            report: Report to add to, a new one if None

        Returns:
            CollectionReport of copied files and errors
        """
        report = report if report is not None else CollectionReport()
        for rule in rules:
            src_dir = Path(work_dir) / rule.subdirectory if rule.subdirectory else Path(work_dir)
            dest_dir = Path(output_dir) / rule.destination if rule.destination else Path(output_dir)
            self.copy_files(src_dir, dest_dir, rule.patterns, report)
        return report

    def copy_files(
        self,
        src_dir: Path,
        dest_dir: Path,
        patterns: Sequence[str],
        report: CollectionReport,
    ) -> None:
        """Copy matching files; directories are only created for files copied."""
        if not src_dir.is_dir():
            self._warn(report, f"Artifact directory not found: {src_dir}")
            return

        try:
            if patterns:
                sources = [
                    (path, dest_dir / path.name)
                    for path in sorted(src_dir.iterdir())
                    if path.is_file() and any(fnmatch.fnmatch(path.name, p) for p in patterns)
                ]
            else:
                sources = [
                    (path, dest_dir / path.relative_to(src_dir))
                    for path in sorted(src_dir.rglob("*"))
                    if path.is_file()
                ]

            for src, dest in sources:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest)
                report.copied.append(dest)
        except OSError as e:
            self._warn(report, f"Failed to copy artifacts from {src_dir} to {dest_dir}: {e}")
            return

        self.logger.info(
            f"Copied {len(sources)} file(s) {list(patterns) or '(all)'} from {src_dir} to {dest_dir}"
        )

    def hand_off(
        self,
        output_dir: Path,
        sink_dir: Path,
        extra: Sequence[Tuple[Path, Sequence[str]]] = (),
        report: Optional[CollectionReport] = None,
    ) -> CollectionReport:
        """Mirror an output directory, plus extra files, into a sink.

        Args:
            output_dir: Collected artifacts of the target
            sink_dir: Caller-supplied destination
            extra: (directory, patterns) pairs copied next to the artifacts
            report: Report to add to, a new one if None

        Returns:
            CollectionReport of copied files and errors
        """
        report = report if report is not None else CollectionReport()
        self.copy_files(Path(output_dir), Path(sink_dir), (), report)
        for directory, patterns in extra:
            self.copy_files(Path(directory), Path(sink_dir), patterns, report)
        return report

    def _warn(self, report: CollectionReport, message: str) -> None:
        self.logger.warning(message)
        report.errors.append(message)
