"""Per-target build pipeline.

One pipeline builds one library for one target, strictly in stage order:

    Verify -> AcquireSource -> Build -> Collect

A failed stage marks the remaining stages skipped and the result failed.
Collect runs only after a successful build and never fails the pipeline.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from ..catalog import BuildTarget
from ..errors import BuildExecutionError, CipherBuildError
from ..packages.source_provider import SourceProvider
from ..packages.workspace import Workspace
from .artifacts import ArtifactCollector, CollectionReport
from .builder import BuildInputs, PlatformBuilder
from .verifier import ToolchainReport, Verifier

T = TypeVar("T")


class PipelineStage(Enum):
    VERIFY = "verify"
    ACQUIRE_SOURCE = "acquire_source"
    BUILD = "build"
    COLLECT = "collect"


class StageState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


def _pending_stages() -> Dict[PipelineStage, StageState]:
    return {stage: StageState.PENDING for stage in PipelineStage}


@dataclass
class BuildResult:
    """Result of one library build for one target.

    Attributes:
        library: Library built
        target_id: Target built
        output_dir: Directory receiving the collected artifacts
        success: Whether the build succeeded
        stdout: Captured stdout of the build script
        stderr: Captured stderr of the build script
        error: Error message if the pipeline failed
        stages: State of every stage
        collection: Report of the collect stage, if it ran
        build_time: Seconds spent in the pipeline
        dependency: Result of the dependency build (OpenSSL for SQLCipher)
    """

    library: str
    target_id: str
    output_dir: Path
    success: bool = False
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None
    stages: Dict[PipelineStage, StageState] = field(default_factory=_pending_stages)
    collection: Optional[CollectionReport] = None
    build_time: float = 0.0
    dependency: Optional["BuildResult"] = None

    @property
    def output(self) -> str:
        """Captured output, stderr first."""
        return self.stderr + self.stdout

    def skip_pending(self) -> None:
        for stage, state in self.stages.items():
            if state is StageState.PENDING:
                self.stages[stage] = StageState.SKIPPED


@dataclass
class BuildAllResult:
    """Result of a multi-target run.

    Attributes:
        library: Library requested
        results: Result per target id, in selection order
        target_directories: Output directory per target id
    """

    library: str
    results: Dict[str, BuildResult] = field(default_factory=dict)
    target_directories: Dict[str, Path] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results.values())

    @property
    def failed_targets(self) -> List[str]:
        return [target_id for target_id, result in self.results.items() if not result.success]


class TargetPipeline:
    """Runs the four stages for one library on one target."""

    def __init__(
        self,
        target: BuildTarget,
        workspace: Workspace,
        verifier: Verifier,
        source_provider: SourceProvider,
        builder: PlatformBuilder,
        collector: ArtifactCollector,
        options: Sequence[str],
        dependency_dirs: Optional[Tuple[Path, Path]] = None,
        sink: Optional[Callable[[], Optional[Path]]] = None,
        sink_extra: Optional[Callable[[], Sequence[Tuple[Path, Sequence[str]]]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the pipeline.

        Args:
            target: Target to build
            workspace: Workspace of the library
            verifier: Toolchain verifier
            source_provider: Source acquisition strategy of the run
            builder: Family builder of the library
            collector: Artifact collector
            options: Merged options passed to the builder
            dependency_dirs: (include, lib) directories of the dependency
            sink: Returns the directory receiving a copy of the artifacts, or None
            sink_extra: Returns extra (directory, patterns) pairs copied to the sink
            logger: Logger for stage progress
        """
        self.target = target
        self.workspace = workspace
        self.verifier = verifier
        self.source_provider = source_provider
        self.builder = builder
        self.collector = collector
        self.options = list(options)
        self.dependency_dirs = dependency_dirs
        self.sink = sink
        self.sink_extra = sink_extra
        self.logger = logger or logging.getLogger(__name__)

    @property
    def library_name(self) -> str:
        return self.workspace.library.name

    def run(self) -> BuildResult:
        """Run all stages.

        Returns:
            BuildResult; failures are recorded on it, not raised
        """
        start_time = time.time()
        compile_dir = self.workspace.compile_dir(self.target.id)
        result = BuildResult(
            self.library_name, self.target.id, self.workspace.output_dir(self.target.id)
        )
        self.logger.info(f"Building {self.library_name} for {self.target.id}")

        try:
            report: ToolchainReport = self._stage(
                result, PipelineStage.VERIFY, lambda: self.verifier.verify(self.target)
            )
            self._stage(
                result,
                PipelineStage.ACQUIRE_SOURCE,
                lambda: self.source_provider.acquire(self.target.id, compile_dir),
            )
            include_dir, lib_dir = self.dependency_dirs or (None, None)
            inputs = BuildInputs(
                target=self.target,
                source_dir=compile_dir,
                options=self.options,
                include_dir=include_dir,
                lib_dir=lib_dir,
                toolchain=report,
            )
            process = self._stage(result, PipelineStage.BUILD, lambda: self.builder.build(inputs))
        except (CipherBuildError, OSError) as e:
            if isinstance(e, BuildExecutionError):
                result.stdout = e.stdout
                result.stderr = e.stderr
            result.error = str(e)
            result.skip_pending()
            result.build_time = time.time() - start_time
            self.logger.error(f"{self.library_name} build for {self.target.id} failed: {e}")
            return result
        except Exception as e:
            # Sibling targets keep running; the traceback goes to the log
            result.error = f"{type(e).__name__}: {e}"
            result.skip_pending()
            result.build_time = time.time() - start_time
            self.logger.exception(
                f"Unexpected error building {self.library_name} for {self.target.id}"
            )
            return result

        result.stdout = process.stdout
        result.stderr = process.stderr
        result.success = True
        result.collection = self._collect(result, inputs)
        result.build_time = time.time() - start_time
        self.logger.info(
            f"{self.library_name} build for {self.target.id} finished in {result.build_time:.1f}s"
        )
        return result

    def _stage(self, result: BuildResult, stage: PipelineStage, action: Callable[[], T]) -> T:
        result.stages[stage] = StageState.RUNNING
        self.logger.debug(f"{self.target.id}: {stage.value} started")
        try:
            value = action()
        except Exception:
            result.stages[stage] = StageState.FAILED
            raise
        result.stages[stage] = StageState.SUCCEEDED
        return value

    def _collect(self, result: BuildResult, inputs: BuildInputs) -> CollectionReport:
        result.stages[PipelineStage.COLLECT] = StageState.RUNNING
        report = CollectionReport()
        try:
            self.collector.collect(
                inputs.source_dir, self.builder.collection_rules(inputs), result.output_dir, report
            )
            sink_dir = self.sink() if self.sink else None
            if sink_dir is not None:
                extra = self.sink_extra() if self.sink_extra else ()
                self.collector.hand_off(result.output_dir, sink_dir, extra, report)
        except Exception as e:
            # Artifact hand-off is best effort, the build itself succeeded
            message = f"Collecting {self.library_name} artifacts for {self.target.id} failed: {e}"
            self.logger.warning(message)
            report.errors.append(message)
        result.stages[PipelineStage.COLLECT] = StageState.SUCCEEDED
        return report
