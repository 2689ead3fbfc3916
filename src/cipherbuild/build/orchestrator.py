"""
Build orchestration for cipherbuild.

This module wires host detection, the target catalog, source acquisition,
toolchain verification, family builders and artifact collection into one
pipeline per target, and exposes the aggregate build-all and clean surface.

Building SQLCipher for a target first builds OpenSSL for the same target;
the SQLCipher pipeline compiles against OpenSSL's include directory and links
against its collected artifacts. Targets are independent and run in parallel
up to ``BuildConfig.jobs``.

Example usage:
    orchestrator = Orchestrator(load_config(Path(".")))
    result = orchestrator.build_all()
    for target_id, directory in result.target_directories.items():
        print(f"{target_id}: {directory}")
"""

import logging
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .. import host as host_module
from ..catalog import WINDOWS_ONLY_TARGETS, BuildTarget, get_target, select_targets, supported_on
from ..config.build_config import LIBRARIES, OPENSSL, SQLCIPHER, BuildConfig
from ..errors import BuildFailedError, InvalidConfigurationError
from ..host import HostOs
from ..packages.downloader import ArchiveDownloader
from ..packages.source_provider import SourceProvider, create_source_provider
from ..packages.workspace import Workspace
from .artifacts import LIBCRYPTO_PATTERNS, WINDOWS_HEADERS, ArtifactCollector
from .builder import create_builder
from .builder_openssl import include_dir
from .executor import ProcessExecutor, ScriptRunner
from .pipeline import BuildAllResult, BuildResult, TargetPipeline
from .verifier import Verifier


class Orchestrator:
    """
    Runs builds and cleans for the targets of a BuildConfig.

    Collaborators are created from the configuration unless passed in; tests
    pass a stub ProcessExecutor so nothing external is ever spawned.
    """

    def __init__(
        self,
        config: BuildConfig,
        host: Optional[HostOs] = None,
        executor: Optional[ProcessExecutor] = None,
        downloader: Optional[ArchiveDownloader] = None,
        collector: Optional[ArtifactCollector] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Build configuration
            host: Host OS, detected when None
            executor: Process executor for every external command
            downloader: Archive downloader for the download strategy
            collector: Artifact collector
            logger: Logger passed to every component

        Raises:
            UnsupportedHostError: If host is None and the OS is not supported
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.host = host if host is not None else host_module.query()
        self.executor = executor or ProcessExecutor(self.logger)
        self.downloader = downloader
        self.collector = collector or ArtifactCollector(self.logger)
        self.runner = ScriptRunner(self.host, self.executor, config.tools.windows)
        self.verifier = Verifier(config, self.host, self.executor, self.logger)
        self._workspaces: Dict[str, Workspace] = {}
        self._providers: Dict[str, SourceProvider] = {}
        self._lock = threading.RLock()
        self._validated = False

    def workspace(self, library: str) -> Workspace:
        with self._lock:
            if library not in self._workspaces:
                self._workspaces[library] = Workspace(
                    self.config.workroot, self.config.library(library, self.host)
                )
            return self._workspaces[library]

    def source_provider(self, library: str) -> SourceProvider:
        """The acquisition strategy of this run for one library."""
        with self._lock:
            if library not in self._providers:
                self._providers[library] = create_source_provider(
                    self.workspace(library),
                    self.config.use_git,
                    executor=self.executor,
                    downloader=self.downloader,
                    logger=self.logger,
                )
            return self._providers[library]

    def validate(self) -> None:
        """Validate the configuration once, before any target runs.

        Raises:
            InvalidConfigurationError: On forced options supplied, required
                options missing or unknown target ids
        """
        if self._validated:
            return
        self.config.validate()
        for target_id in self.config.targets:
            get_target(target_id)
        self._validated = True

    def selected_targets(self, target_ids: Optional[Sequence[str]] = None) -> List[BuildTarget]:
        """Selected targets this host builds; the rest are logged as ignored."""
        ids = self.config.targets if target_ids is None else target_ids
        return select_targets(ids, self.host, self.logger)

    def _resolve_library(self, library: str) -> str:
        if library not in LIBRARIES:
            raise InvalidConfigurationError(
                f"Unknown library: {library}. Available: {', '.join(LIBRARIES)}"
            )
        if library == SQLCIPHER and not self.config.build_sqlcipher:
            self.logger.info("SQLCipher builds are disabled, building OpenSSL only")
            return OPENSSL
        return library

    def _pipeline(
        self,
        target: BuildTarget,
        library: str,
        dependency: Optional[BuildResult] = None,
    ) -> TargetPipeline:
        workspace = self.workspace(library)
        builder = create_builder(
            library, target.family, self.config, self.host, self.runner, self.logger
        )

        if library == OPENSSL:
            return TargetPipeline(
                target,
                workspace,
                self.verifier,
                self.source_provider(OPENSSL),
                builder,
                self.collector,
                self.config.openssl.options_for(target.id),
                logger=self.logger,
            )

        dependency_dirs: Optional[Tuple[Path, Path]] = None
        if dependency is not None:
            openssl_source = self.workspace(OPENSSL).compile_dir(target.id)
            dependency_dirs = (include_dir(openssl_source), dependency.output_dir)

        compile_dir = workspace.compile_dir(target.id)

        def sink() -> Optional[Path]:
            if self.config.targets_copy_to is None:
                return None
            return self.config.targets_copy_to(target.id)

        def sink_extra() -> List[Tuple[Path, Sequence[str]]]:
            if not self.config.copy_headers or dependency_dirs is None:
                return []
            extra: List[Tuple[Path, Sequence[str]]] = [(dependency_dirs[1], LIBCRYPTO_PATTERNS)]
            if target.id in WINDOWS_ONLY_TARGETS:
                extra.append((compile_dir / "src", WINDOWS_HEADERS))
            return extra

        return TargetPipeline(
            target,
            workspace,
            self.verifier,
            self.source_provider(SQLCIPHER),
            builder,
            self.collector,
            self.config.compiler_options.merged(target.id),
            dependency_dirs=dependency_dirs,
            sink=sink,
            sink_extra=sink_extra,
            logger=self.logger,
        )

    def build_target(
        self, target: Union[str, BuildTarget], library: str = SQLCIPHER
    ) -> BuildResult:
        """
        Build one library for one target.

        SQLCipher builds OpenSSL for the target first. If that fails, the
        SQLCipher stages are all skipped.

        Args:
            target: Target or target id
            library: "sqlcipher" or "openssl"

        Returns:
            BuildResult of the requested library

        Raises:
            InvalidConfigurationError: If the configuration is invalid
        """
        self.validate()
        library = self._resolve_library(library)
        if isinstance(target, str):
            target = get_target(target)
        if not supported_on(target, self.host):
            self.logger.info(f"Ignoring target {target.id} on host OS {self.host}")
            result = BuildResult(library, target.id, self.workspace(library).output_dir(target.id))
            result.error = f"Target {target.id} is not supported on host OS {self.host}"
            result.skip_pending()
            return result

        openssl_result = self._pipeline(target, OPENSSL).run()
        if library == OPENSSL:
            return openssl_result

        if not openssl_result.success:
            result = BuildResult(SQLCIPHER, target.id, self.workspace(SQLCIPHER).output_dir(target.id))
            result.error = f"OpenSSL build for {target.id} failed: {openssl_result.error}"
            result.dependency = openssl_result
            result.skip_pending()
            self.logger.error(result.error)
            return result

        result = self._pipeline(target, SQLCIPHER, openssl_result).run()
        result.dependency = openssl_result
        return result

    def _build_isolated(self, target: BuildTarget, library: str) -> BuildResult:
        """build_target for one target of a run; any error fails only that target."""
        try:
            return self.build_target(target, library)
        except Exception as e:
            self.logger.exception(f"Unexpected error building {library} for {target.id}")
            result = BuildResult(library, target.id, self.workspace(library).output_dir(target.id))
            result.error = f"{type(e).__name__}: {e}"
            result.skip_pending()
            return result

    def build_all(self, library: str = SQLCIPHER) -> BuildAllResult:
        """
        Build a library for every selected target this host supports.

        Args:
            library: "sqlcipher" or "openssl"

        Returns:
            BuildAllResult with the output directory of every target

        Raises:
            InvalidConfigurationError: Before any target runs, on invalid configuration
            BuildFailedError: If any target failed; carries all results
        """
        self.validate()
        library = self._resolve_library(library)
        targets = self.selected_targets()
        if not targets:
            self.logger.warning(f"No selected targets can be built on host OS {self.host}")

        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            futures = [
                (target, pool.submit(self._build_isolated, target, library)) for target in targets
            ]
            results = {target.id: future.result() for target, future in futures}

        all_result = BuildAllResult(
            library,
            results,
            {target_id: result.output_dir for target_id, result in results.items()},
        )
        failed = all_result.failed_targets
        if failed:
            raise BuildFailedError(
                f"{library} build failed for target(s): {', '.join(failed)}", results
            )
        return all_result

    def clean(self, target_id: str, library: str = SQLCIPHER) -> List[Path]:
        """
        Delete a target's artifacts and cached compile directory.

        Top-level files of the library source directory whose names start with
        the versioned archive name are deleted too, which covers both the
        downloaded archive and anything derived from it.

        Args:
            target_id: Target to clean
            library: Library to clean

        Returns:
            Paths that were deleted
        """
        get_target(target_id)
        if library not in LIBRARIES:
            raise InvalidConfigurationError(
                f"Unknown library: {library}. Available: {', '.join(LIBRARIES)}"
            )
        workspace = self.workspace(library)
        removed: List[Path] = []

        for directory in (workspace.output_dir(target_id), workspace.target_src_dir(target_id)):
            if directory.exists():
                shutil.rmtree(directory)
                removed.append(directory)

        prefix = workspace.library.archive_prefix
        if workspace.src_dir.is_dir():
            for path in sorted(workspace.src_dir.iterdir()):
                if path.is_file() and path.name.startswith(prefix):
                    path.unlink()
                    removed.append(path)

        for path in removed:
            self.logger.info(f"Deleted {path}")
        return removed

    def clean_all(self, library: Optional[str] = None) -> List[Path]:
        """Clean every selected target this host supports, for one or both libraries."""
        libraries = [library] if library else list(LIBRARIES)
        removed: List[Path] = []
        for target in self.selected_targets():
            for name in libraries:
                removed.extend(self.clean(target.id, name))
        return removed
