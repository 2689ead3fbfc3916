"""Platform builder base class and registry.

A platform builder turns BuildInputs into one generated script, runs it and
describes which files of the build tree are artifacts. Script text always
comes from a pure ``render_*`` function in the family's module, so identical
inputs give byte-identical scripts and the text can be tested without
spawning anything.

Builders are looked up by (library, toolchain family) in a table instead of
being chosen through subclass overrides.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..catalog import BuildTarget, ToolchainFamily
from ..config.build_config import BuildConfig
from ..errors import InvalidConfigurationError
from ..host import HostOs
from .artifacts import CollectionRule
from .executor import ProcessResult, ScriptRunner
from .verifier import ToolchainReport


@dataclass
class BuildInputs:
    """Everything a builder needs for one target.

    Attributes:
        target: Target being built
        source_dir: Compile directory holding the library source
        options: Merged compiler options (SQLCipher) or configure options (OpenSSL)
        include_dir: Dependency include directory (OpenSSL headers for SQLCipher)
        lib_dir: Dependency library directory (collected OpenSSL artifacts)
        toolchain: Report from the verifier, if the target was verified
    """

    target: BuildTarget
    source_dir: Path
    options: List[str] = field(default_factory=list)
    include_dir: Optional[Path] = None
    lib_dir: Optional[Path] = None
    toolchain: Optional[ToolchainReport] = None


class PlatformBuilder(ABC):
    """Base class for family build strategies."""

    library = ""

    def __init__(
        self,
        config: BuildConfig,
        host: HostOs,
        runner: ScriptRunner,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.host = host
        self.runner = runner
        self.logger = logger or logging.getLogger(__name__)

    def script_name(self, target: BuildTarget, suffix: str = ".sh") -> str:
        return f"{self.library}-{target.id}{suffix}"

    @abstractmethod
    def build(self, inputs: BuildInputs) -> ProcessResult:
        """Generate and run the build script.

        Returns:
            ProcessResult of the build script; ``combined`` is stderr then stdout

        Raises:
            BuildExecutionError: If the script exits non-zero
        """
        pass

    @abstractmethod
    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        """Describe which files of the build tree are artifacts."""
        pass

    def _dependency_dirs(self, inputs: BuildInputs) -> Tuple[Path, Path]:
        if inputs.include_dir is None or inputs.lib_dir is None:
            raise InvalidConfigurationError(
                f"{self.library} build of {inputs.target.id} needs dependency include and lib directories"
            )
        return inputs.include_dir, inputs.lib_dir


BuilderFactory = Callable[..., PlatformBuilder]

_REGISTRY: Dict[Tuple[str, ToolchainFamily], BuilderFactory] = {}


def register_builder(library: str, *families: ToolchainFamily) -> Callable[[BuilderFactory], BuilderFactory]:
    """Class decorator adding a builder to the registry."""

    def decorator(cls: BuilderFactory) -> BuilderFactory:
        for family in families:
            _REGISTRY[(library, family)] = cls
        return cls

    return decorator


def create_builder(
    library: str,
    family: ToolchainFamily,
    config: BuildConfig,
    host: HostOs,
    runner: ScriptRunner,
    logger: Optional[logging.Logger] = None,
) -> PlatformBuilder:
    """Instantiate the builder for a library and toolchain family.

    Raises:
        InvalidConfigurationError: If no builder is registered for the pair
    """
    # Registration happens on import of the family modules
    from . import (  # noqa: F401
        builder_android,
        builder_apple,
        builder_autotools,
        builder_msvc,
        builder_openssl,
    )

    try:
        cls = _REGISTRY[(library, family)]
    except KeyError:
        raise InvalidConfigurationError(
            f"No {library} builder for toolchain family {family.value}"
        ) from None
    return cls(config, host, runner, logger)
