"""SQLCipher build for macOS, iOS and the iOS simulator.

The amalgamation is compiled directly with the Xcode clang against the
platform SDK, and the object archived into a static library with libtool.
"""

from typing import List, Sequence

from ..catalog import BuildTarget, ToolchainFamily
from ..config import defaults
from ..config.build_config import SQLCIPHER
from ..config.options import options_string
from ..errors import BuildExecutionError
from .amalgamation import build_amalgamation
from .artifacts import CollectionRule
from .builder import BuildInputs, PlatformBuilder, register_builder
from .executor import ProcessResult, write_script

LIBRARY_NAME = "libsqlcipher.a"
OBJECT_NAME = f"{defaults.MODULE_NAME}.o"


def clang_options(
    target: BuildTarget,
    options: Sequence[str],
    platform_options: Sequence[str],
    include_dir: str,
) -> List[str]:
    """Full clang option list for one Apple target."""
    result = ["-arch arm64"] if target.arch == "arm64" else []
    result += list(options)
    result += list(platform_options)
    result += ["-I.", f"-I{include_dir}", "-fPIC", "-O3"]
    return result


def render_apple_script(
    toolchain_path: str,
    cross_top: str,
    cross_sdk: str,
    options: Sequence[str],
) -> str:
    """zsh script compiling the amalgamation and archiving it.

    Args:
        toolchain_path: Xcode toolchain bin directory
        cross_top: Platform developer directory
        cross_sdk: SDK directory name, e.g. iPhoneOS.sdk
        options: Full clang option list

    Returns:
        Script text
    """
    return (
        "#!/bin/zsh\n"
        + f"export CROSS_TOP={cross_top}\n"
        + f"export CROSS_SDK={cross_sdk}\n"
        + f'export PATH="{toolchain_path}:$PATH"\n'
        + f"clang {options_string(options)} -o {OBJECT_NAME} -c {defaults.AMALGAMATION}\n"
        + f"libtool -static -o {LIBRARY_NAME} {OBJECT_NAME}\n"
    )


@register_builder(SQLCIPHER, ToolchainFamily.APPLE)
class AppleBuilder(PlatformBuilder):
    """Builds libsqlcipher.a with clang and libtool."""

    library = SQLCIPHER

    def build(self, inputs: BuildInputs) -> ProcessResult:
        include_dir, _ = self._dependency_dirs(inputs)
        apple = self.config.tools.apple
        target = inputs.target

        build_amalgamation(
            inputs.source_dir,
            target.id,
            inputs.options,
            self.runner,
            self.config.sqlcipher_470_or_later,
            self.logger,
        )

        options = clang_options(target, inputs.options, apple.options(target), str(include_dir))
        script = write_script(
            inputs.source_dir,
            self.script_name(target),
            render_apple_script(
                apple.toolchain_path,
                apple.cross_top(target),
                f"{apple.platform(target)}.sdk",
                options,
            ),
        )
        self.logger.info(f"{script.name} compiler options: {options_string(options)}")
        output = self.runner.run_shell(script, inputs.source_dir)

        if not (inputs.source_dir / LIBRARY_NAME).exists():
            raise BuildExecutionError(
                f"Build failed, {LIBRARY_NAME} not created",
                stderr=output.stderr,
                stdout=output.stdout,
                returncode=output.returncode,
            )
        return output

    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        return [CollectionRule(patterns=("*.a", defaults.MODULE_HEADER))]
