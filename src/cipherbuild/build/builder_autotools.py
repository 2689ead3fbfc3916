"""SQLCipher build with configure and make (Linux and MinGW).

On Windows hosts the script runs under MSYS2 bash, so the OpenSSL paths are
converted to MSYS2 form. Linux links the math library explicitly: without
-lm, builds with -DSQLITE_ENABLE_FTS5 fail to link. MinGW does not need it.
"""

from typing import List, Optional, Sequence

from ..catalog import BuildTarget, ToolchainFamily
from ..config import defaults
from ..config.build_config import SQLCIPHER
from ..config.options import options_string
from ..host import HostOs
from .amalgamation import tempstore_option
from .artifacts import CollectionRule
from .builder import BuildInputs, PlatformBuilder, register_builder
from .executor import ProcessResult, to_msys_path, write_script

CONFIGURE_BUILD_TRIPLES = {
    "mingwX64": "mingw64",
    "linuxX64": "x86_64-linux-gnu",
    "linuxArm64": "aarch64-linux-gnu",
}

# SQLCipher 4.7.0 and later build with autosetup and leave libraries at the top level
TOP_LEVEL_LIBRARY_PATTERNS = ("*.a", "*.so", "*.so.*", "*.dll", "*.dll.a", "*.def")


def link_flags(lib_dir: str, link_math: bool) -> str:
    flags = f"-L{lib_dir} -lcrypto"
    if link_math:
        flags += " -lm"
    return flags


def render_configure_script(
    build_triple: Optional[str],
    options: Sequence[str],
    include_dir: str,
    lib_dir: str,
    link_math: bool,
    version_470_or_later: bool = False,
) -> str:
    """Script running configure with merged CFLAGS and LDFLAGS, then make.

    Args:
        build_triple: Value for --build, or None to let configure guess
        options: Merged compiler options
        include_dir: OpenSSL include directory, as the shell sees it
        lib_dir: Directory holding libcrypto, as the shell sees it
        link_math: Whether to add -lm
        version_470_or_later: Whether SQLCipher is 4.7.0 or newer

    Returns:
        Script text
    """
    build = f"--build={build_triple} " if build_triple else ""
    return (
        "#!/bin/sh\n"
        + f"./configure {build}{tempstore_option(version_470_or_later)} --disable-tcl "
        + "--enable-static=yes --with-crypto-lib=none "
        + f'LDFLAGS="{link_flags(lib_dir, link_math)}" '
        + f'CFLAGS="{options_string(options)} -I{include_dir}"\n'
        + "make\n"
    )


@register_builder(SQLCIPHER, ToolchainFamily.LINUX, ToolchainFamily.MINGW)
class AutotoolsBuilder(PlatformBuilder):
    """Builds SQLCipher with its configure script."""

    library = SQLCIPHER

    def shell_path(self, path) -> str:
        if self.host is HostOs.WINDOWS:
            return to_msys_path(path)
        return str(path)

    def link_math(self, target: BuildTarget) -> bool:
        return target.family is ToolchainFamily.LINUX

    def build(self, inputs: BuildInputs) -> ProcessResult:
        include_dir, lib_dir = self._dependency_dirs(inputs)
        script = write_script(
            inputs.source_dir,
            self.script_name(inputs.target),
            render_configure_script(
                CONFIGURE_BUILD_TRIPLES.get(inputs.target.id),
                inputs.options,
                self.shell_path(include_dir),
                self.shell_path(lib_dir),
                self.link_math(inputs.target),
                self.config.sqlcipher_470_or_later,
            ),
        )
        self.logger.info(f"{script.name} compiler options: {options_string(inputs.options)}")
        return self.runner.run_shell(script, inputs.source_dir)

    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        top_level = (defaults.MODULE_HEADER, defaults.MODULE_NAME)
        if self.config.sqlcipher_470_or_later:
            return [CollectionRule(patterns=top_level + TOP_LEVEL_LIBRARY_PATTERNS)]
        return [
            CollectionRule(subdirectory=".libs"),
            CollectionRule(patterns=top_level),
        ]
