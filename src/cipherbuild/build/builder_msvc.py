"""SQLCipher build with the Visual Studio toolchain.

nmake is driven by an options file rather than command-line arguments, since
the merged compiler options easily exceed the cmd.exe line length limit.
"""

from typing import List, Sequence

from ..catalog import ToolchainFamily
from ..config import defaults
from ..config.build_config import SQLCIPHER
from ..config.options import options_string
from .artifacts import WINDOWS_PATTERNS, CollectionRule
from .builder import BuildInputs, PlatformBuilder, register_builder
from .executor import ProcessResult, write_script

NMAKE_OPTIONS_FILE = "nmakeCmdFile.txt"
OPENSSL_STATIC_LIB = "libcrypto_static.lib"


def render_nmake_options(
    sdk_install: str,
    sdk_lib_version: str,
    options: Sequence[str],
    include_dir: str,
    lib_dir: str,
) -> str:
    """nmake variables for Makefile.msc.

    Args:
        sdk_install: Windows SDK install directory
        sdk_lib_version: Windows SDK library version
        options: Merged compiler options
        include_dir: OpenSSL include directory
        lib_dir: Directory holding libcrypto_static.lib
    """
    sdk_lib_path = f"{sdk_install}\\Lib\\{sdk_lib_version}\\"
    compiler_options = f"-guard:cf {options_string(options)} -I{include_dir}"
    lines = [
        "FOR_WIN10=1",
        "PLATFORM=x64",
        "USE_NATIVE_LIBPATHS=1",
        f'NCRTLIBPATH="{sdk_lib_path}ucrt\\x64"',
        f'NSDKLIBPATH="{sdk_lib_path}um\\x64"',
        'LTLIBS="Advapi32.lib User32.lib kernel32.lib"',
        f'CCOPTS="{compiler_options}"',
        f"SHELL_CORE_LIB=lib{defaults.MODULE_NAME}.lib",
        f"LDFLAGS={lib_dir}\\{OPENSSL_STATIC_LIB}",
    ]
    return "\n".join(lines) + "\n"


def render_msvc_batch(vcvars_file: str, options_file: str) -> str:
    return f'call "{vcvars_file}"\nnmake /f Makefile.msc @{options_file}\n'


@register_builder(SQLCIPHER, ToolchainFamily.MSVC)
class MsvcBuilder(PlatformBuilder):
    """Builds SQLCipher with nmake and Makefile.msc."""

    library = SQLCIPHER

    def build(self, inputs: BuildInputs) -> ProcessResult:
        include_dir, lib_dir = self._dependency_dirs(inputs)
        windows = self.config.tools.windows

        options_file = write_script(
            inputs.source_dir,
            NMAKE_OPTIONS_FILE,
            render_nmake_options(
                windows.sdk_install,
                windows.sdk_lib_version,
                inputs.options,
                str(include_dir),
                str(lib_dir),
            ),
        )
        batch = write_script(
            inputs.source_dir,
            self.script_name(inputs.target, ".bat"),
            render_msvc_batch(windows.vstudio_env_file, options_file.name),
        )
        self.logger.info(f"{batch.name} compiler options: {options_string(inputs.options)}")
        return self.runner.run_batch(batch, inputs.source_dir)

    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        return [CollectionRule(patterns=WINDOWS_PATTERNS + (defaults.MODULE_HEADER,))]
