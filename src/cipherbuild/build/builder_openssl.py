"""OpenSSL builds for every toolchain family.

All families run OpenSSL's perl Configure script with a per-target
configuration name followed by the configured options, then make:

    MSVC      vcvars64.bat, perl.exe Configure VC-WIN64A, nmake
    MinGW     Configure mingw64 under MSYS2, make all
    Linux     Configure linux-*, make all
    Android   NDK on PATH, Configure android-*, make build_libs
    Apple     Xcode toolchain on PATH, Configure with -isysroot, make all

SQLCipher later compiles against ``<compile dir>/include`` and links against
the collected artifacts.
"""

import os
from pathlib import Path
from typing import Dict, List, Sequence

from ..catalog import BuildTarget, ToolchainFamily, is_ios
from ..config.build_config import OPENSSL, PERL_EXE
from ..config.options import options_string
from ..errors import InvalidConfigurationError
from ..host import HostOs
from .artifacts import (
    APPLE_PATTERNS,
    LINUX_PATTERNS,
    MACOS_PATTERNS,
    MINGW_PATTERNS,
    WINDOWS_PATTERNS,
    CollectionRule,
)
from .builder import BuildInputs, PlatformBuilder, register_builder
from .builder_android import ndk_bin_path
from .executor import ProcessResult, to_msys_path, write_script

# Use ./Configure LIST to find these
CONFIGURE_TARGETS: Dict[str, str] = {
    "vStudio64": "VC-WIN64A",
    "mingwX64": "mingw64",
    "linuxX64": "linux-x86_64",
    "linuxArm64": "linux-aarch64",
    "androidArm64": "android-arm64",
    "androidX64": "android-x86_64",
    "iosX64": "iossimulator-xcrun",
    "iosArm64": "ios64-cross",
    "macosX64": "darwin64-x86_64-cc",
    "macosArm64": "darwin64-arm64-cc",
}

TEST_SUBDIRECTORY = "test"


def include_dir(source_dir: Path) -> Path:
    """OpenSSL public headers inside a compile directory."""
    return source_dir / "include"


def configure_target(target: BuildTarget) -> str:
    try:
        return CONFIGURE_TARGETS[target.id]
    except KeyError:
        raise InvalidConfigurationError(f"Unsupported OpenSSL build target: {target.id}") from None


def render_msvc_batch(vcvars_file: str, configure_target: str, options: Sequence[str]) -> str:
    return (
        f'call "{vcvars_file}"\n'
        + f"{PERL_EXE} Configure {configure_target} {options_string(options)}\n"
        + "nmake\n"
    )


def render_make_script(configure_target: str, options: Sequence[str]) -> str:
    return (
        "#!/bin/sh\n"
        + f"./Configure {configure_target} {options_string(options)}\n"
        + "make all\n"
    )


def render_android_script(
    ndk_root: str,
    bin_path: str,
    configure_target: str,
    minimum_sdk: int,
    options: Sequence[str],
) -> str:
    """Script building only the OpenSSL libraries with the NDK clang."""
    return (
        "#!/bin/sh\n"
        + f"export ANDROID_NDK_ROOT={ndk_root}\n"
        + f"export PATH={bin_path}:$PATH\n"
        + f"./Configure {configure_target} -D__ANDROID_API__={minimum_sdk} "
        + f"-D_FILE_OFFSET_BITS=64 {options_string(options)}\n"
        + "make build_libs\n"
    )


def render_apple_script(
    platform: str,
    toolchain_path: str,
    configure_target: str,
    options: Sequence[str],
    platform_options: Sequence[str],
) -> str:
    return (
        "#!/bin/zsh\n"
        + f"export PLATFORM={platform}\n"
        + "export CC=clang\n"
        + f'export PATH="{toolchain_path}:$PATH"\n'
        + f"./Configure {configure_target} {options_string(options)} "
        + f"{options_string(platform_options)}\n"
        + "make all\n"
    )


@register_builder(
    OPENSSL,
    ToolchainFamily.MSVC,
    ToolchainFamily.MINGW,
    ToolchainFamily.LINUX,
    ToolchainFamily.ANDROID,
    ToolchainFamily.APPLE,
)
class OpensslBuilder(PlatformBuilder):
    """Builds OpenSSL with its Configure script."""

    library = OPENSSL

    def build(self, inputs: BuildInputs) -> ProcessResult:
        target = inputs.target
        source_dir = inputs.source_dir
        # Make cannot cope with blanks in the include path SQLCipher compiles against
        if " " in str(include_dir(source_dir)):
            raise InvalidConfigurationError(
                f"OpenSSL include directory contains blanks: {include_dir(source_dir)}"
            )

        family = target.family
        name = configure_target(target)
        windows = self.config.tools.windows

        if family is ToolchainFamily.MSVC:
            batch = write_script(
                source_dir,
                self.script_name(target, ".bat"),
                render_msvc_batch(windows.vstudio_env_file, name, inputs.options),
            )
            path = f"{windows.windows_perl_dir};{os.environ.get('PATH', '')}"
            return self.runner.run_batch(batch, source_dir, env={"PATH": path})

        if family is ToolchainFamily.ANDROID:
            android = self.config.tools.android
            if inputs.toolchain is not None and inputs.toolchain.ndk_root is not None:
                ndk_root = inputs.toolchain.ndk_root
            else:
                ndk_root = android.ndk_root(self.host)
            shell_root = to_msys_path(ndk_root) if self.host is HostOs.WINDOWS else str(ndk_root)
            text = render_android_script(
                shell_root,
                ndk_bin_path(ndk_root, self.host, target),
                name,
                android.minimum_sdk,
                inputs.options,
            )
        elif family is ToolchainFamily.APPLE:
            apple = self.config.tools.apple
            text = render_apple_script(
                apple.platform(target),
                apple.toolchain_path,
                name,
                inputs.options,
                apple.options(target),
            )
        else:
            text = render_make_script(name, inputs.options)

        script = write_script(source_dir, self.script_name(target), text)
        self.logger.info(f"{script.name} configure options: {options_string(inputs.options)}")
        return self.runner.run_shell(script, source_dir)

    def patterns(self, target: BuildTarget) -> Sequence[str]:
        family = target.family
        if family is ToolchainFamily.MSVC:
            return WINDOWS_PATTERNS
        elif family is ToolchainFamily.MINGW:
            return MINGW_PATTERNS
        elif family is ToolchainFamily.APPLE:
            return APPLE_PATTERNS if is_ios(target) else MACOS_PATTERNS
        return LINUX_PATTERNS

    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        patterns = tuple(self.patterns(inputs.target))
        return [
            CollectionRule(patterns=patterns),
            CollectionRule(
                subdirectory=TEST_SUBDIRECTORY,
                patterns=patterns,
                destination=TEST_SUBDIRECTORY,
            ),
        ]
