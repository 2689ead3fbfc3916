"""SQLCipher build with the Android NDK.

ndk-build is driven by two generated control files:

- Application.mk: project path, ABI, build script, platform level, modules
- Android.mk: the shared sqlcipher module built from the amalgamation, and
  OpenSSL's libcrypto.a as a prebuilt static library

The NDK's llvm prebuilt bin directories are prepended to PATH for the one
invocation. NDK r21 and earlier also need the bfd linker.
"""

from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from ..catalog import BuildTarget, ToolchainFamily
from ..config import defaults
from ..config.build_config import SQLCIPHER, ndk_r22_or_later
from ..config.options import options_string
from ..errors import InvalidConfigurationError
from ..host import HostOs
from .amalgamation import build_amalgamation
from .artifacts import CollectionRule
from .builder import BuildInputs, PlatformBuilder, register_builder
from .executor import ProcessResult, forward_slash, to_msys_path, write_script

APPLICATION_MK = "Application.mk"
ANDROID_MK = "Android.mk"

ANDROID_ABIS = {
    "androidArm64": "arm64-v8a",
    "androidX64": "x86_64",
}

# Per-ABI tool directories inside the NDK llvm prebuilt tree
ANDROID_TOOL_TRIPLES = {
    "androidArm64": "aarch64-linux-android",
    "androidX64": "x86_64-linux-android",
}

NDK_HOST_TAGS = {
    HostOs.WINDOWS: "windows-x86_64",
    HostOs.LINUX: "linux-x86_64",
    HostOs.MAC: "darwin-x86_64",
}

REQUIRED_CFLAGS = ["-DLOG_NDEBUG", "-fstack-protector-all"]
LEGACY_LINKER_FLAG = "-fuse-ld=bfd"


def android_abi(target: BuildTarget) -> str:
    try:
        return ANDROID_ABIS[target.id]
    except KeyError:
        raise InvalidConfigurationError(f"Unsupported Android build target: {target.id}") from None


def ndk_bin_path(ndk_root: Path, host: HostOs, target: BuildTarget) -> str:
    """PATH entries for the NDK toolchain, in the form the build shell expects.

    Raises:
        InvalidConfigurationError: If the target is not an Android target
    """
    if target.id not in ANDROID_TOOL_TRIPLES:
        raise InvalidConfigurationError(f"Unsupported Android build target: {target.id}")
    prebuilt = f"{ndk_root}/toolchains/llvm/prebuilt/{NDK_HOST_TAGS[host]}"
    dirs = [f"{prebuilt}/bin", f"{prebuilt}/{ANDROID_TOOL_TRIPLES[target.id]}/bin"]
    if host is HostOs.WINDOWS:
        dirs = [to_msys_path(d) for d in dirs]
    return ":".join(dirs)


def render_application_mk(variables: Dict[str, str]) -> str:
    return "".join(f"{key} := {value}\n" for key, value in variables.items())


def render_android_mk(
    cflags: Sequence[str],
    openssl_include_dir: str,
    openssl_lib_dir: str,
    legacy_linker: bool,
) -> str:
    """Module definitions for ndk-build.

    Args:
        cflags: Required flags followed by the merged compiler options
        openssl_include_dir: Exported include directory of libcrypto
        openssl_lib_dir: Directory holding libcrypto.a
        legacy_linker: Whether to add -fuse-ld=bfd (NDK r21 and earlier)

    Returns:
        Android.mk text
    """
    ldflags = f"LOCAL_LDFLAGS += -L{openssl_lib_dir}"
    if legacy_linker:
        ldflags += f" {LEGACY_LINKER_FLAG}"
    lines = [
        "LOCAL_PATH := $(call my-dir)",
        "include $(CLEAR_VARS)",
        "LOCAL_MODULE := libsqlcipher",
        "LOCAL_C_INCLUDES += $(LOCAL_PATH)",
        f"LOCAL_CFLAGS += {options_string(cflags)}",
        f"LOCAL_SRC_FILES := {defaults.AMALGAMATION}",
        ldflags,
        "LOCAL_STATIC_LIBRARIES += libcrypto",
        "include $(BUILD_SHARED_LIBRARY)",
        "include $(CLEAR_VARS)",
        "LOCAL_MODULE := libcrypto",
        f"LOCAL_EXPORT_C_INCLUDES := {openssl_include_dir}",
        f"LOCAL_SRC_FILES := {openssl_lib_dir}/libcrypto.a",
        "include $(PREBUILT_STATIC_LIBRARY)",
    ]
    return "\n".join(lines) + "\n"


def render_ndk_script(ndk_root: str, bin_path: str, command: Sequence[str]) -> str:
    return (
        "#!/bin/sh\n"
        + f"export ANDROID_NDK_ROOT={ndk_root}\n"
        + f"export PATH={bin_path}:$PATH\n"
        + " ".join(command)
        + "\n"
    )


@register_builder(SQLCIPHER, ToolchainFamily.ANDROID)
class AndroidBuilder(PlatformBuilder):
    """Builds the SQLCipher shared library with ndk-build."""

    library = SQLCIPHER

    def ndk(self, inputs: BuildInputs) -> Tuple[Path, str]:
        """NDK root and version, as resolved by the verifier when available."""
        android = self.config.tools.android
        if inputs.toolchain is not None and inputs.toolchain.ndk_root is not None:
            return inputs.toolchain.ndk_root, inputs.toolchain.ndk_version or ""
        return android.ndk_root(self.host), android.ndk_version

    def application_variables(self, inputs: BuildInputs, build_script: Path) -> Dict[str, str]:
        source = forward_slash(inputs.source_dir)
        return {
            "APP_PROJECT_PATH": source,
            "APP_ABI": android_abi(inputs.target),
            "APP_BUILD_SCRIPT": forward_slash(build_script),
            "APP_CFLAGS": "-D_FILE_OFFSET_BITS=64",
            "APP_LDFLAGS": "-Wl,--exclude-libs,ALL",
            "APP_PLATFORM": f"android-{self.config.tools.android.minimum_sdk}",
            "APP_MODULES": "libcrypto libsqlcipher",
        }

    def build(self, inputs: BuildInputs) -> ProcessResult:
        include_dir, lib_dir = self._dependency_dirs(inputs)
        ndk_root, ndk_version = self.ndk(inputs)
        source_dir = inputs.source_dir

        build_amalgamation(
            source_dir,
            inputs.target.id,
            inputs.options,
            self.runner,
            self.config.sqlcipher_470_or_later,
            self.logger,
        )

        android_mk = write_script(
            source_dir,
            ANDROID_MK,
            render_android_mk(
                REQUIRED_CFLAGS + list(inputs.options),
                forward_slash(include_dir),
                forward_slash(lib_dir),
                legacy_linker=not ndk_r22_or_later(ndk_version),
            ),
        )
        app_mk = write_script(
            source_dir,
            APPLICATION_MK,
            render_application_mk(self.application_variables(inputs, android_mk)),
        )

        ndk_options = [
            "V=1",
            "NDK_DEBUG=0",
            f"NDK_APPLICATION_MK={forward_slash(app_mk)}",
            f"NDK_PROJECT_PATH={forward_slash(source_dir)}",
            "all",
        ]
        self.logger.info(f"ndk-build compiler options: {options_string(inputs.options)}")

        if self.host is HostOs.WINDOWS:
            ndk_build = Path(ndk_root) / "ndk-build.cmd"
            return self.runner.run_batch(
                ndk_build, source_dir, ndk_options, description="ndk-build"
            )

        script = write_script(
            source_dir,
            self.script_name(inputs.target),
            render_ndk_script(
                str(ndk_root),
                ndk_bin_path(ndk_root, self.host, inputs.target),
                [f"{ndk_root}/ndk-build"] + ndk_options,
            ),
        )
        return self.runner.run_shell(script, source_dir)

    def collection_rules(self, inputs: BuildInputs) -> List[CollectionRule]:
        return [
            CollectionRule(
                subdirectory=f"libs/{android_abi(inputs.target)}", patterns=("*.so",)
            ),
            CollectionRule(patterns=(defaults.MODULE_HEADER,)),
        ]
