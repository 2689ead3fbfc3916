"""Build configuration model.

These dataclasses are what the engine consumes. They can be filled in code or
loaded from ``cipherbuild.ini`` by ``ini_parser.BuildConfigLoader``.
"""

from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import Callable, Dict, List, Optional

from ..catalog import BuildTarget, is_ios
from ..errors import InvalidConfigurationError
from ..host import HostOs
from . import defaults
from .options import CompilerOptionSet

WINDOWS_ARCHIVE_SUFFIX = ".zip"
POSIX_ARCHIVE_SUFFIX = ".tar.gz"
PERL_EXE = "perl.exe"
CMD_EXE = "cmd.exe"


@dataclass
class WindowsTools:
    """Locations of the Windows toolchains.

    Visual Studio builds need a Windows-oriented perl (Strawberry works) for the
    OpenSSL Configure script; mingw builds need the MSYS2 linux-oriented perl.
    """

    msys2_install_directory: str = ""
    visual_studio_install: str = defaults.VISUAL_STUDIO_INSTALL
    sdk_install: str = defaults.WINDOWS_SDK_INSTALL
    sdk_lib_version: str = defaults.WINDOWS_SDK_LIB_VERSION
    perl_install_directory: str = ""

    @property
    def mingw_install_directory(self) -> str:
        return str(PureWindowsPath(self.msys2_install_directory) / "mingw64")

    @property
    def msys2_usr_bin(self) -> str:
        return str(PureWindowsPath(self.msys2_install_directory) / "usr" / "bin")

    @property
    def msys2_perl(self) -> str:
        return str(PureWindowsPath(self.msys2_usr_bin) / PERL_EXE)

    @property
    def msys2_exec(self) -> str:
        return str(PureWindowsPath(self.msys2_usr_bin) / "env.exe")

    @property
    def mingw_bin_path(self) -> str:
        return f"{self.msys2_usr_bin};{PureWindowsPath(self.mingw_install_directory) / 'bin'}"

    @property
    def vstudio_env_file(self) -> str:
        return f"{self.visual_studio_install}{defaults.VISUAL_STUDIO_ENV_FILE}"

    @property
    def windows_perl_dir(self) -> str:
        return str(PureWindowsPath(self.perl_install_directory) / "bin")

    @property
    def windows_perl(self) -> str:
        return str(PureWindowsPath(self.windows_perl_dir) / PERL_EXE)


@dataclass
class AndroidTools:
    """Android SDK/NDK settings.

    An empty ndk_version means "use the newest NDK installed under <sdk>/ndk".
    Starting with NDK r22 the linker flags needed by ndk-build changed.
    """

    linux_sdk_location: str = ""
    windows_sdk_location: str = ""
    macos_sdk_location: str = ""
    ndk_version: str = defaults.ANDROID_NDK_VERSION
    minimum_sdk: int = defaults.ANDROID_MINIMUM_SDK

    def sdk_location(self, host: HostOs) -> str:
        if host is HostOs.WINDOWS:
            return self.windows_sdk_location
        elif host is HostOs.MAC:
            return self.macos_sdk_location
        return self.linux_sdk_location

    def ndk_dir(self, host: HostOs) -> Path:
        return Path(self.sdk_location(host)) / "ndk"

    def ndk_root(self, host: HostOs, version: Optional[str] = None) -> Path:
        return self.ndk_dir(host) / (version if version is not None else self.ndk_version)


def ndk_r22_or_later(ndk_version: str) -> bool:
    """Return True if the NDK version string is r22 or newer.

    Raises:
        InvalidConfigurationError: If the version is not major.minor.build
    """
    if not ndk_version:
        return False
    tokens = ndk_version.split(".")
    if len(tokens) != 3 or not tokens[0].isdigit():
        raise InvalidConfigurationError(
            f"Android NDK version {ndk_version} unsupported format"
        )
    return int(tokens[0]) >= 22


@dataclass
class AppleTools:
    """Xcode locations. Every Apple build needs -isysroot; iOS also a minimum version."""

    platforms_location: str = defaults.APPLE_PLATFORMS_LOCATION
    sdk_version_minimum: str = defaults.APPLE_SDK_VERSION_MINIMUM
    platforms: Dict[str, str] = field(default_factory=lambda: {
        "iosX64": "iPhoneSimulator",
        "iosArm64": "iPhoneOS",
        "macosX64": "MacOSX",
        "macosArm64": "MacOSX",
    })

    def platform(self, target: BuildTarget) -> str:
        try:
            return self.platforms[target.id]
        except KeyError:
            raise InvalidConfigurationError(
                f"No Apple platform configured for build target: {target.id}"
            ) from None

    def cross_top(self, target: BuildTarget) -> str:
        return f"{self.platforms_location}/Platforms/{self.platform(target)}.platform/Developer"

    def sysroot(self, target: BuildTarget) -> str:
        return f"{self.cross_top(target)}/SDKs/{self.platform(target)}.sdk"

    @property
    def toolchain_path(self) -> str:
        return f"{self.platforms_location}/Toolchains/XcodeDefault.xctoolchain/usr/bin"

    def options(self, target: BuildTarget) -> List[str]:
        """Compiler options every build of this target needs; not configurable."""
        options = [f"-isysroot {self.sysroot(target)}"]
        if is_ios(target):
            options.append(f"-miphoneos-version-min={self.sdk_version_minimum}")
        return options


@dataclass
class ToolsConfig:
    """Toolchain settings for every host family."""

    windows: WindowsTools = field(default_factory=WindowsTools)
    android: AndroidTools = field(default_factory=AndroidTools)
    apple: AppleTools = field(default_factory=AppleTools)
    perl: str = "perl"
    nasm: str = "nasm"


@dataclass
class OpensslSettings:
    """OpenSSL source and Configure settings."""

    git_uri: str = defaults.OPENSSL_GIT_URI
    tag: str = defaults.OPENSSL_TAG
    configure_options: List[str] = field(
        default_factory=lambda: list(defaults.OPENSSL_CONFIGURE_OPTIONS)
    )
    target_options: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in defaults.OPENSSL_TARGET_OPTIONS.items()}
    )

    @property
    def assembly_disabled(self) -> bool:
        return "no-asm" in self.configure_options

    def options_for(self, target_id: str) -> List[str]:
        """Configure options for a target; target-specific ones come first."""
        return list(self.target_options.get(target_id, [])) + list(self.configure_options)


@dataclass(frozen=True)
class SourceSpec:
    """How the source of one library is acquired."""

    use_git: bool
    git_uri: str
    tag: str
    download_url: str
    archive_file_name: str
    archive_top_dir: str


@dataclass(frozen=True)
class LibrarySpec:
    """One native library the engine builds."""

    name: str
    source: SourceSpec
    src_dir_name: str
    targets_dir_name: str
    marker: str
    archive_prefix: str


OPENSSL = "openssl"
SQLCIPHER = "sqlcipher"
LIBRARIES = (OPENSSL, SQLCIPHER)


def archive_suffix(host: HostOs) -> str:
    return WINDOWS_ARCHIVE_SUFFIX if host is HostOs.WINDOWS else POSIX_ARCHIVE_SUFFIX


@dataclass
class BuildConfig:
    """Everything the orchestrator needs for one run.

    Attributes:
        targets: Selected target ids; unsupported ones are ignored per host
        workroot: Root under which sources, scripts and artifacts live
        use_git: Clone source instead of downloading archives (whole run)
        targets_copy_to: Optional sink, target id -> directory (or None)
        copy_headers: Also copy libcrypto and public headers into the sink
        jobs: Number of targets built concurrently
    """

    targets: List[str] = field(default_factory=list)
    workroot: Path = field(default_factory=lambda: Path.cwd() / "build")
    use_git: bool = False
    build_sqlcipher: bool = True
    sqlcipher_version: str = defaults.SQLCIPHER_VERSION
    sqlcipher_git_uri: str = defaults.SQLCIPHER_GIT_URI
    compiler_options: CompilerOptionSet = field(default_factory=CompilerOptionSet)
    openssl: OpensslSettings = field(default_factory=OpensslSettings)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    targets_copy_to: Optional[Callable[[str], Optional[Path]]] = None
    copy_headers: bool = False
    jobs: int = 1

    @property
    def sqlcipher_tag(self) -> str:
        return f"v{self.sqlcipher_version}"

    @property
    def sqlcipher_470_or_later(self) -> bool:
        """SQLCipher 4.7.0 changed configure options and make targets."""
        try:
            major, minor = (int(t.strip()) for t in self.sqlcipher_version.split(".")[:2])
        except ValueError:
            raise InvalidConfigurationError(
                f"SqlCipher version {self.sqlcipher_version} unsupported format"
            ) from None
        return (major, minor) >= (4, 7)

    def validate(self) -> None:
        """Validate option sets before any target runs.

        Raises:
            InvalidConfigurationError: On invalid options or version
        """
        self.compiler_options.validate()
        _ = self.sqlcipher_470_or_later
        if self.jobs < 1:
            raise InvalidConfigurationError(f"jobs must be at least 1, got {self.jobs}")

    def library(self, name: str, host: HostOs) -> LibrarySpec:
        """Describe one library for the given host."""
        suffix = archive_suffix(host)
        if name == SQLCIPHER:
            tag = self.sqlcipher_tag
            file_name = f"{tag}{suffix}"
            return LibrarySpec(
                name=SQLCIPHER,
                source=SourceSpec(
                    use_git=self.use_git,
                    git_uri=self.sqlcipher_git_uri,
                    tag=tag,
                    download_url=f"{self.sqlcipher_git_uri}/archive/{file_name}",
                    archive_file_name=file_name,
                    archive_top_dir=f"{SQLCIPHER}-{self.sqlcipher_version}",
                ),
                src_dir_name=defaults.SQLCIPHER_SRC_DIR,
                targets_dir_name=defaults.TARGETS_DIR,
                marker=defaults.SQLCIPHER_MARKER,
                archive_prefix=tag,
            )
        elif name == OPENSSL:
            tag = self.openssl.tag
            file_name = f"{tag}{suffix}"
            return LibrarySpec(
                name=OPENSSL,
                source=SourceSpec(
                    use_git=self.use_git,
                    git_uri=self.openssl.git_uri,
                    tag=tag,
                    download_url=f"{self.openssl.git_uri}/archive/{file_name}",
                    archive_file_name=file_name,
                    archive_top_dir=f"{OPENSSL}-{tag}",
                ),
                src_dir_name=defaults.OPENSSL_SRC_DIR,
                targets_dir_name=defaults.TARGETS_DIR,
                marker=defaults.OPENSSL_MARKER,
                archive_prefix=tag,
            )
        raise InvalidConfigurationError(
            f"Unknown library: {name}. Available: {', '.join(LIBRARIES)}"
        )
