"""
cipherbuild.ini configuration loader.

This module parses a project's cipherbuild.ini file into a BuildConfig.

Example cipherbuild.ini:
    [build]
    targets = linuxX64 androidArm64 androidX64 vStudio64
    workroot = build
    use_git = false
    copy_to = ../shared/{target}
    copy_headers = true
    jobs = 2

    [sqlcipher]
    version = 4.5.0
    platform_options = true
    compiler_options =
        -DSQLITE_HAS_CODEC
        -DSQLCIPHER_CRYPTO_OPENSSL
        -DSQLITE_ENABLE_FTS5

    [sqlcipher.target:androidArm64]
    compiler_options = -DSQLITE_TEMP_STORE=3

    [openssl]
    tag = openssl-3.0.1
    configure_options = no-asm no-weak-ssl-ciphers
    small = false

    [tools.android]
    linux_sdk_location = /home/me/Android/Sdk
    ndk_version = 21.3.6528147

Option lists are whitespace separated and may span lines; quoting follows
shell rules. With small = true the OpenSSL algorithms SQLCipher never
uses are left out of the build.

Usage:
    config = BuildConfigLoader(Path("cipherbuild.ini")).load()
"""

import configparser
import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..errors import InvalidConfigurationError
from .build_config import (
    AndroidTools,
    AppleTools,
    BuildConfig,
    OpensslSettings,
    ToolsConfig,
    WindowsTools,
)
from .options import CompilerOptionSet
from . import defaults

CONFIG_FILE_NAME = "cipherbuild.ini"
TARGET_SECTION_PREFIX = "sqlcipher.target:"
OPENSSL_TARGET_SECTION_PREFIX = "openssl.target:"


def parse_option_list(value: str) -> List[str]:
    """Split a whitespace separated option list, honouring quotes."""
    try:
        return shlex.split(value)
    except ValueError as e:
        raise InvalidConfigurationError(f"Invalid option list '{value}': {e}") from e


class BuildConfigLoader:
    """
    Loader for cipherbuild.ini files.

    Unknown keys are ignored; missing sections fall back to the defaults in
    ``cipherbuild.config.defaults``.
    """

    def __init__(self, ini_path: Path):
        """
        Read and parse the configuration file.

        Args:
            ini_path: Path to cipherbuild.ini

        Raises:
            InvalidConfigurationError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)

        if not self.ini_path.exists():
            raise InvalidConfigurationError(f"Configuration file not found: {self.ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=None
        )
        # Target ids are camel case
        self.config.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise InvalidConfigurationError(f"Failed to parse {self.ini_path}: {e}") from e

    def _get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        if not self.config.has_section(section):
            return fallback
        value = self.config.get(section, key, fallback=fallback)
        return value.strip() if value is not None else None

    def _get_bool(self, section: str, key: str, fallback: bool) -> bool:
        if not self.config.has_section(section):
            return fallback
        try:
            return self.config.getboolean(section, key, fallback=fallback)
        except ValueError as e:
            raise InvalidConfigurationError(f"[{section}] {key}: {e}") from e

    def _get_int(self, section: str, key: str, fallback: int) -> int:
        if not self.config.has_section(section):
            return fallback
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError as e:
            raise InvalidConfigurationError(f"[{section}] {key}: {e}") from e

    def _target_lists(self, prefix: str, key: str) -> Dict[str, List[str]]:
        lists: Dict[str, List[str]] = {}
        for section in self.config.sections():
            if section.startswith(prefix):
                target_id = section[len(prefix):].strip()
                lists[target_id] = parse_option_list(self.config.get(section, key, fallback=""))
        return lists

    def _sink(self, template: Optional[str]) -> Optional[Callable[[str], Optional[Path]]]:
        if not template:
            return None
        base = self.ini_path.parent

        def sink(target_id: str) -> Optional[Path]:
            return (base / template.replace("{target}", target_id)).resolve()

        return sink

    def load_tools(self) -> ToolsConfig:
        windows = WindowsTools(
            msys2_install_directory=self._get("tools.windows", "msys2_install_directory", "") or "",
            visual_studio_install=self._get(
                "tools.windows", "visual_studio_install", defaults.VISUAL_STUDIO_INSTALL
            ) or defaults.VISUAL_STUDIO_INSTALL,
            sdk_install=self._get("tools.windows", "sdk_install", defaults.WINDOWS_SDK_INSTALL)
            or defaults.WINDOWS_SDK_INSTALL,
            sdk_lib_version=self._get(
                "tools.windows", "sdk_lib_version", defaults.WINDOWS_SDK_LIB_VERSION
            ) or defaults.WINDOWS_SDK_LIB_VERSION,
            perl_install_directory=self._get("tools.windows", "perl_install_directory", "") or "",
        )
        android = AndroidTools(
            linux_sdk_location=self._get("tools.android", "linux_sdk_location", "") or "",
            windows_sdk_location=self._get("tools.android", "windows_sdk_location", "") or "",
            macos_sdk_location=self._get("tools.android", "macos_sdk_location", "") or "",
            # An explicitly empty version asks for the newest installed NDK
            ndk_version=self._get("tools.android", "ndk_version", defaults.ANDROID_NDK_VERSION) or "",
            minimum_sdk=self._get_int("tools.android", "minimum_sdk", defaults.ANDROID_MINIMUM_SDK),
        )
        apple = AppleTools(
            platforms_location=self._get(
                "tools.apple", "platforms_location", defaults.APPLE_PLATFORMS_LOCATION
            ) or defaults.APPLE_PLATFORMS_LOCATION,
            sdk_version_minimum=self._get(
                "tools.apple", "sdk_version_minimum", defaults.APPLE_SDK_VERSION_MINIMUM
            ) or defaults.APPLE_SDK_VERSION_MINIMUM,
        )
        return ToolsConfig(
            windows=windows,
            android=android,
            apple=apple,
            perl=self._get("tools", "perl", "perl") or "perl",
            nasm=self._get("tools", "nasm", "nasm") or "nasm",
        )

    def load(self) -> BuildConfig:
        """
        Build the BuildConfig described by the file.

        Returns:
            BuildConfig with paths resolved relative to the file's directory

        Raises:
            InvalidConfigurationError: If a value cannot be parsed
        """
        targets = parse_option_list(self._get("build", "targets", "") or "")
        workroot = self.ini_path.parent / (self._get("build", "workroot", "build") or "build")

        base_options = self._get("sqlcipher", "compiler_options")
        overrides: Dict[str, List[str]] = {}
        if self._get_bool("sqlcipher", "platform_options", False):
            overrides = {k: list(v) for k, v in defaults.PLATFORM_COMPILER_OPTIONS.items()}
        for target_id, extra in self._target_lists(TARGET_SECTION_PREFIX, "compiler_options").items():
            overrides[target_id] = overrides.get(target_id, []) + extra
        compiler_options = CompilerOptionSet(
            base=parse_option_list(base_options) if base_options
            else list(defaults.DEFAULT_COMPILER_OPTIONS),
            overrides=overrides,
        )

        openssl = OpensslSettings(
            git_uri=self._get("openssl", "git_uri", defaults.OPENSSL_GIT_URI)
            or defaults.OPENSSL_GIT_URI,
            tag=self._get("openssl", "tag", defaults.OPENSSL_TAG) or defaults.OPENSSL_TAG,
        )
        configure_options = self._get("openssl", "configure_options")
        if configure_options:
            openssl.configure_options = parse_option_list(configure_options)
        if self._get_bool("openssl", "small", False):
            openssl.configure_options += [
                option for option in defaults.OPENSSL_SMALL_CONFIGURE_OPTIONS
                if option not in openssl.configure_options
            ]
        openssl.target_options.update(
            self._target_lists(OPENSSL_TARGET_SECTION_PREFIX, "configure_options")
        )

        return BuildConfig(
            targets=targets,
            workroot=workroot.resolve(),
            use_git=self._get_bool("build", "use_git", False),
            build_sqlcipher=self._get_bool("build", "build_sqlcipher", True),
            sqlcipher_version=self._get("sqlcipher", "version", defaults.SQLCIPHER_VERSION)
            or defaults.SQLCIPHER_VERSION,
            sqlcipher_git_uri=self._get("sqlcipher", "git_uri", defaults.SQLCIPHER_GIT_URI)
            or defaults.SQLCIPHER_GIT_URI,
            compiler_options=compiler_options,
            openssl=openssl,
            tools=self.load_tools(),
            targets_copy_to=self._sink(self._get("build", "copy_to")),
            copy_headers=self._get_bool("build", "copy_headers", False),
            jobs=self._get_int("build", "jobs", 1),
        )


def load_config(project_dir: Path) -> BuildConfig:
    """Load ``cipherbuild.ini`` from a project directory."""
    return BuildConfigLoader(Path(project_dir) / CONFIG_FILE_NAME).load()
