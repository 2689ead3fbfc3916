"""Default settings for SQLCipher and OpenSSL builds.

Option lists here are ordered; merging keeps that order.
"""

from typing import Dict, List

# SQLCipher
SQLCIPHER_GIT_URI = "https://github.com/sqlcipher/sqlcipher"
SQLCIPHER_VERSION = "4.5.0"
SQLCIPHER_SRC_DIR = "srcSqlCipher"
TARGETS_DIR = "sqlCipherTargets"
MODULE_NAME = "sqlite3"
MODULE_HEADER = f"{MODULE_NAME}.h"
AMALGAMATION = f"{MODULE_NAME}.c"
SQLCIPHER_MARKER = "configure"

# The configure script forces these settings itself, so specifying them causes warnings
FORCED_OPTIONS: List[str] = ["SQLITE_THREADSAFE"]

REQUIRED_OPTIONS: List[str] = ["-DSQLITE_HAS_CODEC", "-DSQLCIPHER_CRYPTO_OPENSSL"]

DEFAULT_COMPILER_OPTIONS: List[str] = REQUIRED_OPTIONS + [
    "-DNDEBUG=1",
    "-DSQLITE_OMIT_DEPRECATED",
    "-DSQLITE_OMIT_TRACE",
    "-DSQLITE_OMIT_TCL_VARIABLE",
    "-DSQLITE_OMIT_PROGRESS_CALLBACK",
    "-DSQLITE_DEFAULT_MEMSTATUS=0",
    "-DSQLITE_DEFAULT_WAL_SYNCHRONOUS=1",
    "-DSQLITE_OMIT_SHARED_CACHE",
    "-DSQLITE_ENABLE_COLUMN_METADATA",
    "-DSQLITE_MAX_EXPR_DEPTH=0",
    "-DSQLITE_DQS=0",
    "-DSQLITE_DEFAULT_FOREIGN_KEYS=1",
    "-DSQLITE_ENABLE_RTREE",
    "-DSQLITE_ENABLE_STAT3",
    "-DSQLITE_ENABLE_STAT4",
    "-DSQLITE_ENABLE_FTS3_PARENTHESIS",
    "-DSQLITE_ENABLE_FTS4",
    "-DSQLITE_ENABLE_FTS5",
    "-DSQLITE_INTROSPECTION_PRAGMAS",
]

ANDROID_COMPILER_OPTIONS: List[str] = [
    "-DSQLITE_SOUNDEX",
    "-DHAVE_USLEEP=1",
    "-DSQLITE_MAX_VARIABLE_NUMBER=99999",
    "-DSQLITE_TEMP_STORE=3",
    "-DSQLITE_DEFAULT_JOURNAL_SIZE_LIMIT=1048576",
    "-DSQLITE_ENABLE_MEMORY_MANAGEMENT=1",
    "-DSQLITE_ENABLE_UNLOCK_NOTIFY",
    "-DSQLITE_ENABLE_DBSTAT_VTAB",
    "-DSQLITE_OMIT_AUTORESET",
    "-DSQLITE_OMIT_BUILTIN_TEST",
    "-DSQLITE_OMIT_LOAD_EXTENSION",
]

APPLE_COMPILER_OPTIONS: List[str] = [
    "-fno-common",
    "-DSQLITE_ENABLE_API_ARMOR",
    "-DSQLITE_ENABLE_UPDATE_DELETE_LIMIT",
    "-DSQLITE_OMIT_AUTORESET",
    "-DSQLITE_OMIT_BUILTIN_TEST",
    "-DSQLITE_OMIT_LOAD_EXTENSION",
    "-DSQLITE_SYSTEM_MALLOC",
    "-DSQLITE_THREADSAFE=2",
    "-DSQLITE_OS_UNIX=1",
]

# Avoids a warning from a SQLite work-around for macs with NFS home drives
MACOS_COMPILER_OPTIONS: List[str] = APPLE_COMPILER_OPTIONS + [
    "-DSQLITE_ENABLE_LOCKING_STYLE=1",
]

IOS_COMPILER_OPTIONS: List[str] = APPLE_COMPILER_OPTIONS + [
    "-DSQLITE_MAX_MMAP_SIZE=0",
    "-DSQLITE_ENABLE_LOCKING_STYLE=0",
    "-DSQLITE_TEMP_STORE=3",
    "-fembed-bitcode",
    "-Wno-#warnings",
]

# OpenSSL
OPENSSL_GIT_URI = "https://github.com/openssl/openssl"
OPENSSL_TAG = "openssl-3.0.1"
OPENSSL_SRC_DIR = "srcOpenssl"
OPENSSL_MARKER = "Configure"

OPENSSL_CONFIGURE_OPTIONS: List[str] = ["no-asm", "no-weak-ssl-ciphers"]

OPENSSL_ANDROID_OPTIONS: List[str] = ["-fPIC", "-fstack-protector-all"]

OPENSSL_STATIC_OPTIONS: List[str] = ["no-dso", "no-async", "no-shared"]

# Drops the parts of OpenSSL SQLCipher never touches
OPENSSL_SMALL_CONFIGURE_OPTIONS: List[str] = [
    "no-asm",
    "no-idea", "no-camellia",
    "no-seed", "no-bf", "no-cast", "no-rc2", "no-rc4", "no-rc5", "no-md2",
    "no-md4", "no-ecdh", "no-sock", "no-ssl3",
    "no-dsa", "no-dh", "no-ec", "no-ecdsa", "no-tls1",
    "no-rfc3779", "no-whirlpool", "no-srp",
    "no-mdc2", "no-engine", "no-srtp",
]

OPENSSL_TARGET_OPTIONS: Dict[str, List[str]] = {
    "androidArm64": OPENSSL_ANDROID_OPTIONS,
    "androidX64": OPENSSL_ANDROID_OPTIONS,
    "linuxX64": OPENSSL_STATIC_OPTIONS,
    "linuxArm64": OPENSSL_STATIC_OPTIONS,
    "iosArm64": OPENSSL_STATIC_OPTIONS,
    "iosX64": OPENSSL_STATIC_OPTIONS,
    "macosX64": OPENSSL_STATIC_OPTIONS,
    "macosArm64": OPENSSL_STATIC_OPTIONS,
}

# Toolchains
VISUAL_STUDIO_INSTALL = "C:\\Program Files (x86)\\Microsoft Visual Studio\\2019\\Community\\VC\\"
VISUAL_STUDIO_ENV_FILE = "Auxiliary\\Build\\vcvars64.bat"
WINDOWS_SDK_INSTALL = "C:\\Program Files (x86)\\Windows Kits\\10"
WINDOWS_SDK_LIB_VERSION = "10.0.18362.0"
ANDROID_NDK_VERSION = "21.3.6528147"
ANDROID_MINIMUM_SDK = 23
APPLE_PLATFORMS_LOCATION = "/Applications/Xcode.app/Contents/Developer"
APPLE_SDK_VERSION_MINIMUM = "14"

# Suggested per-target overrides, applied when [sqlcipher] platform_options is on
PLATFORM_COMPILER_OPTIONS: Dict[str, List[str]] = {
    "androidArm64": ANDROID_COMPILER_OPTIONS,
    "androidX64": ANDROID_COMPILER_OPTIONS,
    "iosX64": IOS_COMPILER_OPTIONS,
    "iosArm64": IOS_COMPILER_OPTIONS,
    "macosX64": MACOS_COMPILER_OPTIONS,
    "macosArm64": MACOS_COMPILER_OPTIONS,
}
