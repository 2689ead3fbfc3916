"""SQLite amalgamation pre-step.

Android and Apple builds compile a single translation unit, sqlite3.c, which
SQLCipher's own configure and make produce from the multi-file source. It is
built once per compile directory and reused afterwards.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..config import defaults
from ..config.options import options_string
from .executor import ScriptRunner, write_script

AMALGAMATION_SCRIPT = "sqlite-amalgamation.sh"

# configure --build triples; other targets use configure's own guess
AMALGAMATION_BUILD_TRIPLES = {
    "androidArm64": "aarch64-linux",
    "androidX64": "x86_64-linux",
    "linuxArm64": "aarch64-linux-gnu",
}


def tempstore_option(version_470_or_later: bool) -> str:
    """configure spelling of the temp store switch, renamed in SQLCipher 4.7.0."""
    return "--with-tempstore=yes" if version_470_or_later else "--enable-tempstore=yes"


def render_amalgamation_script(
    build_triple: Optional[str],
    options: Sequence[str],
    version_470_or_later: bool = False,
) -> str:
    """Script that runs configure and makes only the amalgamation.

    Args:
        build_triple: Value for --build, or None to let configure guess
        options: Compiler options passed as CFLAGS
        version_470_or_later: Whether SQLCipher is 4.7.0 or newer

    Returns:
        Script text
    """
    build = f"--build={build_triple} " if build_triple else ""
    return (
        "#!/bin/sh\n"
        + f"./configure {build}{tempstore_option(version_470_or_later)} --disable-tcl "
        + f'--with-crypto-lib=none CFLAGS="{options_string(options)}"\n'
        + f"make {defaults.AMALGAMATION}\n"
    )


def build_amalgamation(
    source_dir: Path,
    target_id: str,
    options: Sequence[str],
    runner: ScriptRunner,
    version_470_or_later: bool = False,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Create sqlite3.c in source_dir unless it already exists.

    Returns:
        True if the amalgamation was built, False if it was already present

    Raises:
        BuildExecutionError: If configure or make fails
    """
    logger = logger or logging.getLogger(__name__)
    if (source_dir / defaults.AMALGAMATION).exists():
        logger.info(f"Amalgamation {defaults.AMALGAMATION} already present in {source_dir}")
        return False

    script = write_script(
        source_dir,
        AMALGAMATION_SCRIPT,
        render_amalgamation_script(
            AMALGAMATION_BUILD_TRIPLES.get(target_id), options, version_470_or_later
        ),
    )
    logger.info(f"Creating amalgamation source {defaults.AMALGAMATION} for {target_id}")
    runner.run_shell(script, source_dir)
    logger.info(f"Amalgamation source created: {defaults.AMALGAMATION}")
    return True
