"""
Command-line interface for cipherbuild.

This module provides the `cipherbuild` CLI tool for building OpenSSL and
SQLCipher native libraries.
"""

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from . import __version__
from . import host as host_module
from .build.orchestrator import Orchestrator
from .catalog import TARGETS, supported_on
from .cli_utils import ErrorFormatter, PathValidator, print_results
from .config.build_config import LIBRARIES, SQLCIPHER, BuildConfig
from .config.ini_parser import load_config
from .errors import BuildFailedError, CipherBuildError, InvalidConfigurationError, UnsupportedHostError
from .log import setup_logging


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    targets: List[str] = field(default_factory=list)
    library: str = SQLCIPHER
    jobs: Optional[int] = None
    verbose: bool = False
    log_file: Optional[Path] = None


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    project_dir: Path
    targets: List[str] = field(default_factory=list)
    library: Optional[str] = None
    verbose: bool = False


def _load(project_dir: Path, targets: List[str]) -> BuildConfig:
    config = load_config(project_dir)
    if targets:
        config.targets = list(targets)
    return config


def build_command(args: BuildArgs) -> None:
    """Build the selected targets.

    Examples:
        cipherbuild build                          # Build targets from cipherbuild.ini
        cipherbuild build path/to/project          # Build a specific project
        cipherbuild build -t linuxX64 androidArm64 # Build only these targets
        cipherbuild build --library openssl        # Build OpenSSL only
        cipherbuild build -j 4 --verbose           # Four targets at a time
    """
    print(f"cipherbuild v{__version__}")
    print()

    logger = setup_logging(args.verbose, args.log_file)

    try:
        config = _load(args.project_dir, args.targets)
        if args.jobs is not None:
            config.jobs = args.jobs

        orchestrator = Orchestrator(config, logger=logger)

        if args.verbose:
            print(f"Building project: {args.project_dir}")
            print(f"Host OS: {orchestrator.host}")
            print(f"Targets: {', '.join(config.targets) or '(none)'}")
            print()

        start_time = time.time()
        result = orchestrator.build_all(args.library)
        build_time = time.time() - start_time

        print_results(result.results)
        ErrorFormatter.print_success(f"{args.library} build successful!")
        print(f"Build time: {build_time:.2f}s")
        sys.exit(0)

    except BuildFailedError as e:
        print_results(e.results)
        message = str(e)
        if args.verbose:
            for target_id, target_result in e.results.items():
                if not target_result.success and target_result.error:
                    message += f"\n\n{target_id}: {target_result.error}"
        ErrorFormatter.print_error("Build failed!", message)
        sys.exit(1)
    except (InvalidConfigurationError, UnsupportedHostError) as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except CipherBuildError as e:
        ErrorFormatter.print_error("Build failed!", str(e))
        sys.exit(1)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def clean_command(args: CleanArgs) -> None:
    """Delete artifacts, compile directories and archives of the selected targets.

    Examples:
        cipherbuild clean                          # Clean every selected target
        cipherbuild clean -t androidArm64          # Clean one target
        cipherbuild clean --library openssl        # Clean OpenSSL only
    """
    logger = setup_logging(args.verbose)

    try:
        config = _load(args.project_dir, args.targets)
        orchestrator = Orchestrator(config, logger=logger)
        removed = orchestrator.clean_all(args.library)

        if removed:
            ErrorFormatter.print_success(f"Removed {len(removed)} path(s)")
        else:
            ErrorFormatter.print_success("Nothing to clean")
        sys.exit(0)

    except (InvalidConfigurationError, UnsupportedHostError) as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def targets_command() -> None:
    """List the target catalog and which targets this host can build."""
    try:
        host = host_module.query()
    except UnsupportedHostError as e:
        ErrorFormatter.print_error("Unsupported host", str(e))
        sys.exit(1)

    print(f"Host OS: {host}")
    print()
    for target in TARGETS.values():
        marker = "*" if supported_on(target, host) else " "
        hosts = ", ".join(sorted(str(h) for h in target.hosts))
        print(f"  {marker} {target.id:<14} {target.family.value:<8} {target.description} [{hosts}]")
    print()
    print("* buildable on this host")
    sys.exit(0)


def main() -> None:
    """cipherbuild - OpenSSL and SQLCipher builds for many targets."""
    parser = argparse.ArgumentParser(
        prog="cipherbuild",
        description="cipherbuild - cross-platform OpenSSL and SQLCipher builds",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cipherbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build OpenSSL and SQLCipher for the selected targets",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory holding cipherbuild.ini (default: current directory)",
    )
    build_parser.add_argument(
        "-t",
        "--targets",
        nargs="+",
        default=[],
        help="Target ids to build (default: [build] targets from cipherbuild.ini)",
    )
    build_parser.add_argument(
        "-l",
        "--library",
        choices=LIBRARIES,
        default=SQLCIPHER,
        help="Library to build; sqlcipher builds openssl first (default: sqlcipher)",
    )
    build_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of targets built concurrently (default: [build] jobs)",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also log to this file, rotated at 10MB",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    # Clean command
    clean_parser = subparsers.add_parser(
        "clean",
        help="Delete artifacts and cached sources of the selected targets",
    )
    clean_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory holding cipherbuild.ini (default: current directory)",
    )
    clean_parser.add_argument(
        "-t",
        "--targets",
        nargs="+",
        default=[],
        help="Target ids to clean (default: [build] targets from cipherbuild.ini)",
    )
    clean_parser.add_argument(
        "-l",
        "--library",
        choices=LIBRARIES,
        default=None,
        help="Library to clean (default: both)",
    )
    clean_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Targets command
    subparsers.add_parser(
        "targets",
        help="List build targets and which this host can build",
    )

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    # Validate project directory exists
    if hasattr(parsed_args, "project_dir"):
        PathValidator.validate_project_dir(parsed_args.project_dir)

    # Execute command
    if parsed_args.command == "build":
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir,
            targets=parsed_args.targets,
            library=parsed_args.library,
            jobs=parsed_args.jobs,
            verbose=parsed_args.verbose,
            log_file=parsed_args.log_file,
        )
        build_command(build_args)
    elif parsed_args.command == "clean":
        clean_args = CleanArgs(
            project_dir=parsed_args.project_dir,
            targets=parsed_args.targets,
            library=parsed_args.library,
            verbose=parsed_args.verbose,
        )
        clean_command(clean_args)
    elif parsed_args.command == "targets":
        targets_command()


if __name__ == "__main__":
    main()
