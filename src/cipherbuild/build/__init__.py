"""
Build system components for cipherbuild.

This module provides the build system implementation including:
- Process execution and generated script handling
- Toolchain verification
- Family builders for OpenSSL and SQLCipher
- Artifact collection
- The per-target pipeline

The orchestrator lives in ``cipherbuild.build.orchestrator``; it depends on
``cipherbuild.packages``, which in turn uses the executor from this package.
"""

from .artifacts import ArtifactCollector, CollectionReport, CollectionRule
from .builder import BuildInputs, PlatformBuilder, create_builder, register_builder
from .executor import ProcessExecutor, ProcessResult, ScriptRunner, write_script
from .verifier import ToolchainReport, Verifier

__all__ = [
    "ArtifactCollector",
    "BuildInputs",
    "CollectionReport",
    "CollectionRule",
    "create_builder",
    "PlatformBuilder",
    "ProcessExecutor",
    "ProcessResult",
    "register_builder",
    "ScriptRunner",
    "ToolchainReport",
    "Verifier",
    "write_script",
]
