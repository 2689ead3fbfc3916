"""Source management for cipherbuild.

This module handles the workspace layout and acquiring library source, by
shallow clone or by archive download.
"""

from .downloader import ArchiveDownloader, DownloadError, ExtractionError
from .git_checkout import GitCheckout
from .source_provider import (
    CloneSourceProvider,
    DownloadSourceProvider,
    SourceProvider,
    create_source_provider,
)
from .workspace import Workspace

__all__ = [
    "ArchiveDownloader",
    "CloneSourceProvider",
    "create_source_provider",
    "DownloadError",
    "DownloadSourceProvider",
    "ExtractionError",
    "GitCheckout",
    "SourceProvider",
    "Workspace",
]
