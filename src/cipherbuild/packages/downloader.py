"""Source archive downloader.

This module handles downloading tag-versioned source archives and extracting
them into a target's compile directory, stripping the archive's top-level
wrapper directory.
"""

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
from tqdm import tqdm

from ..errors import SourceAcquisitionError


class DownloadError(SourceAcquisitionError):
    """Raised when download fails."""

    pass


class ExtractionError(SourceAcquisitionError):
    """Raised when archive extraction fails."""

    pass


class ArchiveDownloader:
    """Downloads and extracts source archives with progress tracking."""

    def __init__(
        self,
        chunk_size: int = 8192,
        show_progress: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize downloader.

        Args:
            chunk_size: Size of chunks for downloading
            show_progress: Whether to show a progress bar
            logger: Logger for progress messages
        """
        self.chunk_size = chunk_size
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(__name__)

    def download(self, url: str, dest_path: Path) -> Path:
        """Download a file from a URL with a single GET.

        Args:
            url: URL to download from
            dest_path: Destination file path

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If download fails
        """
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        # Use temporary file during download
        temp_file = dest_path.with_name(dest_path.name + ".tmp")

        self.logger.info(f"Downloading {url}")
        try:
            response = requests.get(url, stream=True, timeout=30)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            progress_bar = None
            if self.show_progress and total_size > 0:
                filename = Path(urlparse(url).path).name
                progress_bar = tqdm(
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    desc=f"Downloading {filename}",
                )

            with open(temp_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        if progress_bar:
                            progress_bar.update(len(chunk))

            if progress_bar:
                progress_bar.close()

            if dest_path.exists():
                dest_path.unlink()
            temp_file.rename(dest_path)

            self.logger.info(f"Downloaded {dest_path.name}")
            return dest_path

        except requests.RequestException as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DownloadError(f"Failed to download {url}: {e}") from e

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DownloadError(f"Failed to write {dest_path}: {e}") from e

    def extract_archive(self, archive_path: Path, dest_dir: Path) -> Path:
        """Extract an archive into dest_dir without its wrapper directory.

        GitHub archives contain a single top-level directory (for example
        ``sqlcipher-4.5.0/``). Its contents are moved into ``dest_dir``. An
        archive with several top-level entries is extracted as is.

        Supports .zip, .tar.gz, .tgz, .tar.bz2 and .tar.xz.

        Args:
            archive_path: Path to the archive file
            dest_dir: Directory that receives the archive contents

        Returns:
            dest_dir

        Raises:
            ExtractionError: If extraction fails
        """
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)

        if not archive_path.exists():
            raise ExtractionError(f"Archive not found: {archive_path}")

        temp_extract = dest_dir.parent / f"temp_extract_{archive_path.name}"
        if temp_extract.exists():
            shutil.rmtree(temp_extract)
        temp_extract.mkdir(parents=True)

        self.logger.info(f"Extracting {archive_path.name} to {dest_dir}")
        try:
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zf:
                    zf.extractall(temp_extract)
            elif archive_path.name.endswith((".tar.gz", ".tgz", ".tar.bz2", ".tar.xz")):
                with tarfile.open(archive_path, "r:*") as tar:
                    if hasattr(tarfile, "data_filter"):
                        tar.extractall(temp_extract, filter="data")
                    else:
                        tar.extractall(temp_extract)
            else:
                raise ExtractionError(f"Unsupported archive format: {archive_path.name}")

            extracted_items = list(temp_extract.iterdir())
            if len(extracted_items) == 1 and extracted_items[0].is_dir():
                source_dir = extracted_items[0]
            else:
                source_dir = temp_extract

            dest_dir.mkdir(parents=True, exist_ok=True)
            for item in source_dir.iterdir():
                dest = dest_dir / item.name
                if dest.is_dir():
                    shutil.rmtree(dest)
                elif dest.exists():
                    dest.unlink()
                shutil.move(str(item), str(dest))

            return dest_dir

        except ExtractionError:
            raise
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e
        finally:
            if temp_extract.exists():
                shutil.rmtree(temp_extract, ignore_errors=True)
