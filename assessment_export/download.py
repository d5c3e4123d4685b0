"""
Download sinks for finished reports.

A download is handed over in two steps, mirroring how a browser download
works: trigger_download() stages the payload, release() hands it to the user
and frees the staging resources.
"""

import logging
from pathlib import Path
from typing import Protocol

from assessment_export.util.files import ensure_dir

logger = logging.getLogger(__name__)


class Download(Protocol):
    """Handle for a triggered download."""

    filename: str

    def release(self) -> None: ...

    def discard(self) -> None: ...


class Downloader(Protocol):
    """Anything that can deliver a finished report to the user."""

    async def trigger_download(self, payload: bytes, filename: str, media_type: str) -> Download:
        ...


class FileDownload:
    """A download staged next to its final location."""

    def __init__(self, filename: str, staging_path: Path, final_path: Path):
        self.filename = filename
        self.staging_path = staging_path
        self.final_path = final_path
        self.released = False

    def release(self) -> None:
        """Move the staged file into place. Releasing twice is a no-op."""
        if self.released:
            return
        try:
            self.staging_path.replace(self.final_path)
        except OSError:
            self.discard()
            raise
        self.released = True
        logger.info(f"Saved {self.final_path}")

    def discard(self) -> None:
        """Drop the staged file without delivering it."""
        if self.released:
            return
        self.staging_path.unlink(missing_ok=True)
        logger.debug(f"Discarded staged download {self.staging_path}")


class DirectoryDownloader:
    """
    Saves downloads into a local directory.

    Filenames are reduced to their last path component so a report title can
    never write outside the target directory.

    Example:
        >>> downloader = DirectoryDownloader(Path("reports"))
        >>> download = await downloader.trigger_download(b"...", "r.html", "text/html")
        >>> download.release()
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.downloads: list[FileDownload] = []

    async def trigger_download(
        self, payload: bytes, filename: str, media_type: str
    ) -> FileDownload:
        target_dir = ensure_dir(self.directory)
        name = Path(filename).name
        final_path = target_dir / name
        staging_path = target_dir / f".{name}.part"

        staging_path.write_bytes(payload)
        logger.debug(f"Staged {media_type} download {staging_path} ({len(payload)} bytes)")

        download = FileDownload(name, staging_path, final_path)
        self.downloads.append(download)
        return download
