"""fileshare-cli - Download files from cloud file shares."""

from fileshare_cli.cli import cli
from fileshare_cli.download import (
    DownloadOutcome,
    DownloadRequest,
    DownloadSession,
    DownloadStatus,
    download_file_content,
    run_download,
)
from fileshare_cli.resolve import ByDirectory, ByFile, ByShare, ByShareName

__all__ = [
    "ByDirectory",
    "ByFile",
    "ByShare",
    "ByShareName",
    "DownloadOutcome",
    "DownloadRequest",
    "DownloadSession",
    "DownloadStatus",
    "cli",
    "download_file_content",
    "run_download",
]
