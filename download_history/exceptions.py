"""
Errors raised by the download history pipeline.
"""


class DownloadHistoryError(Exception):
    """Base exception for download history operations."""


class EntityNotFound(DownloadHistoryError):
    """The plugin never appears in the revision history."""

    def __init__(self, plugin_id: str):
        super().__init__(f"Plugin '{plugin_id}' not found in any revision")
        self.plugin_id = plugin_id


class MissingInputFile(DownloadHistoryError, FileNotFoundError):
    """An expected history file does not exist."""

    def __init__(self, path):
        super().__init__(f"File '{path}' not found")
        self.path = path


class HistorySourceError(DownloadHistoryError):
    """The revision history could not be read."""


class InvalidHistoryFile(DownloadHistoryError, ValueError):
    """A history file or mapping cannot be read as a download series."""
