"""Abstract filesystem adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, Any, Iterable, Mapping, Optional

from obs_storage.storage.models import FileAttributes, StorageEntry

WriteConfig = Optional[Mapping[str, Any]]


class FilesystemAdapter(ABC):
    """
    Generic file operations implemented by every storage backend.

    ``config`` mappings accept ``visibility`` ("public" or "private") and
    ``mimetype``. Failures are reported with the "unable to" errors from
    ``obs_storage.core.errors``.
    """

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """
        Check if a file exists.

        Args:
            path: Logical path (e.g., "demo/example.txt")

        Returns:
            True if the file exists, False otherwise

        Raises:
            UnableToCheckFileExistence: If the check itself fails
        """

    @abstractmethod
    def directory_exists(self, path: str) -> bool:
        """
        Check if a directory holds at least one object.

        Raises:
            UnableToCheckDirectoryExistence: If the check itself fails
        """

    @abstractmethod
    def write(self, path: str, contents: bytes | str, config: WriteConfig = None) -> None:
        """
        Write file contents.

        Args:
            path: Logical path
            contents: File contents
            config: Optional visibility / mimetype

        Raises:
            UnableToWriteFile: If the write fails
        """

    @abstractmethod
    def write_stream(self, path: str, contents: IO, config: WriteConfig = None) -> None:
        """Write file contents from a readable file object."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """
        Read file contents.

        Raises:
            UnableToReadFile: If the file is missing or cannot be read
        """

    @abstractmethod
    def read_stream(self, path: str) -> IO[bytes]:
        """Return a readable binary file object positioned at the start."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a file. Raises UnableToDeleteFile."""

    @abstractmethod
    def delete_directory(self, path: str) -> None:
        """Delete a directory and everything below it. Raises UnableToDeleteDirectory."""

    @abstractmethod
    def create_directory(self, path: str, config: WriteConfig = None) -> None:
        """Create a directory. Raises UnableToCreateDirectory."""

    @abstractmethod
    def set_visibility(self, path: str, visibility: str) -> None:
        """Set "public" or "private" visibility. Raises UnableToSetVisibility."""

    @abstractmethod
    def visibility(self, path: str) -> FileAttributes:
        """Raises UnableToRetrieveMetadata."""

    @abstractmethod
    def mime_type(self, path: str) -> FileAttributes:
        """Raises UnableToRetrieveMetadata."""

    @abstractmethod
    def last_modified(self, path: str) -> FileAttributes:
        """Raises UnableToRetrieveMetadata."""

    @abstractmethod
    def file_size(self, path: str) -> FileAttributes:
        """Raises UnableToRetrieveMetadata."""

    @abstractmethod
    def list_contents(self, path: str, deep: bool) -> Iterable[StorageEntry]:
        """
        List files and directories below a path.

        Args:
            path: Logical directory path ("" for the root)
            deep: True to descend into subdirectories

        Returns:
            Lazy iterable of FileAttributes / DirectoryAttributes
        """

    @abstractmethod
    def move(self, source: str, destination: str, config: WriteConfig = None) -> None:
        """Raises UnableToMoveFile."""

    @abstractmethod
    def copy(self, source: str, destination: str, config: WriteConfig = None) -> None:
        """Raises UnableToCopyFile."""
