"""File operations under the served directory."""

import os
import stat
from logging import Logger
from pathlib import Path
from typing import BinaryIO

FILE_MODE = 0o644


class FileManager:
    """
    Opens and writes files relative to a base directory.

    Filenames are joined onto the base directory as given. No traversal
    check is made, so an argument such as ".." resolves outside the base.
    """

    def __init__(self, base_directory: str, logger: Logger):
        """
        Initialize FileManager with a base directory.

        Args:
            base_directory: Directory that file names are resolved against
            logger: Logger instance for debug/error messages

        Raises:
            ValueError: If base_directory doesn't exist or isn't a directory
        """
        self.base_dir = Path(base_directory)
        self.logger = logger

        if not self.base_dir.exists():
            raise ValueError(f"Base directory does not exist: {base_directory}")
        if not self.base_dir.is_dir():
            raise ValueError(f"Base directory is not a directory: {base_directory}")

    def path_for(self, filename: str) -> Path:
        return self.base_dir / filename

    def open_file(self, filename: str) -> tuple[BinaryIO, int]:
        """
        Open a file for binary reading.

        Args:
            filename: File name relative to the base directory

        Returns:
            Tuple of (open file, size in bytes); the caller closes the file

        Raises:
            FileNotFoundError: If the file doesn't exist
            IsADirectoryError: If the path names a directory
            OSError: If the file cannot be opened or inspected
        """
        file_path = self.path_for(filename)
        self.logger.debug(f"Opening file: {file_path}")
        file = open(file_path, "rb")
        try:
            file_stat = os.fstat(file.fileno())
            if not stat.S_ISREG(file_stat.st_mode):
                raise IsADirectoryError(f"Not a regular file: {filename}")
        except OSError:
            file.close()
            raise
        return file, file_stat.st_size

    def write_file(self, filename: str, content: bytes) -> None:
        """
        Write content to a file, creating or truncating it.

        Args:
            filename: File name relative to the base directory
            content: File contents as bytes

        Raises:
            OSError: If the file cannot be created or written
        """
        file_path = self.path_for(filename)
        self.logger.debug(f"Writing {len(content)} bytes to file: {file_path}")
        fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "wb") as file:
            file.write(content)
