"""Page-granular access to a single database file."""

from __future__ import annotations

import logging
import os
from typing import Union

PAGE_SIZE = 4096

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class StorageError(Exception):
    """Raised when the database file cannot be read or written as asked."""


class DiskManager:
    """Reads and writes fixed-size pages of one database file.

    A file that does not exist yet is created holding a single zeroed page.
    """

    def __init__(self, filename: PathLike) -> None:
        self.filename = os.fspath(filename)
        try:
            self._file = open(self.filename, "r+b")
        except FileNotFoundError:
            log.debug("creating new database file %s", self.filename)
            with open(self.filename, "wb") as fresh:
                fresh.write(bytes(PAGE_SIZE))
            self._file = open(self.filename, "r+b")

    def write_page(self, page_id: int, data: bytes) -> None:
        """Write exactly one page of data at ``page_id`` and flush it."""
        if len(data) != PAGE_SIZE:
            raise ValueError(f"page data must be {PAGE_SIZE} bytes, got {len(data)}")
        if page_id < 0:
            raise StorageError(f"cannot seek to page {page_id}")
        try:
            self._file.seek(page_id * PAGE_SIZE)
            self._file.write(bytes(data))
            self._file.flush()
        except OSError as exc:
            raise StorageError(f"write failed for page {page_id}") from exc
        log.debug("page %d written", page_id)

    def read_page(self, page_id: int) -> bytes:
        """Return the contents of page ``page_id``.

        Raises StorageError when the page lies outside the file.
        """
        if page_id < 0:
            raise StorageError(f"cannot seek to page {page_id}")
        try:
            self._file.seek(page_id * PAGE_SIZE)
            page = self._file.read(PAGE_SIZE)
        except (OSError, ValueError) as exc:
            raise StorageError(f"read failed for page {page_id}") from exc
        if len(page) < PAGE_SIZE:
            raise StorageError(f"could not read full page {page_id}")
        return page

    def flush(self) -> None:
        """Push buffered writes to the operating system."""
        self._file.flush()

    def num_pages(self) -> int:
        """Number of whole pages currently in the file."""
        try:
            size = self._file.seek(0, os.SEEK_END)
        except OSError as exc:
            raise StorageError("failed to get file size") from exc
        return size // PAGE_SIZE

    def allocate_page(self) -> int:
        """Append a zeroed page and return its id."""
        page_id = self.num_pages()
        self.write_page(page_id, bytes(PAGE_SIZE))
        log.debug("allocated page %d", page_id)
        return page_id

    def close(self) -> None:
        """Flush and close the file; calling it again does nothing."""
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def __enter__(self) -> "DiskManager":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()