"""Slotted-page record storage on top of a DiskManager."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

from slotdb.disk import PAGE_SIZE, DiskManager, StorageError

HEADER_SIZE = 4  # slot count and free offset, two bytes each
SLOT_SIZE = 4  # record offset and record size, two bytes each
INVALID_SLOT = 0xFFFF
MIN_RECORD_SIZE = 4
MAX_SLOTS = (PAGE_SIZE - HEADER_SIZE) // SLOT_SIZE

_PAIR = struct.Struct("<HH")

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """Raw bytes of one stored record; built from bytes or text."""

    data: bytes

    def __post_init__(self) -> None:
        value = self.data
        if isinstance(value, str):
            value = value.encode("utf-8")
        object.__setattr__(self, "data", bytes(value))

    def text(self) -> str:
        """The record's bytes decoded as text."""
        return self.data.decode("utf-8", errors="replace")


def encode_record_id(page_id: int, slot_id: int) -> int:
    """Pack a page id and slot id into a single record id."""
    return (page_id << 16) | slot_id


def decode_record_id(record_id: int) -> Tuple[int, int]:
    """Split a record id into ``(page_id, slot_id)``."""
    return record_id >> 16, record_id & 0xFFFF


def _header(page: bytes) -> Tuple[int, int]:
    return _PAIR.unpack_from(page, 0)


def _slot_position(slot_id: int) -> int:
    return HEADER_SIZE + slot_id * SLOT_SIZE


def _slot(page: bytes, slot_id: int) -> Tuple[int, int]:
    return _PAIR.unpack_from(page, _slot_position(slot_id))


def _slot_in_page(slot_id: int) -> bool:
    return 0 <= slot_id and _slot_position(slot_id + 1) <= PAGE_SIZE


def iter_records(disk: DiskManager) -> Iterator[Record]:
    """Yield every live record in the file, page by page, slot by slot."""
    page_id = 0
    while True:
        try:
            page = disk.read_page(page_id)
        except StorageError:
            return
        slot_count, _ = _header(page)
        for slot_id in range(min(slot_count, MAX_SLOTS)):
            offset, size = _slot(page, slot_id)
            if offset != INVALID_SLOT and size > 0:
                yield Record(page[offset:offset + size])
        page_id += 1


class RecordManager:
    """Inserts, reads, updates and deletes records in slotted pages."""

    def __init__(self, disk: DiskManager) -> None:
        self.disk = disk

    def _find_free_page(self) -> int:
        page_id = 0
        while True:
            try:
                page = self.disk.read_page(page_id)
            except StorageError:
                page_id = self.disk.allocate_page()
                fresh = bytearray(PAGE_SIZE)
                _PAIR.pack_into(fresh, 0, 0, PAGE_SIZE)
                self.disk.write_page(page_id, fresh)
                log.debug("initialised new page %d", page_id)
                return page_id
            slot_count, free_offset = _header(page)
            available = free_offset - _slot_position(slot_count)
            if available >= MIN_RECORD_SIZE + SLOT_SIZE:
                return page_id
            page_id += 1

    def insert_record(self, record: Record) -> int:
        """Store ``record`` and return its record id."""
        page_id = self._find_free_page()
        page = bytearray(self.disk.read_page(page_id))
        slot_count, free_offset = _header(page)
        size = len(record.data)
        available = free_offset - _slot_position(slot_count)
        if available < size + SLOT_SIZE:
            raise StorageError(
                f"page {page_id} does not have enough space for record of size {size}"
            )
        free_offset -= size
        page[free_offset:free_offset + size] = record.data
        _PAIR.pack_into(page, _slot_position(slot_count), free_offset, size)
        slot_count += 1
        _PAIR.pack_into(page, 0, slot_count, free_offset)
        self.disk.write_page(page_id, page)
        log.debug("record inserted at page %d slot %d", page_id, slot_count - 1)
        return encode_record_id(page_id, slot_count - 1)

    def get_record(self, record_id: int) -> Record:
        """Return the record stored under ``record_id``."""
        page_id, slot_id = decode_record_id(record_id)
        page = self.disk.read_page(page_id)
        if not _slot_in_page(slot_id):
            raise StorageError(f"slot {slot_id} out of bounds in page {page_id}")
        offset, size = _slot(page, slot_id)
        if offset == INVALID_SLOT or size == 0 or offset + size > PAGE_SIZE:
            raise StorageError(
                f"record not found or invalid range at page {page_id}, slot {slot_id}"
            )
        return Record(page[offset:offset + size])

    def delete_record(self, record_id: int) -> None:
        """Mark the slot of ``record_id`` as free."""
        page_id, slot_id = decode_record_id(record_id)
        page = bytearray(self.disk.read_page(page_id))
        if not _slot_in_page(slot_id):
            raise StorageError(f"slot {slot_id} out of bounds in page {page_id}")
        offset, size = _slot(page, slot_id)
        if offset == INVALID_SLOT or size == 0:
            log.warning(
                "record at page %d, slot %d is already deleted or invalid",
                page_id,
                slot_id,
            )
        _PAIR.pack_into(page, _slot_position(slot_id), INVALID_SLOT, 0)
        self.disk.write_page(page_id, page)

    def update_record(self, record_id: int, record: Record) -> int:
        """Replace a record and return its id, which changes if it had to move."""
        page_id, slot_id = decode_record_id(record_id)
        page = bytearray(self.disk.read_page(page_id))
        if not _slot_in_page(slot_id):
            raise StorageError(f"slot {slot_id} out of bounds in page {page_id}")
        offset, size = _slot(page, slot_id)
        if offset == INVALID_SLOT or size == 0:
            raise StorageError("record not found or deleted")
        new_size = len(record.data)
        if new_size <= size:
            page[offset:offset + new_size] = record.data
            _PAIR.pack_into(page, _slot_position(slot_id), offset, new_size)
            self.disk.write_page(page_id, page)
            return record_id
        self.delete_record(record_id)
        return self.insert_record(record)