"""Row operations on tables, keeping records and indexes in step."""

from __future__ import annotations

import logging
from typing import List

from slotdb.catalog import CatalogManager
from slotdb.index import IndexManager
from slotdb.records import Record, RecordManager, iter_records

FIELD_SEPARATOR = "|"

log = logging.getLogger(__name__)


def _split_row(text: str) -> List[str]:
    parts = text.split(FIELD_SEPARATOR)
    if parts and parts[-1] == "":
        parts.pop()
    return parts


class TableManager:
    """Inserts, updates, deletes and reads rows of catalogued tables."""

    def __init__(
        self, catalog: CatalogManager, records: RecordManager, indexes: IndexManager
    ) -> None:
        self._catalog = catalog
        self._records = records
        self._indexes = indexes

    def insert_into(self, table_name: str, values: List[str]) -> int:
        """Store a row and return its record id.

        Raises ValueError when the number of values does not match the schema.
        """
        schema = self._catalog.get_schema(table_name)
        if len(values) != len(schema.columns):
            raise ValueError(
                f"expected {len(schema.columns)} values for {table_name!r}, got {len(values)}"
            )
        record_id = self._records.insert_record(Record(FIELD_SEPARATOR.join(values)))
        for column, value in zip(schema.columns, values):
            self._indexes.insert_entry(table_name, column, value, record_id)
        log.debug("inserted record %d into %r", record_id, table_name)
        return record_id

    def delete_from(self, table_name: str, record_id: int) -> None:
        """Delete a row and its index entries."""
        old_values = _split_row(self._records.get_record(record_id).text())
        schema = self._catalog.get_schema(table_name)
        for column, value in zip(schema.columns, old_values):
            self._indexes.delete_entry(table_name, column, value, record_id)
        self._records.delete_record(record_id)

    def update(self, table_name: str, record_id: int, new_values: List[str]) -> int:
        """Replace a row and return its record id, which changes if it moved.

        Raises ValueError when the number of values does not match the schema.
        """
        schema = self._catalog.get_schema(table_name)
        if len(new_values) != len(schema.columns):
            raise ValueError(
                f"expected {len(schema.columns)} values for {table_name!r}, got {len(new_values)}"
            )
        old_values = _split_row(self._records.get_record(record_id).text())
        for column, value in zip(schema.columns, old_values):
            self._indexes.delete_entry(table_name, column, value, record_id)
        new_id = self._records.update_record(
            record_id, Record(FIELD_SEPARATOR.join(new_values))
        )
        for column, value in zip(schema.columns, new_values):
            self._indexes.insert_entry(table_name, column, value, new_id)
        return new_id

    def select(self, table_name: str, record_id: int) -> Record:
        """Return the row stored under ``record_id``."""
        log.debug("select from %r record %d", table_name, record_id)
        return self._records.get_record(record_id)

    def scan(self, table_name: str) -> List[Record]:
        """Return every live record in the database file."""
        records = list(iter_records(self._records.disk))
        log.debug("scanned %d records for %r", len(records), table_name)
        return records