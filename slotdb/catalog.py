"""Table schemas and the catalog that keeps them on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from slotdb.records import Record, RecordManager, iter_records

log = logging.getLogger(__name__)


class TableNotFoundError(LookupError):
    """Raised when a table is not in the catalog."""


@dataclass
class TableSchema:
    """Name and ordered column names of one table."""

    table_name: str
    columns: List[str] = field(default_factory=list)

    def serialize(self) -> str:
        """Render as ``name|col1,col2,...``."""
        return f"{self.table_name}|{','.join(self.columns)}"


def _split_fields(text: str, separator: str) -> List[str]:
    parts = text.split(separator)
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def parse_schema(record_str: str) -> TableSchema:
    """Build a TableSchema from its serialized form.

    Raises ValueError when the table-name separator is missing.
    """
    name, sep, cols = record_str.partition("|")
    if not sep:
        raise ValueError(f"invalid schema record format: {record_str!r}")
    return TableSchema(name, _split_fields(cols, ","))


class CatalogManager:
    """Keeps table schemas in memory, persisted as records on disk."""

    def __init__(self, record_manager: RecordManager) -> None:
        self._records = record_manager
        self._schemas: Dict[str, TableSchema] = {}
        self._load()

    def _load(self) -> None:
        for record in iter_records(self._records.disk):
            try:
                schema = parse_schema(record.text())
            except ValueError as exc:
                log.debug("skipping record while loading catalog: %s", exc)
                continue
            self._schemas[schema.table_name] = schema
        log.debug("loaded %d table schemas", len(self._schemas))

    def create_table(self, table_name: str, columns: List[str]) -> bool:
        """Create a table; return False if one of that name already exists."""
        if table_name in self._schemas:
            log.debug("table %r already exists", table_name)
            return False
        schema = TableSchema(table_name, list(columns))
        self._records.insert_record(Record(schema.serialize()))
        self._schemas[table_name] = schema
        return True

    def drop_table(self, table_name: str) -> bool:
        """Forget a table; return False if it does not exist.

        The stored schema record is left on disk.
        """
        if table_name not in self._schemas:
            log.debug("table %r does not exist", table_name)
            return False
        del self._schemas[table_name]
        return True

    def get_schema(self, table_name: str) -> TableSchema:
        """Return a copy of the schema of ``table_name``."""
        try:
            schema = self._schemas[table_name]
        except KeyError:
            raise TableNotFoundError(f"table {table_name!r} not found in catalog") from None
        return TableSchema(schema.table_name, list(schema.columns))

    def list_tables(self) -> List[str]:
        """Names of all known tables."""
        return list(self._schemas)