"""In-memory secondary indexes keyed by column value."""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from slotdb.catalog import CatalogManager

log = logging.getLogger(__name__)

_ColumnIndex = Dict[str, Set[int]]


class IndexManager:
    """Maps table, column and key to the record ids holding that key."""

    def __init__(self, catalog: CatalogManager) -> None:
        self._catalog = catalog
        self._indexes: Dict[str, Dict[str, _ColumnIndex]] = {}

    def _column_exists(self, table_name: str, column_name: str) -> bool:
        try:
            schema = self._catalog.get_schema(table_name)
        except LookupError as exc:
            log.debug("column check failed: %s", exc)
            return False
        return column_name in schema.columns

    def _column_index(self, table_name: str, column_name: str) -> _ColumnIndex:
        return self._indexes.setdefault(table_name, {}).setdefault(column_name, {})

    def create_index(self, table_name: str, column_name: str) -> bool:
        """Start an empty index; return False if the column does not exist."""
        if not self._column_exists(table_name, column_name):
            log.debug("cannot index missing column %r of %r", column_name, table_name)
            return False
        self._indexes.setdefault(table_name, {})[column_name] = {}
        return True

    def drop_index(self, table_name: str, column_name: str) -> bool:
        """Remove an index; return False if there was none."""
        columns = self._indexes.get(table_name)
        if columns is None or column_name not in columns:
            return False
        del columns[column_name]
        if not columns:
            del self._indexes[table_name]
        return True

    def insert_entry(self, table_name: str, column_name: str, key: str, record_id: int) -> bool:
        """Record that ``record_id`` holds ``key``; False if the column is unknown."""
        if not self._column_exists(table_name, column_name):
            return False
        self._column_index(table_name, column_name).setdefault(key, set()).add(record_id)
        return True

    def delete_entry(self, table_name: str, column_name: str, key: str, record_id: int) -> bool:
        """Drop ``record_id`` from ``key``; False if the column is unknown."""
        if not self._column_exists(table_name, column_name):
            return False
        index = self._column_index(table_name, column_name)
        ids = index.get(key)
        if ids is not None:
            ids.discard(record_id)
            if not ids:
                del index[key]
        return True

    def search(self, table_name: str, column_name: str, key: str) -> List[int]:
        """Record ids holding exactly ``key``, in ascending order."""
        if not self._column_exists(table_name, column_name):
            return []
        index = self._indexes.get(table_name, {}).get(column_name, {})
        return sorted(index.get(key, ()))

    def range_search(
        self, table_name: str, column_name: str, start_key: str, end_key: str
    ) -> List[int]:
        """Record ids whose key lies in ``[start_key, end_key]``, by key then id."""
        if not self._column_exists(table_name, column_name) or start_key > end_key:
            return []
        index = self._indexes.get(table_name, {}).get(column_name, {})
        result: List[int] = []
        for key in sorted(k for k in index if start_key <= k <= end_key):
            result.extend(sorted(index[key]))
        return result