"""A small SQL-like front end over the table, catalog and index managers."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, TextIO

from slotdb.catalog import CatalogManager
from slotdb.disk import DiskManager, StorageError
from slotdb.index import IndexManager
from slotdb.records import RecordManager
from slotdb.tables import FIELD_SEPARATOR, TableManager

_WHITESPACE = " \t\n\r"
_RECORD_ID_PREFIX = "record_id ="
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def trim(s: str) -> str:
    """Strip spaces, tabs, newlines and carriage returns from both ends."""
    return s.strip(_WHITESPACE)


def split_fields(s: str, delimiter: str) -> List[str]:
    """Split on ``delimiter`` and trim each field.

    An empty string gives no fields, and a trailing delimiter does not
    produce a final empty field.
    """
    parts = s.split(delimiter)
    if parts[-1] == "":
        parts.pop()
    return [trim(part) for part in parts]


def _lower(s: str) -> str:
    return s.translate(_ASCII_LOWER)


def _parse_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid record id: {text!r}")
    return int(match.group(1))


def _drop_semicolon(s: str) -> str:
    return s[:-1] if s.endswith(";") else s


class QueryParser:
    """Parses query strings and runs them against the database.

    Messages go to ``self.output``, or to standard output when it is None.
    """

    def __init__(
        self, catalog: CatalogManager, tables: TableManager, indexes: IndexManager
    ) -> None:
        self.catalog = catalog
        self.tables = tables
        self.indexes = indexes
        self.output: Optional[TextIO] = None

    def _say(self, text: str) -> None:
        print(text, file=self.output if self.output is not None else sys.stdout)

    @contextmanager
    def _writing_to(self, output: Optional[TextIO]) -> Iterator[None]:
        previous = self.output
        if output is not None:
            self.output = output
        try:
            yield
        finally:
            self.output = previous

    def execute_query(self, query: str) -> bool:
        """Run one query; return False when it is rejected or fails.

        Lookups of unknown tables or records raise their errors.
        """
        lowered = _lower(query)
        handlers = (
            ("create table", self._create_table),
            ("drop table", self._drop_table),
            ("insert into", self._insert),
            ("delete from", self._delete),
            ("update", self._update),
            ("select", self._select),
        )
        for keyword, handler in handlers:
            if lowered.startswith(keyword):
                return handler(query)
        self._say("[ERROR] Unsupported or invalid query.")
        return False

    def _create_table(self, query: str) -> bool:
        pos = _lower(query).find("table")
        if pos < 0:
            self._say("[ERROR] Syntax error in CREATE TABLE.")
            return False
        after_table = trim(query[pos + 5:])
        open_paren = after_table.find("(")
        close_paren = after_table.find(")")
        if open_paren < 0 or close_paren < 0 or close_paren < open_paren:
            self._say("[ERROR] Syntax error: missing parentheses in CREATE TABLE.")
            return False
        table_name = trim(after_table[:open_paren])
        cols_str = _drop_semicolon(after_table[open_paren + 1:close_paren])
        columns = split_fields(cols_str, ",")
        if not columns:
            self._say("[ERROR] No columns specified for CREATE TABLE.")
            return False
        if self.catalog.create_table(table_name, columns):
            self._say(f"[INFO] Table '{table_name}' created.")
            return True
        self._say("[ERROR] Table creation failed. Table may already exist.")
        return False

    def _drop_table(self, query: str) -> bool:
        pos = _lower(query).find("table")
        if pos < 0:
            self._say("[ERROR] Syntax error in DROP TABLE.")
            return False
        table_name = trim(query[pos + 5:])
        if table_name.endswith(";"):
            table_name = trim(table_name[:-1])
        if self.catalog.drop_table(table_name):
            self._say(f"[INFO] Table '{table_name}' dropped.")
            return True
        self._say("[ERROR] Table drop failed. Table may not exist.")
        return False

    def _insert(self, query: str) -> bool:
        pos_into = _lower(query).find("into")
        if pos_into < 0:
            self._say("[ERROR] Syntax error in INSERT INTO.")
            return False
        after_into = trim(query[pos_into + 4:])
        pos_values = _lower(after_into).find("values")
        if pos_values < 0:
            self._say("[ERROR] Syntax error: missing VALUES clause.")
            return False

        table_and_cols = trim(after_into[:pos_values])
        column_list: List[str] = []
        open_paren = table_and_cols.find("(")
        close_paren = table_and_cols.find(")")
        if open_paren >= 0 and close_paren > open_paren:
            table_name = trim(table_and_cols[:open_paren])
            column_list = split_fields(table_and_cols[open_paren + 1:close_paren], ",")
        else:
            table_name = table_and_cols

        after_values = trim(after_into[pos_values + 6:])
        if not after_values or not after_values.startswith("(") or after_values[-1] not in ";)":
            self._say("[ERROR] Syntax error in VALUES clause.")
            return False
        after_values = _drop_semicolon(after_values)
        if after_values.startswith("(") and after_values.endswith(")"):
            after_values = after_values[1:-1]
        values = split_fields(after_values, ",")

        if column_list:
            schema = self.catalog.get_schema(table_name)
            if len(schema.columns) != len(values) or len(column_list) != len(values):
                self._say("[ERROR] Number of columns and values do not match.")
                return False
            reordered = [""] * len(schema.columns)
            for column, value in zip(column_list, values):
                if column not in schema.columns:
                    self._say(f"[ERROR] Column '{column}' not found in table '{table_name}'.")
                    return False
                reordered[schema.columns.index(column)] = value
            values = reordered

        try:
            record_id = self.tables.insert_into(table_name, values)
        except ValueError:
            self._say("[ERROR] Insert failed.")
            return False
        self._say(f"[INFO] Inserted record ID: {record_id}")
        return True

    def _record_id_from(self, where_clause: str, statement: str) -> Optional[int]:
        if not where_clause.startswith(_RECORD_ID_PREFIX):
            self._say(
                f"[ERROR] {statement} only supports WHERE record_id = <id> for now."
            )
            return None
        id_str = _drop_semicolon(trim(where_clause[len(_RECORD_ID_PREFIX):]))
        return _parse_int(id_str)

    def _delete(self, query: str) -> bool:
        pos_from = _lower(query).find("from")
        if pos_from < 0:
            self._say("[ERROR] Syntax error in DELETE.")
            return False
        after_from = trim(query[pos_from + 4:])
        pos_where = _lower(after_from).find("where")
        if pos_where < 0:
            self._say("[ERROR] DELETE requires WHERE clause.")
            return False
        table_name = trim(after_from[:pos_where])
        where_clause = trim(after_from[pos_where + 5:])
        record_id = self._record_id_from(where_clause, "DELETE")
        if record_id is None:
            return False
        self.tables.delete_from(table_name, record_id)
        self._say("[INFO] Record deleted successfully.")
        return True

    def _update(self, query: str) -> bool:
        lowered = _lower(query)
        pos_set = lowered.find("set")
        if pos_set < 0:
            self._say("[ERROR] Syntax error in UPDATE: missing SET.")
            return False
        table_name = trim(query[6:pos_set])
        pos_where = lowered.find("where")
        if pos_where < 0:
            self._say("[ERROR] UPDATE requires WHERE clause.")
            return False
        set_start = pos_set + 3
        set_clause = trim(query[set_start:pos_where] if pos_where >= set_start else query[set_start:])
        where_clause = trim(query[pos_where + 5:])

        record_id = self._record_id_from(where_clause, "UPDATE")
        if record_id is None:
            return False

        assignments = split_fields(set_clause, ",")
        if not assignments:
            self._say("[ERROR] No assignments in SET clause.")
            return False

        schema = self.catalog.get_schema(table_name)
        if not schema.columns:
            self._say(f"[ERROR] Table '{table_name}' does not exist.")
            return False

        current = split_fields(self.tables.select(table_name, record_id).text(), FIELD_SEPARATOR)
        if not current:
            self._say(f"[ERROR] Record ID {record_id} not found.")
            return False
        current.extend([""] * (len(schema.columns) - len(current)))

        for assignment in assignments:
            column, eq, value = assignment.partition("=")
            if not eq:
                self._say(f"[ERROR] Invalid assignment: {assignment}")
                return False
            column, value = trim(column), trim(value)
            if column not in schema.columns:
                self._say(f"[ERROR] Column '{column}' not found in table '{table_name}'.")
                return False
            current[schema.columns.index(column)] = value

        try:
            self.tables.update(table_name, record_id, current)
        except ValueError:
            self._say("[ERROR] Update failed.")
            return False
        self._say("[INFO] Record updated successfully.")
        return True

    def _print_row(self, fields: Sequence[str]) -> None:
        self._say("".join(f"{value}\t" for value in fields))

    def _select(self, query: str) -> bool:
        pos_from = _lower(query).find("from")
        if pos_from < 0:
            self._say("[ERROR] Syntax error in SELECT: missing FROM.")
            return False
        after_from = trim(query[pos_from + 4:])
        pos_where = _lower(after_from).find("where")

        if pos_where < 0:
            table_name = trim(_drop_semicolon(after_from))
            records = self.tables.scan(table_name)
            if not records:
                self._say(f"[INFO] No records found in '{table_name}'.")
                return True
            schema = self.catalog.get_schema(table_name)
            self._print_row(schema.columns)
            for record in records:
                self._print_row(split_fields(record.text(), FIELD_SEPARATOR))
            return True

        table_name = trim(after_from[:pos_where])
        where_clause = _drop_semicolon(trim(after_from[pos_where + 5:]))
        record_id = self._record_id_from(where_clause, "SELECT")
        if record_id is None:
            return False
        row = split_fields(self.tables.select(table_name, record_id).text(), FIELD_SEPARATOR)
        if not row:
            self._say(f"[INFO] No record found with ID {record_id}")
            return True
        schema = self.catalog.get_schema(table_name)
        self._print_row(schema.columns)
        self._print_row(row)
        return True

    def run_interactive(
        self, input_stream: Optional[TextIO] = None, output: Optional[TextIO] = None
    ) -> None:
        """Read queries line by line until ``exit``, ``quit`` or end of input."""
        source = input_stream if input_stream is not None else sys.stdin
        with self._writing_to(output):
            self._say("Enter SQL queries (type 'exit' to quit):")
            while True:
                target = self.output if self.output is not None else sys.stdout
                target.write("SQL> ")
                target.flush()
                line = source.readline()
                if not line:
                    break
                query = line.rstrip("\n")
                if query in ("exit", "quit"):
                    self._say("Exiting interactive mode.")
                    break
                if not query:
                    continue
                try:
                    success = self.execute_query(query)
                except (LookupError, ValueError, StorageError) as exc:
                    self._say(f"[ERROR] {exc}")
                    success = False
                if not success:
                    self._say("[ERROR] Failed to execute query.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Open a database file and start the interactive prompt."""
    arg_parser = argparse.ArgumentParser(description="Interactive slotted-page database.")
    arg_parser.add_argument("database", nargs="?", default="database.db")
    arg_parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    args = arg_parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    with DiskManager(args.database) as disk:
        records = RecordManager(disk)
        catalog = CatalogManager(records)
        indexes = IndexManager(catalog)
        tables = TableManager(catalog, records, indexes)
        QueryParser(catalog, tables, indexes).run_interactive()
    return 0