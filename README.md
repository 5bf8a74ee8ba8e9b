# slotdb

slotdb is a small database engine that stores rows in fixed-size pages of a
single file. Each 4096-byte page uses a slotted layout. A header holds the slot
count and the free-space offset. The slot directory grows from the front of the
page and the record bytes grow from the back. On top of the page store sit a
table catalog, per-column in-memory indexes, a table layer and a minimal SQL
shell.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## The SQL shell

```
slotdb
```

This starts an interactive session on `database.db` in the current directory.
The file is created, holding one zeroed page, if it does not exist. To use a
different file, give its path:

```
slotdb path/to/other.db
```

Add `-v` or `--verbose` to show debug logging. Type `exit` or `quit` to leave
the shell. The session also ends at end of input.

The shell understands a deliberately small dialect. Keywords are
case-insensitive:

```
CREATE TABLE users (id, name, city);
INSERT INTO users VALUES (1, alice, paris);
INSERT INTO users (name, id, city) VALUES (bob, 2, rome);
SELECT * FROM users;
SELECT * FROM users WHERE record_id = 1;
UPDATE users SET city = berlin WHERE record_id = 1;
DELETE FROM users WHERE record_id = 1;
DROP TABLE users;
```

Rows are addressed by their record id. The record id encodes the page number in
the high 16 bits and the slot number in the low 16 bits. The shell prints it
after every insert.

`WHERE` clauses accept only `record_id = <id>`, written with a space before
the `=`. Values are stored as text, joined with `|`. Rows are printed with a tab
after each field.

When a query is rejected, the shell prints an `[ERROR]` line and carries on.
It does the same when a query refers to an unknown table or record.

## Using it from Python

```python
from slotdb.disk import DiskManager
from slotdb.records import RecordManager
from slotdb.catalog import CatalogManager
from slotdb.index import IndexManager
from slotdb.tables import TableManager

with DiskManager("example.db") as disk:
    records = RecordManager(disk)
    catalog = CatalogManager(records)
    indexes = IndexManager(catalog)
    tables = TableManager(catalog, records, indexes)

    catalog.create_table("users", ["id", "name"])
    rid = tables.insert_into("users", ["1", "alice"])
    print(tables.select("users", rid).text())        # 1|alice
    print(indexes.search("users", "name", "alice"))   # [rid]
```

Each module provides one layer:

- `slotdb.disk.DiskManager` reads and writes whole pages of the file. It raises
  `StorageError` for pages outside the file. It is a context manager and
  closes the file on exit.
- `slotdb.records.RecordManager` stores `Record` byte strings in slotted pages
  and returns record ids. Its `update_record` returns a new id when the larger
  record has to move. `iter_records(disk)` yields every live record in page
  and slot order. `encode_record_id` and `decode_record_id` convert between
  record ids and `(page, slot)` pairs.
- `slotdb.catalog.CatalogManager` keeps `TableSchema` entries. It persists them
  as records and reloads them when it is created. `get_schema` raises
  `TableNotFoundError` for unknown tables.
- `slotdb.index.IndexManager` maps table, column and value to record ids. It
  provides `search` for exact matches and `range_search` for inclusive key
  ranges.
- `slotdb.tables.TableManager` inserts, updates, deletes, selects and scans
  rows, and keeps the indexes in step. `insert_into` and `update` raise
  `ValueError` when the number of values does not match the schema.
- `slotdb.query.QueryParser` runs the SQL dialect above. `slotdb.query.main`
  is the shell command.

## Limitations

- Indexes live in memory only and start empty each time the database is
  opened.
- Dropping a table removes it from the catalog but leaves its rows on disk.
- A scan, including `SELECT * FROM <table>`, returns every record in the file.
  This includes other tables' rows and the catalog's own schema entries.
- There are no types, constraints, joins, transactions or concurrent access.
  The only filter is on the record id.