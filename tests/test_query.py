import io
import re
from types import SimpleNamespace

import pytest

from slotdb.catalog import CatalogManager, TableNotFoundError
from slotdb.disk import DiskManager, StorageError
from slotdb.index import IndexManager
from slotdb.query import QueryParser, main, split_fields, trim
from slotdb.records import RecordManager
from slotdb.tables import TableManager


@pytest.fixture
def db(tmp_path):
    with DiskManager(tmp_path / "test.db") as disk:
        records = RecordManager(disk)
        catalog = CatalogManager(records)
        indexes = IndexManager(catalog)
        tables = TableManager(catalog, records, indexes)
        parser = QueryParser(catalog, tables, indexes)
        out = io.StringIO()
        parser.output = out
        yield SimpleNamespace(
            parser=parser, catalog=catalog, tables=tables, indexes=indexes, out=out
        )


def _inserted_id(out):
    return int(re.findall(r"Inserted record ID: (\d+)", out.getvalue())[-1])


def _with_users(db):
    assert db.parser.execute_query("create table users (id, name);")
    assert db.parser.execute_query("insert into users values (1, alice);")
    return _inserted_id(db.out)


def test_trim_strips_whitespace():
    assert trim("  a b \t\n\r") == "a b"
    assert trim(" \t ") == ""


def test_split_fields():
    assert split_fields("a, b ,c", ",") == ["a", "b", "c"]
    assert split_fields("a,b,", ",") == ["a", "b"]
    assert split_fields("a,,b", ",") == ["a", "", "b"]
    assert split_fields("", ",") == []


def test_create_table(db):
    assert db.parser.execute_query("create table users (id, name);") is True
    assert db.catalog.get_schema("users").columns == ["id", "name"]
    assert "[INFO] Table 'users' created." in db.out.getvalue()


def test_create_keeps_case_of_names(db):
    assert db.parser.execute_query("CREATE TABLE Items (Sku, Price)")
    assert db.catalog.get_schema("Items").columns == ["Sku", "Price"]


def test_create_duplicate_fails(db):
    assert db.parser.execute_query("create table t (a)")
    assert db.parser.execute_query("create table t (b)") is False
    assert "Table creation failed" in db.out.getvalue()


def test_create_without_parentheses_fails(db):
    assert db.parser.execute_query("create table t a, b") is False
    assert "missing parentheses" in db.out.getvalue()
    assert db.catalog.list_tables() == []


def test_create_without_columns_fails(db):
    assert db.parser.execute_query("create table t ()") is False
    assert "No columns specified" in db.out.getvalue()


def test_drop_table(db):
    db.parser.execute_query("create table t (a)")
    assert db.parser.execute_query("drop table t;") is True
    assert "t" not in db.catalog.list_tables()
    assert db.parser.execute_query("drop table t;") is False


def test_insert_stores_row(db):
    record_id = _with_users(db)
    assert db.tables.select("users", record_id).text() == "1|alice"
    assert db.indexes.search("users", "name", "alice") == [record_id]


def test_insert_with_column_list_reorders(db):
    db.parser.execute_query("create table users (id, name)")
    assert db.parser.execute_query("insert into users (name, id) values (bob, 2);")
    record_id = _inserted_id(db.out)
    assert db.tables.select("users", record_id).text() == "2|bob"


def test_insert_unknown_column_fails(db):
    db.parser.execute_query("create table users (id, name)")
    assert db.parser.execute_query("insert into users (id, age) values (1, 2)") is False
    assert "Column 'age' not found" in db.out.getvalue()


def test_insert_value_count_mismatch_fails(db):
    db.parser.execute_query("create table users (id, name)")
    assert db.parser.execute_query("insert into users values (1)") is False
    assert "[ERROR] Insert failed." in db.out.getvalue()


def test_insert_bad_values_clause_fails(db):
    db.parser.execute_query("create table users (id, name)")
    assert db.parser.execute_query("insert into users values 1, 2") is False
    assert "Syntax error in VALUES clause" in db.out.getvalue()


def test_insert_without_values_fails(db):
    assert db.parser.execute_query("insert into users (1, 2)") is False
    assert "missing VALUES clause" in db.out.getvalue()


def test_insert_into_missing_table_raises(db):
    with pytest.raises(TableNotFoundError):
        db.parser.execute_query("insert into ghosts values (1)")


def test_delete_removes_row_and_index(db):
    record_id = _with_users(db)
    assert db.parser.execute_query(f"delete from users where record_id = {record_id};")
    assert "Record deleted successfully" in db.out.getvalue()
    assert db.indexes.search("users", "name", "alice") == []
    with pytest.raises(StorageError):
        db.tables.select("users", record_id)


def test_delete_requires_where(db):
    _with_users(db)
    assert db.parser.execute_query("delete from users") is False
    assert "DELETE requires WHERE clause" in db.out.getvalue()


def test_delete_other_condition_rejected(db):
    _with_users(db)
    assert db.parser.execute_query("delete from users where name = alice") is False
    assert "only supports WHERE record_id" in db.out.getvalue()


def test_delete_bad_id_raises(db):
    _with_users(db)
    with pytest.raises(ValueError):
        db.parser.execute_query("delete from users where record_id = abc")


def test_update_changes_field(db):
    record_id = _with_users(db)
    query = f"update users set name = carol where record_id = {record_id};"
    assert db.parser.execute_query(query) is True
    assert db.tables.select("users", record_id).text() == "1|carol"
    assert db.indexes.search("users", "name", "carol") == [record_id]
    assert db.indexes.search("users", "name", "alice") == []


def test_update_unknown_column_fails(db):
    record_id = _with_users(db)
    query = f"update users set age = 3 where record_id = {record_id}"
    assert db.parser.execute_query(query) is False
    assert db.tables.select("users", record_id).text() == "1|alice"


def test_update_requires_where(db):
    _with_users(db)
    assert db.parser.execute_query("update users set name = x") is False
    assert "UPDATE requires WHERE clause" in db.out.getvalue()


def test_update_invalid_assignment_fails(db):
    record_id = _with_users(db)
    assert db.parser.execute_query(f"update users set name where record_id = {record_id}") is False
    assert "Invalid assignment" in db.out.getvalue()


def test_select_all_prints_header_and_rows(db):
    _with_users(db)
    assert db.parser.execute_query("select * from users;") is True
    lines = db.out.getvalue().splitlines()
    assert "id\tname\t" in lines
    assert "1\talice\t" in lines


def test_select_by_id(db):
    record_id = _with_users(db)
    db.out.seek(0)
    db.out.truncate()
    assert db.parser.execute_query(f"select * from users where record_id = {record_id};")
    assert db.out.getvalue().splitlines() == ["id\tname\t", "1\talice\t"]


def test_select_missing_from_fails(db):
    assert db.parser.execute_query("select *") is False
    assert "missing FROM" in db.out.getvalue()


def test_unsupported_query(db):
    assert db.parser.execute_query("vacuum") is False
    assert "[ERROR] Unsupported or invalid query." in db.out.getvalue()


def test_run_interactive_session(db):
    commands = io.StringIO("create table t (a)\n\nbogus\nselect * from ghosts\nexit\nnever run\n")
    out = io.StringIO()
    db.parser.run_interactive(commands, out)
    text = out.getvalue()
    assert "[INFO] Table 't' created." in text
    assert text.count("[ERROR] Failed to execute query.") == 2
    assert text.rstrip().endswith("Exiting interactive mode.")
    assert db.catalog.list_tables() == ["t"]


def test_run_interactive_stops_at_end_of_input(db):
    out = io.StringIO()
    db.parser.run_interactive(io.StringIO("create table t (a)\n"), out)
    assert "Table 't' created" in out.getvalue()
    assert "Exiting interactive mode." not in out.getvalue()


def test_main_persists_tables(tmp_path, monkeypatch, capsys):
    path = tmp_path / "cli.db"
    monkeypatch.setattr("sys.stdin", io.StringIO("create table pets (name)\nquit\n"))
    assert main([str(path)]) == 0
    assert "Table 'pets' created." in capsys.readouterr().out
    with DiskManager(path) as disk:
        catalog = CatalogManager(RecordManager(disk))
        assert catalog.get_schema("pets").columns == ["name"]