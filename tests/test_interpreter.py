"""End-to-end tests of command lines against a real data directory."""

import re

from conftest import run_all

from csvdb import interpreter as messages
from csvdb.commands import SELECT_USAGE
from csvdb.interpreter import QueryInterpreter

ID = r"[0-9a-z]{12}"


def _with_items(admin: QueryInterpreter, *rows: str) -> None:
    run_all(admin, "create shop", "open shop", "create table items (name, price)")
    for row in rows:
        admin.execute_query(f"insert into items ({row})")


def _select(admin: QueryInterpreter, line: str) -> list[str]:
    return admin.execute_query(line).split("\n")


class TestSessionStates:
    def test_requires_login(self, interpreter):
        assert interpreter.execute_query("show") == messages.NOT_LOGGED_IN
        assert interpreter.execute_query("select from items 5 bogus") == messages.NOT_LOGGED_IN
        assert interpreter.execute_query("frobnicate") == messages.NOT_LOGGED_IN

    def test_requires_open_database(self, admin):
        assert admin.execute_query("insert into t (a)") == messages.NO_DATABASE_OPEN
        assert admin.execute_query("select from t") == messages.NO_DATABASE_OPEN
        assert admin.execute_query("frobnicate") == messages.NO_DATABASE_OPEN

    def test_unknown_and_empty(self, admin):
        admin.execute_query("open default")
        assert admin.execute_query("frobnicate") == messages.UNKNOWN_COMMAND
        assert admin.execute_query("  ") == messages.EMPTY_QUERY

    def test_syntax_error_reported_after_state_checks(self, admin):
        admin.execute_query("open default")
        assert admin.execute_query("select from items 5 bogus") == SELECT_USAGE

    def test_login_needs_prompt(self, interpreter):
        assert interpreter.execute_query("login") == "Login requires an interactive terminal"
        assert interpreter.execute_query("login admin") == "Usage: login"

    def test_login_prompts_for_credentials(self, store, catalog):
        interpreter = QueryInterpreter(store, catalog, lambda: ("admin", "admin"))
        assert interpreter.execute_query("login") == "Successfully logged in as admin"
        assert interpreter.session.name == "admin"

    def test_failed_login_keeps_session(self, store, catalog):
        attempts = iter([("admin", "admin"), ("admin", "wrong")])
        interpreter = QueryInterpreter(store, catalog, lambda: next(attempts))
        run_all(interpreter, "login", "open default")

        assert interpreter.execute_query("login") == messages.LOGIN_FAILED
        assert interpreter.session.name == "admin"
        assert interpreter.current_database.name == "default"

    def test_failed_login_stays_unauthenticated(self, interpreter):
        interpreter.prompt_credentials = lambda: ("admin", "wrong")
        assert interpreter.execute_query("login") == messages.LOGIN_FAILED
        assert interpreter.session is None

    def test_successful_login_closes_database(self, admin, store):
        store.create_user("bob", "pw")
        admin.execute_query("open default")

        assert admin.login_with("bob", "pw") == "Successfully logged in as bob"
        assert admin.current_database is None


class TestDatabases:
    def test_show_lists_new_database_once(self, admin):
        assert admin.execute_query("create shop") == "Database 'shop' created successfully"
        assert admin.execute_query("create shop") == "Failed to create database"

        listing = admin.execute_query("show").split("\n")
        assert listing[0] == "Available databases:"
        assert listing.count("- shop") == 1
        assert "- default" in listing

    def test_open_lists_tables(self, admin):
        _with_items(admin)
        admin.execute_query("close")

        assert admin.execute_query("open shop") == (
            "Opened database 'shop'\nAvailable tables:\n- items"
        )

    def test_open_other_users_database(self, admin, store):
        store.create_user("bob", "pw")
        bob = QueryInterpreter(admin.store, admin.catalog)
        bob.login_with("bob", "pw")
        bob.execute_query("create private")

        assert admin.execute_query("open private") == "Database not found or access denied"

    def test_close(self, admin):
        assert admin.execute_query("close") == "No database opened."
        admin.execute_query("open default")
        assert admin.execute_query("close") == "Closed database 'default'"
        assert admin.current_database is None

    def test_drop_database(self, admin, layout):
        _with_items(admin, "widget, 1")
        admin.execute_query("close")

        assert admin.execute_query("drop shop") == "Database 'shop' dropped successfully"
        assert not layout.database_dir("admin", "shop").exists()
        assert "- shop" not in admin.execute_query("show")
        assert admin.execute_query("drop shop") == (
            "Database 'shop' not found or access denied"
        )


class TestTables:
    def test_shop_scenario(self, admin):
        results = run_all(
            admin,
            "create shop",
            "open shop",
            "create table items (name, price)",
            "insert into items (widget, 9.99)",
        )
        assert results[2] == "Table 'items' created successfully"
        unique_id = re.fullmatch(f"Generated unique ID: ({ID})", results[3]).group(1)

        assert _select(admin, "select from items") == [
            "unique_id,name,price",
            f"{unique_id},widget,9.99",
        ]

    def test_create_table_syntax(self, admin):
        admin.execute_query("open default")
        assert admin.execute_query("create table items name, price") == (
            "Invalid syntax. Use: create table name (attr1, attr2, ...)"
        )
        assert admin.execute_query("create table items ()") == "Failed to create table"

    def test_insert_into_missing_table(self, admin):
        admin.execute_query("open default")
        assert admin.execute_query("insert into ghost (a)") == messages.TABLE_NOT_FOUND

    def test_insert_count_mismatch_writes_nothing(self, admin):
        _with_items(admin)

        result = admin.execute_query("insert into items (widget)")

        assert result.startswith("Failed to insert data")
        assert _select(admin, "select from items") == ["unique_id,name,price"]

    def test_select_first_n(self, admin):
        _with_items(admin, "a, 1", "b, 2", "c, 3")

        rows = _select(admin, "select from items 2")[1:]
        assert [r.split(",", 1)[1] for r in rows] == ["a,1", "b,2"]

        assert len(_select(admin, "select from items 10")) == 4

    def test_select_last_n(self, admin):
        _with_items(admin, "a, 1", "b, 2", "c, 3")

        rows = _select(admin, "select from items 2 last")[1:]
        assert [r.split(",", 1)[1] for r in rows] == ["b,2", "c,3"]

        all_rows = _select(admin, "select from items 5 last")[1:]
        assert [r.split(",", 1)[1] for r in all_rows] == ["a,1", "b,2", "c,3"]

    def test_select_zero(self, admin):
        _with_items(admin, "a, 1")
        assert _select(admin, "select from items 0 last") == ["unique_id,name,price"]

    def test_select_non_ascii_digit_limit(self, admin):
        _with_items(admin, "a, 1")
        assert admin.execute_query("select from items \u00b2") == SELECT_USAGE

    def test_value_with_unicode_line_separator_reads_back_as_one_row(self, admin):
        _with_items(admin, "a\u2028b, 1")

        lines = _select(admin, "select from items")

        assert len(lines) == 2
        assert lines[1].split(",")[1:] == ["a\u2028b", "1"]
        assert len(admin.current_database.get_table("items").unique_ids()) == 1

    def test_select_missing_table(self, admin):
        admin.execute_query("open default")
        assert admin.execute_query("select from ghost") == messages.TABLE_NOT_FOUND

    def test_delete_does_not_remove_rows(self, admin):
        _with_items(admin, "a, 1")
        unique_id = _select(admin, "select from items")[1].split(",")[0]

        assert admin.execute_query(f"delete from items id:{unique_id}") == (
            "Record deleted successfully"
        )
        assert len(_select(admin, "select from items")) == 2
        assert admin.execute_query("delete from ghost id:x") == messages.TABLE_NOT_FOUND

    def test_drop_table(self, admin, layout):
        _with_items(admin, "a, 1")

        assert admin.execute_query("drop items") == "Table 'items' dropped successfully"
        assert not layout.table_file("admin", "shop", "items").exists()
        assert admin.current_database.get_table("items") is None
        assert admin.execute_query("drop items") == "Table 'items' not found"

    def test_tables_survive_reopen(self, admin):
        _with_items(admin, "a, 1")
        admin.execute_query("close")
        admin.execute_query("open shop")

        assert len(_select(admin, "select from items")) == 2

    def test_io_error_becomes_message(self, admin):
        _with_items(admin, "a, 1")
        admin.current_database.get_table("items").file_path.unlink()

        assert admin.execute_query("select from items") == "Failed to open table file"
        assert admin.execute_query("insert into items (b, 2)") == "Failed to insert data"
