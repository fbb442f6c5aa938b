"""Command interpreter: one input line in, one result string out.

Session states:

    unauthenticated --login--> authenticated --open--> database open
                                             <--close--

Every failure, including I/O errors, is reported as a result string and
leaves the session as it was.
"""

import logging
from enum import Enum
from typing import Callable

from . import auth, query
from .auth import AccountStore, UserSession
from .catalog import Catalog
from .commands import (
    CloseDatabase,
    Command,
    CreateDatabase,
    CreateTable,
    Delete,
    DropDatabase,
    DropTable,
    Empty,
    Insert,
    Invalid,
    Login,
    OpenDatabase,
    Select,
    Show,
    Unknown,
    parse,
)
from .database import Database
from .errors import CommandError, ErrorKind, not_found, syntax_error

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "Not logged in. Please login first."
NO_DATABASE_OPEN = "No database opened. Use 'open <database>' first."
EMPTY_QUERY = "Empty query"
UNKNOWN_COMMAND = "Unknown command"
LOGIN_FAILED = "Login failed"
TABLE_NOT_FOUND = "Table not found"

CredentialPrompt = Callable[[], tuple[str, str]]


class Access(Enum):
    ANYONE = "anyone"
    SESSION = "session"
    DATABASE = "database"


REQUIRED_ACCESS: dict[type, Access] = {
    Empty: Access.ANYONE,
    Login: Access.ANYONE,
    Show: Access.SESSION,
    CreateDatabase: Access.SESSION,
    OpenDatabase: Access.SESSION,
    CloseDatabase: Access.SESSION,
    DropDatabase: Access.SESSION,
    CreateTable: Access.DATABASE,
    DropTable: Access.DATABASE,
    Insert: Access.DATABASE,
    Delete: Access.DATABASE,
    Select: Access.DATABASE,
    Unknown: Access.DATABASE,
}


def _bulleted(title: str, names: list[str]) -> str:
    return "\n".join([title, *(f"- {name}" for name in names)])


class QueryInterpreter:
    """Parses command lines and runs them against the current session."""

    def __init__(
        self,
        store: AccountStore,
        catalog: Catalog,
        prompt_credentials: CredentialPrompt | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.prompt_credentials = prompt_credentials
        self.session: UserSession | None = None
        self.current_database: Database | None = None
        self._handlers: dict[type, Callable[[Command], str]] = {
            Empty: lambda _: EMPTY_QUERY,
            Unknown: lambda _: UNKNOWN_COMMAND,
            Login: self._login,
            Show: self._show,
            CreateDatabase: self._create_database,
            CreateTable: self._create_table,
            OpenDatabase: self._open_database,
            CloseDatabase: self._close_database,
            DropTable: self._drop_table,
            DropDatabase: self._drop_database,
            Insert: self._insert,
            Delete: self._delete,
            Select: self._select,
        }

    def execute_query(self, line: str) -> str:
        """Run one command line and describe the outcome."""
        command = parse(line, database_open=self.current_database is not None)
        intended = command.command if isinstance(command, Invalid) else type(command)

        try:
            self._check_access(REQUIRED_ACCESS[intended])
            if isinstance(command, Invalid):
                raise syntax_error(command.usage)
            return self._handlers[intended](command)
        except CommandError as e:
            logger.debug("%s failed (%s): %s", intended.__name__, e.kind.value, e.message)
            return str(e)
        except OSError as e:
            logger.error("I/O error while running %r: %s", line, e)
            return f"I/O error: {e}"

    def login_with(self, name: str, password: str) -> str:
        """Authenticate without prompting; a failed attempt keeps the old session."""
        session = auth.login(self.store, self.catalog, name, password)
        if session is None:
            raise CommandError(ErrorKind.AUTH, LOGIN_FAILED)
        self.session = session
        self.current_database = None
        return f"Successfully logged in as {name}"

    def _check_access(self, access: Access) -> None:
        if access is Access.ANYONE:
            return
        if self.session is None:
            raise CommandError(ErrorKind.STATE, NOT_LOGGED_IN)
        if access is Access.DATABASE and self.current_database is None:
            raise CommandError(ErrorKind.STATE, NO_DATABASE_OPEN)

    def _login(self, command: Login) -> str:
        if self.prompt_credentials is None:
            raise CommandError(ErrorKind.STATE, "Login requires an interactive terminal")
        name, password = self.prompt_credentials()
        return self.login_with(name, password)

    def _show(self, command: Show) -> str:
        return _bulleted("Available databases:", self.session.database_names())

    def _create_database(self, command: CreateDatabase) -> str:
        if self.session.create_database(command.name):
            return f"Database '{command.name}' created successfully"
        return "Failed to create database"

    def _open_database(self, command: OpenDatabase) -> str:
        database = self.session.get_database(command.name)
        if database is None:
            raise CommandError(ErrorKind.AUTH, "Database not found or access denied")
        self.current_database = database
        return _bulleted(
            f"Opened database '{command.name}'\nAvailable tables:",
            database.table_names(),
        )

    def _close_database(self, command: CloseDatabase) -> str:
        if self.current_database is None:
            raise CommandError(ErrorKind.STATE, "No database opened.")
        name = self.current_database.name
        self.current_database = None
        return f"Closed database '{name}'"

    def _drop_database(self, command: DropDatabase) -> str:
        if not self.session.has_database(command.name):
            raise CommandError(
                ErrorKind.AUTH, f"Database '{command.name}' not found or access denied"
            )
        if self.session.drop_database(command.name):
            return f"Database '{command.name}' dropped successfully"
        return "Failed to drop database"

    def _create_table(self, command: CreateTable) -> str:
        if self.current_database.create_table(command.name, command.fields):
            return f"Table '{command.name}' created successfully"
        return "Failed to create table"

    def _drop_table(self, command: DropTable) -> str:
        if self.current_database.get_table(command.name) is None:
            raise not_found(f"Table '{command.name}' not found")
        if self.current_database.drop_table(command.name):
            return f"Table '{command.name}' dropped successfully"
        return "Failed to drop table"

    def _insert(self, command: Insert) -> str:
        table = self.current_database.get_table(command.table)
        if table is None:
            raise not_found(TABLE_NOT_FOUND)
        if len(command.values) != len(table.schema):
            raise syntax_error(
                f"Failed to insert data: table '{table.name}' has {len(table.schema)} "
                f"fields, got {len(command.values)} values"
            )

        unique_id = table.insert_row(command.values)
        if unique_id is None:
            return "Failed to insert data"
        return f"Generated unique ID: {unique_id}"

    def _delete(self, command: Delete) -> str:
        if self.current_database.get_table(command.table) is None:
            raise not_found(TABLE_NOT_FOUND)
        # TODO: remove the row once delete semantics are settled; see DESIGN.md
        logger.warning(
            "delete from %s id:%s acknowledged but no row was removed",
            command.table,
            command.unique_id,
        )
        return "Record deleted successfully"

    def _select(self, command: Select) -> str:
        table = self.current_database.get_table(command.table)
        if table is None:
            raise not_found(TABLE_NOT_FOUND)
        try:
            return query.select_rows(table, command.limit, command.last)
        except OSError as e:
            logger.error("Failed to open table file %s: %s", table.file_path, e)
            raise CommandError(ErrorKind.IO, "Failed to open table file") from e
