"""Tokenizer turning one input line into a command value.

Keywords are matched case-insensitively; names and values keep the case
they were typed in. Malformed arguments become an Invalid value carrying
the usage text of the command that was meant.
"""

from dataclasses import dataclass, field
from typing import Callable

from .errors import CommandError, syntax_error

LOGIN_USAGE = "Usage: login"
CREATE_DATABASE_USAGE = "Usage: create <database_name>"
CREATE_TABLE_USAGE = "Invalid syntax. Use: create table name (attr1, attr2, ...)"
OPEN_USAGE = "Usage: open <database_name>"
CLOSE_USAGE = "Usage: close"
DROP_USAGE = "Usage: drop <database/table_name>"
INSERT_USAGE = "Invalid syntax. Use: insert into table_name (value1, value2, ...)"
DELETE_USAGE = "Invalid syntax. Use: delete from table_name id:value"
SELECT_USAGE = "Invalid syntax. Use: select from table_name [limit] [last]"

ID_PREFIX = "id:"


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Unknown:
    text: str


@dataclass(frozen=True)
class Invalid:
    """Arguments did not parse; ``usage`` is shown once session checks pass."""

    command: type
    usage: str


@dataclass(frozen=True)
class Login:
    pass


@dataclass(frozen=True)
class Show:
    pass


@dataclass(frozen=True)
class CreateDatabase:
    name: str


@dataclass(frozen=True)
class CreateTable:
    name: str
    fields: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OpenDatabase:
    name: str


@dataclass(frozen=True)
class CloseDatabase:
    pass


@dataclass(frozen=True)
class DropTable:
    name: str


@dataclass(frozen=True)
class DropDatabase:
    name: str


@dataclass(frozen=True)
class Insert:
    table: str
    values: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Delete:
    table: str
    unique_id: str


@dataclass(frozen=True)
class Select:
    table: str
    limit: int | None = None
    last: bool = False


Command = (
    Empty
    | Unknown
    | Invalid
    | Login
    | Show
    | CreateDatabase
    | CreateTable
    | OpenDatabase
    | CloseDatabase
    | DropTable
    | DropDatabase
    | Insert
    | Delete
    | Select
)


def _split_word(text: str) -> tuple[str, str]:
    """Split off the first whitespace-delimited word."""
    parts = text.split(maxsplit=1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def parse_list(text: str) -> list[str]:
    """Parse ``(a, b, c)`` into ``["a", "b", "c"]``.

    Raises:
        ValueError: If the text is not wrapped in parentheses.
    """
    text = text.strip()
    if not (text.startswith("(") and text.endswith(")")) or len(text) < 2:
        raise ValueError(f"Not a parenthesized list: {text!r}")
    inner = text[1:-1].strip()
    if not inner:
        return []
    return [token.strip() for token in inner.split(",")]


def _parse_named_list(text: str, usage: str) -> tuple[str, list[str]]:
    """Parse ``name (a, b, ...)`` as used by create table and insert."""
    paren = text.find("(")
    if paren == -1:
        raise syntax_error(usage)
    name = text[:paren].strip()
    if not name:
        raise syntax_error(usage)
    try:
        return name, parse_list(text[paren:])
    except ValueError:
        raise syntax_error(usage) from None


def _parse_login(rest: str) -> Command:
    if rest:
        raise syntax_error(LOGIN_USAGE)
    return Login()


def _parse_create_table(rest: str) -> Command:
    _, after = _split_word(rest)
    name, fields = _parse_named_list(after, CREATE_TABLE_USAGE)
    return CreateTable(name, fields)


def _parse_create_database(rest: str) -> Command:
    if not rest:
        raise syntax_error(CREATE_DATABASE_USAGE)
    return CreateDatabase(rest)


def _parse_open(rest: str) -> Command:
    if not rest:
        raise syntax_error(OPEN_USAGE)
    return OpenDatabase(rest)


def _parse_close(rest: str) -> Command:
    if rest:
        raise syntax_error(CLOSE_USAGE)
    return CloseDatabase()


def _parse_drop_table(rest: str) -> Command:
    if not rest:
        raise syntax_error(DROP_USAGE)
    return DropTable(rest)


def _parse_drop_database(rest: str) -> Command:
    if not rest:
        raise syntax_error(DROP_USAGE)
    return DropDatabase(rest)


def _parse_insert(rest: str) -> Command:
    _, after = _split_word(rest)
    name, values = _parse_named_list(after, INSERT_USAGE)
    return Insert(name, values)


def _parse_delete(rest: str) -> Command:
    _, after = _split_word(rest)
    parts = after.split()
    if len(parts) != 2 or not parts[1].startswith(ID_PREFIX):
        raise syntax_error(DELETE_USAGE)
    return Delete(parts[0], parts[1][len(ID_PREFIX):])


def _parse_select(rest: str) -> Command:
    _, after = _split_word(rest)
    parts = after.split()
    if not parts or len(parts) > 3:
        raise syntax_error(SELECT_USAGE)

    table, options = parts[0], [p.lower() for p in parts[1:]]
    if not options:
        return Select(table)
    if options == ["last"]:
        return Select(table, last=True)
    if not (options[0].isascii() and options[0].isdigit()):
        raise syntax_error(SELECT_USAGE)
    if len(options) == 2 and options[1] != "last":
        raise syntax_error(SELECT_USAGE)
    return Select(table, limit=int(options[0]), last=len(options) == 2)


Parser = Callable[[str], Command]


def _route(keyword: str, rest: str, database_open: bool) -> tuple[type, Parser] | None:
    """Pick the command a line is meant to be, before checking its arguments."""
    second = _split_word(rest)[0].lower()

    if keyword == "login":
        return Login, _parse_login
    if keyword == "show" and not rest:
        return Show, lambda _: Show()
    if keyword == "create":
        if database_open and second == "table":
            return CreateTable, _parse_create_table
        return CreateDatabase, _parse_create_database
    if keyword == "open":
        return OpenDatabase, _parse_open
    if keyword == "close":
        return CloseDatabase, _parse_close
    if keyword == "drop":
        if database_open:
            return DropTable, _parse_drop_table
        return DropDatabase, _parse_drop_database
    if keyword == "insert" and second == "into":
        return Insert, _parse_insert
    if keyword == "delete" and second == "from":
        return Delete, _parse_delete
    if keyword == "select" and second == "from":
        return Select, _parse_select
    return None


def parse(line: str, database_open: bool = False) -> Command:
    """Classify one input line.

    ``database_open`` decides between the table and database forms of
    ``create`` and ``drop``. Malformed arguments produce an ``Invalid``
    value naming the intended command, so that session checks can still
    run before the usage text is reported.
    """
    text = line.strip()
    if text.endswith(";"):
        text = text[:-1].rstrip()
    if not text:
        return Empty()

    keyword, rest = _split_word(text)
    route = _route(keyword.lower(), rest.strip(), database_open)
    if route is None:
        return Unknown(text)

    intended, parser = route
    try:
        return parser(rest.strip())
    except CommandError as e:
        return Invalid(intended, e.message)
