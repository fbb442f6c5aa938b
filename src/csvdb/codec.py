"""Reading and writing the two on-disk record formats.

User credential file (account/<user>/<user>.csv):
    line 1: password (or password hash)
    line 2: comma-separated database names

Table file (database/<owner>/<db>/<table>.csv):
    line 1: unique_id,<field1>,...,<fieldN>
    line N: <unique_id>,<value1>,...,<valueN>

Values are written verbatim: there is no quoting, so a value must not
contain the delimiter or a line break.
"""

from dataclasses import dataclass, field
from pathlib import Path

DELIMITER = ","
ID_COLUMN = "unique_id"
_FORBIDDEN = (DELIMITER, "\n", "\r")


def is_plain_value(value: str) -> bool:
    """Check a value can be stored without escaping."""
    return not any(ch in value for ch in _FORBIDDEN)


def read_lines(path: Path) -> list[str]:
    """Read a text file as a list of lines without line terminators."""
    # Only "\n" ends a line; other Unicode line boundaries are ordinary text
    with open(path, encoding="utf-8", newline="") as f:
        lines = f.read().split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def write_lines(path: Path, lines: list[str]) -> None:
    """Overwrite a text file with the given lines, creating parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for line in lines:
            f.write(line + "\n")


def append_line(path: Path, line: str) -> None:
    # The parent directory must already exist
    with open(path, "a", encoding="utf-8", newline="\n") as f:
        f.write(line + "\n")


@dataclass
class UserRecord:
    password: str
    databases: list[str] = field(default_factory=list)


def encode_user_record(record: UserRecord) -> list[str]:
    return [record.password, DELIMITER.join(record.databases)]


def decode_user_record(lines: list[str]) -> UserRecord:
    """Parse a credential file; a missing database line means no databases."""
    password = lines[0] if lines else ""
    databases: list[str] = []
    if len(lines) > 1:
        for name in lines[1].split(DELIMITER):
            name = name.strip(" ")
            if name and name not in databases:
                databases.append(name)
    return UserRecord(password=password, databases=databases)


def encode_header(schema: list[str]) -> str:
    return DELIMITER.join([ID_COLUMN, *schema])


def decode_header(line: str) -> list[str]:
    """Recover a schema from a header line, dropping the id column."""
    return line.split(DELIMITER)[1:]


def encode_row(unique_id: str, values: list[str]) -> str:
    return DELIMITER.join([unique_id, *values])


def decode_row(line: str) -> tuple[str, list[str]]:
    unique_id, *values = line.split(DELIMITER)
    return unique_id, values
