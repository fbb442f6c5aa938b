"""Exception types shared across the store and the command interpreter."""

from enum import Enum


class CsvDbError(Exception):
    """Base class for all csvdb errors."""


class ConfigError(CsvDbError):
    """Raised when csvdb.toml cannot be parsed or holds invalid values."""


class ErrorKind(Enum):
    """Category of a failed command, mirroring the user-facing messages."""

    SYNTAX = "syntax"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    STATE = "state"
    IO = "io"


class CommandError(CsvDbError):
    """A command failed; ``str(error)`` is the text shown to the user."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def syntax_error(usage: str) -> CommandError:
    return CommandError(ErrorKind.SYNTAX, usage)


def not_found(message: str) -> CommandError:
    return CommandError(ErrorKind.NOT_FOUND, message)
