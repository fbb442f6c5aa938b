"""Command-line interface: interactive shell, script runner and account tools."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import click

from .auth import ADMIN_PASSWORD, ADMIN_USER, AccountStore, make_verifier
from .catalog import Catalog
from .config import Settings, find_project_root, load_settings, write_default_config
from .errors import CommandError, ConfigError
from .interpreter import QueryInterpreter
from .paths import StorageLayout

HELP_TEXT = """
Available commands:
  login                              - Login to the system
  show                               - Show available databases
  create <database_name>             - Create a new database
  open <database_name>               - Open an existing database
  close                              - Close the open database
  create table <name> (attrs)        - Create a new table
  insert into <table> (values)       - Insert data into table
  select from <table> [limit] [last] - Query data
  delete from <table> id:<value>     - Delete record
  drop <database/table_name>         - Drop database or table
  exit                               - Exit the program
  help                               - Show this help message"""


@dataclass
class App:
    """Objects shared by every subcommand of one process."""

    root: Path
    settings: Settings
    store: AccountStore
    catalog: Catalog
    first_run: bool = False

    def interpreter(self, prompt_credentials=None) -> QueryInterpreter:
        return QueryInterpreter(self.store, self.catalog, prompt_credentials)


def _prompt_credentials() -> tuple[str, str]:
    username = click.prompt("Username")
    password = click.prompt("Password", hide_input=True)
    return username, password


@click.group()
@click.version_option(package_name="csvdb")
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="CSVDB_DATA_DIR",
    default=None,
    help="Data directory holding account/ and database/ (default: from csvdb.toml).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log diagnostics to stderr.",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """File-backed multi-user table store.

    Each user owns databases; each database is a directory of tables;
    each table is a CSV file with a generated unique_id column.
    """
    root = find_project_root()
    try:
        settings = load_settings(root, data_dir)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    layout = StorageLayout(settings.data_root)
    store = AccountStore(layout, make_verifier(settings.auth_scheme))
    try:
        first_run = store.ensure_bootstrap()
    except OSError as e:
        raise click.ClickException(f"Cannot initialize data directory {layout.root}: {e}") from e

    ctx.obj = App(
        root=root,
        settings=settings,
        store=store,
        catalog=Catalog(layout),
        first_run=first_run,
    )


@cli.command()
@click.pass_obj
def shell(app: App) -> None:
    """Start the interactive command prompt.

    Type 'help' for the command list and 'exit' to quit.
    """
    click.echo("Simple Database Management System")
    click.echo("Type 'help' for available commands")
    if app.first_run:
        click.echo("First run detected. Admin account created.")
        click.echo(f"Username: {ADMIN_USER}")
        click.echo(f"Password: {ADMIN_PASSWORD}")

    interpreter = app.interpreter(prompt_credentials=_prompt_credentials)

    while True:
        click.echo()
        try:
            line = click.prompt("", prompt_suffix="> ", default="", show_default=False)
        except click.Abort:
            click.echo()
            break

        line = line.strip()
        if not line:
            continue
        if line.lower() == "exit":
            click.echo("Goodbye!")
            break
        if line.lower() == "help":
            click.echo(HELP_TEXT)
            continue

        try:
            result = interpreter.execute_query(line)
        except click.Abort:
            # Ctrl-C / EOF while prompting for credentials
            click.echo()
            click.echo("Login failed")
            continue
        if result:
            click.echo(result)


@cli.command()
@click.argument("script", type=click.File("r"), default="-")
@click.option("--user", "-u", required=True, help="User to run the script as.")
@click.option(
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    help="Password for --user (prompted if omitted).",
)
@click.pass_obj
def run(app: App, script: TextIO, user: str, password: str) -> None:
    """Run commands from SCRIPT (default: stdin), one per line.

    Blank lines and lines starting with '#' are skipped; 'exit' stops early.

    Example:

        csvdb run -u admin -p admin setup.txt
    """
    interpreter = app.interpreter()
    try:
        interpreter.login_with(user, password)
    except CommandError as e:
        raise click.ClickException(str(e)) from e

    for raw in script:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower() == "exit":
            break
        click.echo(f"> {line}")
        result = interpreter.execute_query(line)
        if result:
            click.echo(result)


@cli.command("create-user")
@click.argument("name")
@click.option(
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password for the new user (prompted if omitted).",
)
@click.pass_obj
def create_user(app: App, name: str, password: str) -> None:
    """Create a new user account with no databases."""
    if not app.store.create_user(name, password):
        raise click.ClickException(
            f"Could not create user '{name}' (already exists or invalid name)"
        )
    click.echo(click.style(f"User '{name}' created", fg="green"))


@cli.command("list-users")
@click.pass_obj
def list_users(app: App) -> None:
    """List all registered users."""
    for name in app.store.list_users():
        click.echo(name)


@cli.command()
@click.pass_obj
def init(app: App) -> None:
    """Write a default csvdb.toml into the current directory."""
    path = write_default_config(Path.cwd())
    if path is None:
        click.echo("csvdb.toml already exists, leaving it unchanged.")
        return
    click.echo(click.style(f"Wrote {path}", fg="green"))
    click.echo(f"Data directory: {app.settings.data_root}")
