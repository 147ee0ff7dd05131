"""Main entry point for the bookstore-api command.

Wires configuration, logging, the client core and the resource services
together (Composition Root) and exposes two small diagnostic commands:
``show-config`` and ``check``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from bookstore_api.core.services.author_service import AuthorService
from bookstore_api.core.services.book_service import BookService
from bookstore_api.domain.models.common import StatusCodes
from bookstore_api.infrastructure.config.settings import (
    Configuration,
    ConfigurationError,
    get_configuration,
)
from bookstore_api.infrastructure.http.api_client import ApiClient
from bookstore_api.infrastructure.monitoring.logger_setup import setup_logging_from_config

logger = logging.getLogger(__name__)

console = Console()


@dataclass
class Dependencies:
    config: Configuration
    api_client: ApiClient
    book_service: BookService
    author_service: AuthorService


def create_dependencies(config: Optional[Configuration] = None) -> Dependencies:
    """Creates and wires up the client core and services.

    Args:
        config: Configuration to use; the process default is loaded if None.

    Raises:
        ConfigurationError: If configuration is missing or incomplete.
    """
    config = config or get_configuration()
    setup_logging_from_config(config)
    config.log_configuration()

    api_client = ApiClient(config)
    return Dependencies(
        config=config,
        api_client=api_client,
        book_service=BookService(api_client),
        author_service=AuthorService(api_client),
    )


def _load(config_file: Optional[Path]) -> Configuration:
    if config_file is None:
        return get_configuration()
    return Configuration.load(config_file=config_file)


app = typer.Typer(
    name="bookstore-api",
    help="Diagnostics for the Bookstore API test-client core.",
    add_completion=False,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a bookstore.yaml file. Searched upwards from cwd if not set."),
]


@app.command(name="show-config")
def show_config(config_file: ConfigOption = None):
    """Print the resolved configuration."""
    try:
        config = _load(config_file)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=2)

    table = Table(title=f"Configuration ({config.source or 'in-memory'})")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    for key, value in config.as_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def check(config_file: ConfigOption = None):
    """List Books and Authors once and report status and latency."""
    try:
        deps = create_dependencies(_load(config_file))
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=2)

    table = Table(title=f"Endpoint check: {deps.api_client.base_url}")
    table.add_column("Resource", style="cyan")
    table.add_column("Status")
    table.add_column("Elapsed (ms)", justify="right")

    healthy = True
    with deps.api_client:
        for name, service in (("Books", deps.book_service), ("Authors", deps.author_service)):
            response = service.list_all()
            ok = response.status_code == StatusCodes.OK
            healthy = healthy and ok
            style = "green" if ok else "red"
            table.add_row(name, f"[{style}]{response.status_code}[/{style}]", str(response.elapsed_ms))
    console.print(table)

    if not healthy:
        raise typer.Exit(code=1)


def cli_entry_point():
    """Function called by the console script declared in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
