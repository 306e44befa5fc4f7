#!/usr/bin/env python3
"""Command line interface for running incremental aggregate queries."""
import pathlib
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme
from typing_extensions import Annotated

from incsql_adapter_sdk import ResultFrame
from incsql_sqlalchemy_adapter import BaseSQLAlchemyAdapter

from incsql.common.errors import IncrementalQueryError
from incsql.common.logger import configure_logging
from incsql.common.settings import settings
from incsql.configs import ConfigManager
from incsql.public_api import IncrementalSQL
from incsql.schema import InMemoryPartitionCatalog

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)

app = typer.Typer(
    name="incsql",
    help="Incremental and parallel aggregate queries over partitioned tables.",
    no_args_is_help=True,
    add_completion=False,
)

UrlOption = Annotated[Optional[str], typer.Option("--url", help="SQLAlchemy URL of the datasource")]
PartitionsOption = Annotated[Optional[pathlib.Path], typer.Option("--partitions", help="Path to partition config YAML")]


def print_error(message: str) -> None:
    console.print(f"[error]✘ {escape(message)}[/error]")


def print_success(message: str) -> None:
    console.print(f"[success]✔ {escape(message)}[/success]")


def print_step(frame: ResultFrame) -> None:
    stats: Dict[str, Any] = frame.execution_stats
    console.print(
        f"[bold blue]Partition {stats.get('partitions_scanned')}/{stats.get('partition_count')}[/bold blue]"
        f" [info]factor {stats.get('approximate_factor')} · {str(stats.get('mode', '')).lower()}[/info]"
    )
    table = Table(show_header=True, header_style="bold magenta")
    for name in frame.column_names:
        table.add_column(escape(name), justify="right")
    for row in frame.rows:
        table.add_row(*[escape(str(value)) for value in row])
    console.print(table)


@app.callback()
def global_callback(
    ctx: typer.Context,
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Environment name (e.g. dev, prod).")] = None,
):
    """
    incsql CLI Entry Point.
    """
    if env:
        settings.configure_env(env)


@app.command()
def run(
    query: Annotated[str, typer.Argument(help="Single-table aggregate SELECT")],
    url: UrlOption = None,
    partitions: PartitionsOption = None,
    parallel: Annotated[bool, typer.Option("--parallel", help="Scan remaining partitions in the background")] = False,
    steps: Annotated[Optional[int], typer.Option("--steps", min=1, help="Stop after this many partitions")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show progress logs")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Show debug logs")] = False,
):
    """
    Run an aggregate query incrementally, one partition per step.
    """
    level = "CRITICAL"
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    configure_logging(level=level, json_format=settings.log_json)

    url = url or settings.datasource_url
    if not url:
        print_error("No datasource URL. Pass --url or set INCSQL_DATASOURCE_URL.")
        raise typer.Exit(code=1)
    if partitions is None:
        partitions = pathlib.Path(settings.partition_config_path)

    channel = BaseSQLAlchemyAdapter(connection_string=url)
    try:
        db = IncrementalSQL(
            channel=channel,
            catalog=InMemoryPartitionCatalog(),
            partition_config_path=partitions,
        )
    except (FileNotFoundError, ValueError) as e:
        channel.close()
        print_error(str(e))
        raise typer.Exit(code=1)

    with db:
        try:
            frame = db.start(query, parallel=parallel)
            print_step(frame)
            taken = 1
            while frame.rows and (steps is None or taken < steps):
                frame = db.advance()
                if frame.rows:
                    print_step(frame)
                    taken += 1
        except IncrementalQueryError as e:
            print_error(f"{e.error_code.value}: {e.message}")
            raise typer.Exit(code=1)

    print_success(f"Scanned {taken} partition(s).")


@app.command("partitions")
def list_partitions(
    path: Annotated[Optional[pathlib.Path], typer.Argument(help="Path to partition config YAML")] = None,
):
    """
    List the partitioned tables defined in a config file.
    """
    path = path or pathlib.Path(settings.partition_config_path)
    try:
        entries = ConfigManager().load_partitions(path)
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    table = Table(title="Partitioned tables", show_header=True, header_style="bold magenta")
    table.add_column("Table", style="cyan")
    table.add_column("Partitions", justify="right")
    table.add_column("Column")
    table.add_column("Addressing")
    for entry in entries:
        table.add_row(
            escape(entry.table_ref.full_name),
            str(len(entry.partitions)),
            entry.partition_column or "-",
            entry.addressing.value if entry.addressing else "dialect default",
        )
    console.print(table)


if __name__ == "__main__":
    app()
