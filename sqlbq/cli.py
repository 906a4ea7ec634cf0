from typing import TYPE_CHECKING, Any, Optional

import click
from rich import get_console
from rich.prompt import Confirm
from rich.table import Table

if TYPE_CHECKING:
    from sqlbq.database import Database

__all__ = ("get_sqlbq_group",)


def _connect(ctx: "click.Context", *, resolve_dataset: bool = True) -> "Database":
    """Return the command's database, connecting on first use.

    Commands that only manage datasets pass ``resolve_dataset=False``; the
    database is then created without connecting, so ``--dataset`` is not
    needed and is not created.
    """
    import sqlbq

    options: dict[str, Any] = ctx.obj["connection"]
    if resolve_dataset and not options["dataset"]:
        msg = "Missing option '--dataset'."
        raise click.UsageError(msg, ctx=ctx)
    if "database" not in ctx.obj:
        ctx.obj["database"] = sqlbq.connect(**options, test=resolve_dataset)
    return ctx.obj["database"]


def get_sqlbq_group() -> "click.Group":
    """Get the sqlbq CLI group.

    Returns:
        The sqlbq CLI group.
    """
    console = get_console()

    @click.group(name="sqlbq")
    @click.option("--adapter", default="bigquery", show_default=True, help="Adapter scheme.")
    @click.option("--project", envvar="SQLBQ_PROJECT", default=None, help="Google Cloud project.")
    @click.option(
        "--dataset",
        envvar="SQLBQ_DATASET",
        default=None,
        help="Dataset to use (created if missing). Not needed by drop-datasets.",
    )
    @click.option("--location", envvar="SQLBQ_LOCATION", default=None, help="Location used when creating the dataset.")
    @click.option("--verbose", is_flag=True, default=False, help="Log every statement.")
    @click.pass_context
    def sqlbq_group(
        ctx: "click.Context",
        adapter: str,
        project: Optional[str],
        dataset: Optional[str],
        location: Optional[str],
        verbose: bool,
    ) -> None:
        """sqlbq CLI commands."""
        from sqlbq.utils.logging import configure_logging

        configure_logging(level="DEBUG" if verbose else "WARNING")
        ctx.ensure_object(dict)
        ctx.obj["connection"] = {"adapter": adapter, "project": project, "dataset": dataset, "location": location}
        ctx.call_on_close(lambda: ctx.obj["database"].disconnect() if "database" in ctx.obj else None)

    @sqlbq_group.command(name="migrate", help="Run migrations up (or down) to a version.")
    @click.argument("directory", type=click.Path(exists=True, file_okay=False))
    @click.option("--target", type=int, default=None, help="Version to migrate to (default: latest).")
    @click.pass_context
    def migrate(ctx: "click.Context", directory: str, target: Optional[int]) -> None:  # pyright: ignore[reportUnusedFunction]
        from sqlbq.migrations import Migrator

        console.rule("[yellow]Running migrations[/]", align="left")
        version = Migrator.apply(_connect(ctx), directory, target)
        console.print(f"[green]Database is at version {version}[/]")

    @sqlbq_group.command(name="current-version", help="Show the applied migration version.")
    @click.argument("directory", type=click.Path(exists=True, file_okay=False))
    @click.pass_context
    def current_version(ctx: "click.Context", directory: str) -> None:  # pyright: ignore[reportUnusedFunction]
        from sqlbq.migrations import Migrator

        migrator = Migrator(_connect(ctx), directory)
        current, latest = migrator.current_version(), migrator.latest_version()
        style = "green" if current == latest else "yellow"
        console.print(f"[{style}]Current version: {current} (latest: {latest})[/]")

    @sqlbq_group.command(name="execute", help="Execute a SQL statement and print any rows.")
    @click.argument("sql")
    @click.pass_context
    def execute(ctx: "click.Context", sql: str) -> None:  # pyright: ignore[reportUnusedFunction]
        dataset = _connect(ctx).fetch(sql)
        rows = dataset.all()
        if not dataset.columns:
            console.print("[green]OK[/]")
            return
        table = Table(*dataset.columns)
        for row in rows:
            table.add_row(*(str(value) for value in row.values()))
        console.print(table)

    @sqlbq_group.command(name="drop-datasets", help="Drop datasets and all of their tables.")
    @click.argument("names", nargs=-1, required=True)
    @click.option("--no-prompt", is_flag=True, default=False, help="Do not ask for confirmation.")
    @click.pass_context
    def drop_datasets(ctx: "click.Context", names: "tuple[str, ...]", no_prompt: bool) -> None:  # pyright: ignore[reportUnusedFunction]
        console.rule("[yellow]Dropping datasets[/]", align="left")
        input_confirmed = no_prompt or Confirm.ask(
            f"[bold red]Are you sure you want to drop {', '.join(names)} and all their tables?[/]"
        )
        if not input_confirmed:
            console.print("[yellow]Aborted[/]")
            return
        _connect(ctx, resolve_dataset=False).drop_datasets(*names)
        console.print(f"[green]Dropped {len(names)} dataset(s)[/]")

    return sqlbq_group


def run_cli() -> None:  # pragma: no cover
    get_sqlbq_group()(prog_name="sqlbq")
