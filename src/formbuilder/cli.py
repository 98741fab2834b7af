from __future__ import annotations

import logging

import typer

from formbuilder.config import Settings
from formbuilder.filters import csv_headers_and_rows, render_table
from formbuilder.storage import init_storage

cli = typer.Typer(add_completion=False)


def run_server(host: str | None, port: int | None) -> None:
    import uvicorn

    from formbuilder.app import create_app

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    uvicorn.run(create_app(settings), host=resolved_host, port=resolved_port)


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    ctx.obj = {"host": host, "port": port}
    if ctx.invoked_subcommand is None:
        run_server(host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(resolved_host, resolved_port)


@cli.command()
def export(
    form_id: str = typer.Argument(..., help="Form whose submissions are exported"),
    fmt: str = typer.Option("csv", "--format", help="csv or tsv"),
) -> None:
    if fmt not in {"csv", "tsv"}:
        raise typer.BadParameter("format must be csv or tsv", param_hint="--format")
    storage = init_storage(Settings())
    form = storage.forms.get_form(form_id)
    if not form:
        typer.echo(f"Form not found: {form_id}", err=True)
        raise typer.Exit(code=1)
    submissions = storage.submissions.list_submissions(form_id)
    headers, rows = csv_headers_and_rows(form.get("content") or [], submissions)
    typer.echo(render_table(headers, rows, fmt), nl=False)
