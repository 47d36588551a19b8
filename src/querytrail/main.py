from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table
from rich.markup import escape

from querytrail import __version__
from querytrail.logging_config import logger, reset_logging, setup_logging
from querytrail.cli.config import CLIConfig
from querytrail.cli.output import get_console, print_error, print_json
from querytrail.exceptions import QueryTrailError
from querytrail.service import QueryService
from querytrail.storage import open_store

app = typer.Typer()
console = get_console()


@app.callback()
def global_options(
    ctx: typer.Context,
    human: bool = typer.Option(
        False,
        "--human",
        "-H",
        help="Enable human mode: tables and colors (also via QUERYTRAIL_HUMAN_MODE env var)"
    ),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Path to the query store database. Defaults to store.path from config.",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
):
    """
    QueryTrail: keystroke-level search query tracking and analytics.

    Machine mode is the default (JSON/plain output). Use --human/-H for tables.
    """
    if human:
        CLIConfig.set_machine_mode(False)
    reset_logging()
    # Machine mode keeps stderr clean for agents
    setup_logging(level="DEBUG" if verbose else "INFO", suppress_console=CLIConfig.is_machine_mode())
    ctx.obj = {"db": db}


def _service(ctx: typer.Context) -> QueryService:
    db = (ctx.obj or {}).get("db")
    try:
        return QueryService(open_store(db))
    except QueryTrailError as e:
        print_error(f"Could not open query store: {escape(str(e))}", code="STORE_UNAVAILABLE")
        raise typer.Exit(code=1)


def _stats_table(title: str, rows: List[dict]) -> Table:
    table = Table(title=title)
    table.add_column("Query", style="cyan")
    table.add_column("Count", justify="right", style="magenta")
    for row in rows:
        table.add_row(escape(row["query"]), str(row["count"]))
    return table


def _print_lines(lines: List[str]) -> None:
    for line in lines:
        console.print(escape(line))


def _emit(payload, json_output: bool, render=None) -> None:
    """JSON in machine mode or with --json; otherwise the human renderer."""
    if json_output or CLIConfig.is_machine_mode() or render is None:
        print_json(payload, minified=False if json_output else None)
    else:
        render()


@app.command()
def version():
    """
    Prints the current version of QueryTrail.
    """
    typer.echo(f"QueryTrail v{__version__}")


@app.command()
def classify(
    text: str = typer.Argument(..., help="Query text to classify."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Report whether a query reads as a complete search, and which rule decided.
    """
    from querytrail.classifier import analyze

    analysis = analyze(text).to_dict()

    def render():
        verdict = "[green]complete[/green]" if analysis["appears_complete"] else "[yellow]incomplete[/yellow]"
        console.print(f"'{escape(analysis['text'])}' is {verdict} (rule: {analysis['rule']})")
        console.print(f"[dim]words={analysis['word_count']} chars={analysis['char_length']}[/dim]")

    _emit(analysis, json_output, render)


@app.command()
def record(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Current (possibly partial) query text."),
    user: str = typer.Option("cli", "--user", "-u", help="Opaque user key."),
    final: bool = typer.Option(False, "--final", help="The user finished typing."),
    force: bool = typer.Option(False, "--force", help="Complete regardless of analysis."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Record a keystroke-level query submission for a user.
    """
    outcome = _service(ctx).record_partial_query(text, user, client_says_final=final, force_complete=force)
    payload = outcome.model_dump(exclude_none=True)

    def render():
        if outcome.status == "ok":
            console.print(f"#{outcome.id} '{escape(outcome.query)}' -> [bold]{outcome.completeness}[/bold]")
        else:
            console.print(f"[red]{escape(outcome.message or outcome.status)}[/red]")

    _emit(payload, json_output, render)
    if outcome.status == "error":
        raise typer.Exit(code=1)


@app.command()
def finish(
    ctx: typer.Context,
    query_id: int = typer.Argument(..., help="Record id to finalize."),
    final_text: Optional[str] = typer.Option(None, "--final-text", help="Canonical final text."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Mark a tracked query completed and consolidate related queries.
    """
    result = _service(ctx).finish_query(query_id, final_text)
    _emit(result, json_output, lambda: console.print(
        f"#{query_id}: {escape(result.get('final_text') or result.get('message', ''))}"
    ))
    if result["status"] != "ok":
        raise typer.Exit(code=1)


@app.command()
def cleanup(
    ctx: typer.Context,
    user: str = typer.Option(..., "--user", "-u", help="Opaque user key."),
    final_text: str = typer.Option(..., "--final-text", help="Canonical text to consolidate toward."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Delete obsolete partial queries and merge similar completed ones for a user.
    """
    report = _service(ctx).cleanup(user, final_text).to_dict()
    _emit(report, json_output, lambda: console.print(
        f"Deleted {report['deleted']} partial, merged {report['merged']} completed queries"
    ))


@app.command()
def stats(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only this user's searches."),
    limit: int = typer.Option(20, "--limit", "-n", help="Max entries."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Most frequent completed searches, globally or for one user.
    """
    service = _service(ctx)
    entries = service.user_stats(user, limit) if user else service.global_stats(limit)
    rows = [entry.model_dump() for entry in entries]
    title = f"Searches by {user}" if user else "Global searches"
    _emit(rows, json_output, lambda: console.print(_stats_table(title, rows)))


@app.command()
def suggest(
    ctx: typer.Context,
    prefix: str = typer.Argument(..., help="Text typed so far."),
    limit: int = typer.Option(10, "--limit", "-n", help="Max suggestions."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Completed searches containing the given text.
    """
    suggestions = _service(ctx).suggestions(prefix, limit)
    _emit(suggestions, json_output, lambda: _print_lines(suggestions))


@app.command()
def popular(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", help="Max entries."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Most frequent completed searches.
    """
    searches = _service(ctx).popular_searches(limit)
    _emit(searches, json_output, lambda: _print_lines(searches))


@app.command()
def top(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", help="Max entries."),
    days: int = typer.Option(7, "--days", "-d", help="Lookback period in days."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Most frequently submitted query texts over a recent period.
    """
    rows = [entry.model_dump() for entry in _service(ctx).top_queries(limit, days)]
    _emit(rows, json_output, lambda: console.print(_stats_table(f"Top queries ({days}d)", rows)))


@app.command()
def recent(
    ctx: typer.Context,
    user: str = typer.Option(..., "--user", "-u", help="Opaque user key."),
    limit: int = typer.Option(5, "--limit", "-n", help="Max entries."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    A user's most recent distinct completed searches.
    """
    searches = _service(ctx).recent_searches(user, limit)
    _emit(searches, json_output, lambda: _print_lines(searches))


@app.command()
def serve(
    ctx: typer.Context,
    transport: str = typer.Option("stdio", "--transport", "-t", help="stdio, http or sse."),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address for http/sse."),
    port: int = typer.Option(8000, "--port", "-p", help="Port for http/sse."),
):
    """
    Run the MCP server exposing the query tools.
    """
    from querytrail.mcp import run_server
    from querytrail.mcp.service_manager import configure_service

    db = (ctx.obj or {}).get("db")
    if db is not None:
        configure_service(db)

    logger.info(f"Starting QueryTrail MCP server ({transport})")
    run_server(transport=transport, host=host, port=port)


if __name__ == "__main__":
    app()
