"""
Command-line interface for autojoin.

Builds table graphs from introspected schemas, inspects path indexes and
resolves join paths for a set of tables.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from autojoin import __version__
from autojoin.config import SearchSettings, load_settings
from autojoin.graph import (
    build_exit_payloads,
    compute_paths_for_tables,
    compute_paths_index,
    load_graph,
    save_graph,
)
from autojoin.graph.exits import exit_payloads_to_dict
from autojoin.joins import find_join_paths, get_joins, select_join_tree
from autojoin.loader import load_schema, save_schema, write_document
from autojoin.models import CustomReference, JoinStatus, SchemaFormatError, TableGraph
from autojoin.output import PumlWriter
from autojoin.references import (
    add_custom_reference,
    graph_for_schema,
    rebuild_graph,
    remove_custom_reference,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def _parse_tables(tables: Optional[str]) -> List[str]:
    if not tables:
        return []
    return [t.strip() for t in tables.split(",") if t.strip()]


def _parse_column_ref(value: str, option: str) -> tuple:
    table, sep, column = value.partition(".")
    if not sep or not table or not column:
        raise click.BadParameter(f"expected TABLE.COLUMN, got {value!r}", param_hint=option)
    return table, column


def _load_graph_source(
    settings: SearchSettings,
    schema: Optional[Path],
    graph: Optional[Path],
) -> TableGraph:
    """Graph from a stored graph file or built from a schema file."""
    if bool(schema) == bool(graph):
        _fail("Provide exactly one of --schema or --graph")
    try:
        if graph:
            return load_graph(graph)
        description = load_schema(schema)
        return graph_for_schema(description, settings)
    except SchemaFormatError as e:
        _fail(str(e))


schema_option = click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Schema description file (JSON or YAML)",
)
graph_option = click.option(
    "--graph",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Stored graph file produced by 'autojoin graph'",
)


@click.group()
@click.version_option(version=__version__, prog_name="autojoin")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with search settings",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Optional[Path]) -> None:
    """
    AutoJoin - join path resolution over foreign-key graphs

    Build a table graph from schema metadata and find the joins that connect
    any set of tables.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(config) if config else SearchSettings()


@cli.command()
@click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Schema description file (JSON or YAML)",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    required=True,
    help="Output path for the stored graph (JSON)",
)
@click.pass_context
def graph(ctx: click.Context, schema: Path, output: Path) -> None:
    """
    Build the table graph for a schema and store it.

    Examples:

        autojoin graph --schema sakila.json --output sakila-graph.json
    """
    settings: SearchSettings = ctx.obj["settings"]
    try:
        description = load_schema(schema)
    except SchemaFormatError as e:
        _fail(str(e))

    table_graph = graph_for_schema(description, settings)
    save_graph(table_graph, output)

    summary = Table(title="Graph Summary")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Tables", str(table_graph.node_count))
    summary.add_row("Edges", str(table_graph.edge_count))
    summary.add_row("Custom References", str(len(description.custom_references)))
    summary.add_row("Graph Location", str(output))
    console.print(summary)


@cli.command()
@schema_option
@graph_option
@click.option(
    "--tables",
    type=str,
    default=None,
    help="Comma-separated tables to restrict the index to (default: all tables)",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for the paths index (JSON)",
)
@click.pass_context
def paths(
    ctx: click.Context,
    schema: Optional[Path],
    graph: Optional[Path],
    tables: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Show the cheapest paths between tables.

    Examples:

        autojoin paths --graph sakila-graph.json --tables payment,film
    """
    settings: SearchSettings = ctx.obj["settings"]
    table_graph = _load_graph_source(settings, schema, graph)
    table_list = _parse_tables(tables)

    if table_list:
        index = compute_paths_for_tables(table_graph, table_list, settings)
    else:
        index = compute_paths_index(table_graph, settings)

    result = Table(title="Best Paths")
    result.add_column("From", style="cyan")
    result.add_column("To", style="cyan")
    result.add_column("Cost", style="yellow", justify="right")
    result.add_column("Path", style="green")
    for start, targets in index.paths.items():
        for target, candidates in targets.items():
            for path in candidates:
                result.add_row(start, target, f"{path.cost:g}", path.label)
    console.print(result)

    if output:
        write_document(index.to_dict(), output)
        console.print(f"[green]Paths index saved to: {output}[/green]")


@cli.command()
@schema_option
@graph_option
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for the exit payloads (JSON)",
)
@click.pass_context
def exits(ctx: click.Context, schema: Optional[Path], graph: Optional[Path], output: Optional[Path]) -> None:
    """Group each table's best paths by the first table they pass through."""
    settings: SearchSettings = ctx.obj["settings"]
    table_graph = _load_graph_source(settings, schema, graph)
    payloads = build_exit_payloads(compute_paths_index(table_graph, settings))

    for table_name, table_exits in payloads.items():
        console.print(f"[bold]{table_name}[/bold]")
        for exit_payload in table_exits:
            console.print(f"  -> [cyan]{exit_payload.exit_to}[/cyan]")
            for path in exit_payload.paths:
                console.print(f"       {path.label} ({path.cost:g})")

    if output:
        write_document(exit_payloads_to_dict(payloads), output)
        console.print(f"[green]Exit payloads saved to: {output}[/green]")


@cli.command()
@schema_option
@graph_option
@click.option("--tables", type=str, required=True, help="Comma-separated tables to join")
@click.option("--as_json", is_flag=True, help="Print the raw result as JSON")
@click.pass_context
def resolve(
    ctx: click.Context,
    schema: Optional[Path],
    graph: Optional[Path],
    tables: str,
    as_json: bool,
) -> None:
    """
    Find the joins and join SQL connecting a set of tables.

    Exits with status 1 unless the tables could be joined.

    Examples:

        autojoin resolve --schema sakila.json --tables actor,film,category
    """
    settings: SearchSettings = ctx.obj["settings"]
    table_graph = _load_graph_source(settings, schema, graph)
    result = find_join_paths(table_graph, _parse_tables(tables), settings)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        color = "green" if result.status is JoinStatus.OK else "yellow"
        console.print(f"[{color}]{result.status.value}[/{color}]: {result.message}")
        if result.join_graph:
            joins = Table(title="Join Graph")
            joins.add_column("From", style="cyan")
            joins.add_column("To", style="cyan")
            joins.add_column("Constraint", style="yellow")
            joins.add_column("Columns", style="green")
            for edge in result.join_graph:
                columns = ", ".join(f"{p.source_column}={p.target_column}" for p in edge.column_pairs)
                joins.add_row(edge.source, edge.target, edge.constraint_name, columns)
            console.print(joins)
        if result.sql:
            console.print(result.sql, markup=False, highlight=False)

    if result.status is not JoinStatus.OK:
        sys.exit(1)


@cli.command()
@schema_option
@graph_option
@click.option("--tables", type=str, required=True, help="Comma-separated tables to join")
@click.pass_context
def joins(ctx: click.Context, schema: Optional[Path], graph: Optional[Path], tables: str) -> None:
    """Print the structured joins suggested for the join-path editor (JSON)."""
    settings: SearchSettings = ctx.obj["settings"]
    table_graph = _load_graph_source(settings, schema, graph)
    result = get_joins(table_graph, _parse_tables(tables), settings)
    click.echo(json.dumps(result.to_dict(), indent=2))
    if result.status is not JoinStatus.OK:
        sys.exit(1)


@cli.group()
def refs() -> None:
    """Add or remove custom references on a schema file."""


@refs.command("add")
@click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Schema description file to update",
)
@click.option("--id", "reference_id", type=str, required=True, help="Reference id")
@click.option("--source", type=str, required=True, help="Source column as TABLE.COLUMN")
@click.option("--target", type=str, required=True, help="Target column as TABLE.COLUMN")
@click.option(
    "--graph_out",
    type=click.Path(path_type=Path),
    default=None,
    help="Also store the rebuilt graph here",
)
@click.pass_context
def refs_add(
    ctx: click.Context,
    schema: Path,
    reference_id: str,
    source: str,
    target: str,
    graph_out: Optional[Path],
) -> None:
    """
    Declare a relationship the catalog does not know about.

    Examples:

        autojoin refs add --schema sakila.json --id 1 \\
            --source film_text.film_id --target film.film_id
    """
    settings: SearchSettings = ctx.obj["settings"]
    source_table, source_column = _parse_column_ref(source, "--source")
    target_table, target_column = _parse_column_ref(target, "--target")
    try:
        description = load_schema(schema)
    except SchemaFormatError as e:
        _fail(str(e))

    for table in (source_table, target_table):
        if description.get_table(table) is None:
            _fail(f"Table not found in schema: {table}")

    description.custom_references = add_custom_reference(
        description.custom_references,
        CustomReference(reference_id, source_table, source_column, target_table, target_column),
    )
    _save_references(description, schema, graph_out, settings)
    console.print(f"[green]Added custom reference {reference_id}[/green]")


@refs.command("remove")
@click.option(
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Schema description file to update",
)
@click.option("--id", "reference_id", type=str, required=True, help="Reference id")
@click.option(
    "--graph_out",
    type=click.Path(path_type=Path),
    default=None,
    help="Also store the rebuilt graph here",
)
@click.pass_context
def refs_remove(ctx: click.Context, schema: Path, reference_id: str, graph_out: Optional[Path]) -> None:
    """Remove a custom reference by id."""
    settings: SearchSettings = ctx.obj["settings"]
    try:
        description = load_schema(schema)
    except SchemaFormatError as e:
        _fail(str(e))

    if all(r.id != reference_id for r in description.custom_references):
        _fail(f"Custom reference not found: {reference_id}")

    description.custom_references = remove_custom_reference(description.custom_references, reference_id)
    _save_references(description, schema, graph_out, settings)
    console.print(f"[green]Removed custom reference {reference_id}[/green]")


def _save_references(description, schema: Path, graph_out: Optional[Path], settings: SearchSettings) -> None:
    # Rebuild before saving so an unusable reference set never reaches disk
    table_graph = rebuild_graph(description, description.custom_references, settings)
    save_schema(description, schema)
    if graph_out:
        save_graph(table_graph, graph_out)


@cli.command()
@schema_option
@graph_option
@click.option(
    "--output_dir",
    type=click.Path(path_type=Path),
    default=Path("puml"),
    help="Output directory for diagrams",
)
@click.option(
    "--tables",
    type=str,
    default=None,
    help="Comma-separated tables whose join tree should be highlighted",
)
@click.pass_context
def puml(
    ctx: click.Context,
    schema: Optional[Path],
    graph: Optional[Path],
    output_dir: Path,
    tables: Optional[str],
) -> None:
    """
    Export PlantUML diagrams of the graph, its exit paths and a join tree.

    Examples:

        autojoin puml --graph sakila-graph.json --output_dir puml \\
            --tables payment,film
    """
    settings: SearchSettings = ctx.obj["settings"]
    table_graph = _load_graph_source(settings, schema, graph)
    writer = PumlWriter(output_dir)

    written = [writer.write_graph(table_graph)]
    index = compute_paths_index(table_graph, settings)
    payloads = build_exit_payloads(index)
    written.append(writer.write_exits(table_graph, payloads))

    table_list = _parse_tables(tables)
    if table_list:
        tree = select_join_tree(table_list, compute_paths_for_tables(table_graph, table_list, settings))
        written.append(writer.write_join_tree(table_graph, table_list, tree))

    for path in written:
        console.print(f"[green]Wrote {path}[/green]")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
