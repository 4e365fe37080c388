"""zclgen load / load-file commands - ingest ZCL metadata into the store."""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zclgen.cli.utils import open_database, start_run
from zclgen.core.errors import ZclGenError
from zclgen.loader import load_metadata, load_standalone_file
from zclgen.store import queries
from zclgen.store.database import Database


def _summary_table(package_id: int, counts: dict[str, int]) -> Table:
    table = Table(title=f"Package {package_id}", show_header=True, header_style="bold")
    table.add_column("Entity")
    table.add_column("Count", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table


def _count_entities(db: Database, package_id: int) -> dict[str, int]:
    with db.reader() as tx:
        return {
            "clusters": len(queries.select_all_clusters(tx, package_id)),
            "device types": len(queries.select_all_device_types(tx, package_id)),
            "enums": len(queries.select_all_enums(tx, package_id)),
            "bitmaps": len(queries.select_all_bitmaps(tx, package_id)),
            "structs": len(queries.select_all_structs(tx, package_id)),
        }


@click.command("load")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db", "db_path", type=click.Path(path_type=Path), help="SQLite database file")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def load_command(manifest: Path, db_path: Path | None, as_json: bool) -> None:
    """Load a metadata manifest (.properties or .json) and every file it names."""
    config = start_run()
    db = open_database(config, db_path)
    try:
        context = asyncio.run(load_metadata(db, manifest, config.loader))
        counts = _count_entities(db, context.package_id)
    except ZclGenError as e:
        raise click.ClickException(str(e)) from e
    finally:
        db.dispose()

    if as_json:
        payload = {
            "package_id": context.package_id,
            "already_loaded": context.already_loaded,
            "version": context.version,
            "files": [str(f) for f in context.files],
            "missing_files": context.missing_files,
            "counts": counts,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    console = Console(stderr=True)
    if context.already_loaded:
        console.print(f"[yellow]Already loaded[/yellow] {manifest} (package {context.package_id})")
    else:
        console.print(f"[green]Loaded[/green] {manifest} ({len(context.files)} files)")
    for name in context.missing_files:
        console.print(f"  [yellow]missing[/yellow] {name}")
    console.print(_summary_table(context.package_id, counts))


@click.command("load-file")
@click.argument("xml_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db", "db_path", type=click.Path(path_type=Path), help="SQLite database file")
def load_file_command(xml_file: Path, db_path: Path | None) -> None:
    """Load a single ZCL XML file as a standalone package.

    Prints the result as JSON. Exits non-zero when the load failed.
    """
    config = start_run()
    db = open_database(config, db_path)
    try:
        result = asyncio.run(load_standalone_file(db, xml_file))
    finally:
        db.dispose()
    click.echo(json.dumps(result.to_dict(), indent=2))
    if not result.succeeded:
        raise SystemExit(1)
