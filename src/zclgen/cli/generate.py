"""zclgen generate command - render a template set against loaded metadata."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from zclgen.cli.utils import open_database, start_run
from zclgen.config import ZclGenConfig
from zclgen.core.errors import ZclGenError
from zclgen.generator import TemplateEngine, generate, load_templates
from zclgen.loader import load_metadata
from zclgen.store.database import Database


async def _run(config: ZclGenConfig, db: Database, templates: Path, zcl: Path) -> dict[str, str]:
    context = await load_metadata(db, zcl, config.loader)
    template_context = load_templates(db, templates)
    engine = TemplateEngine(config.generator)
    return await generate(db, template_context, context.package_id, engine)


@click.command("generate")
@click.argument("templates", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--zcl",
    "zcl",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Metadata manifest to generate against",
)
@click.option("--db", "db_path", type=click.Path(path_type=Path), help="SQLite database file")
@click.option(
    "--out",
    "out_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for generated files",
)
def generate_command(templates: Path, zcl: Path, db_path: Path | None, out_dir: Path) -> None:
    """Generate code from TEMPLATES (a template manifest) and a metadata manifest."""
    config = start_run()
    db = open_database(config, db_path)
    try:
        outputs = asyncio.run(_run(config, db, templates, zcl))
    except ZclGenError as e:
        raise click.ClickException(str(e)) from e
    finally:
        db.dispose()

    console = Console(stderr=True)
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, text in sorted(outputs.items()):
        target = out_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        console.print(f"  [green]wrote[/green] {target}")
    console.print(f"[bold]{len(outputs)}[/bold] file(s) generated in {out_dir}")
