"""zclgen CLI - zclgen command."""

import click

from zclgen.cli.generate import generate_command
from zclgen.cli.load import load_command, load_file_command
from zclgen.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="zclgen")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """zclgen - ZCL metadata loader and template-driven code generator."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(load_command, name="load")
cli.add_command(load_file_command, name="load-file")
cli.add_command(generate_command, name="generate")


if __name__ == "__main__":
    cli()
