"""
Command line front-end (``mcpani``).
"""
import logging
from pathlib import Path
from typing import Optional

import click

from mini_inject.domain.errors import InjectError
from mini_inject.services.injector import Injector

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _injector(ctx: click.Context) -> Injector:
    try:
        return Injector.from_config_file(ctx.obj["config"])
    except InjectError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option(
    "--config",
    "config",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: $MCPANI_CONFIG, ~/.mcpani/config, /usr/local/etc/mcpani, /etc/mcpani).",
)
@click.option("-v", "--verbose", is_flag=True, help="Print each step.")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool) -> None:
    """Inject private modules into a local CPAN mirror."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--module", required=True, help="Module name, e.g. CPAN::Mini::Inject.")
@click.option("--authorid", required=True, help="Author id the module is filed under.")
@click.option("--modversion", required=True, help="Module version.")
@click.option("--file", "file", required=True, type=click.Path(path_type=Path), help="Distribution tarball.")
@click.pass_context
def add(ctx: click.Context, module: str, authorid: str, modversion: str, file: Path) -> None:
    """Add a module to the repository."""
    injector = _injector(ctx)
    try:
        injector.add(module=module, authorid=authorid, version=modversion, file=str(file)).writelist()
    except InjectError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.pass_context
def inject(ctx: click.Context) -> None:
    """Inject the repository's modules into the local mirror."""
    injector = _injector(ctx)
    try:
        injector.inject(ctx.obj["verbose"])
    except InjectError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option("--remote", default=None, help="Mirror from this site instead of probing the configured ones.")
@click.option("--local", default=None, help="Mirror into this directory instead of the configured one.")
@click.pass_context
def mirror(ctx: click.Context, remote: Optional[str], local: Optional[str]) -> None:
    """Update the local mirror from a remote site."""
    injector = _injector(ctx)
    try:
        injector.update_mirror(remote=remote, local=local, trace=ctx.obj["verbose"])
    except InjectError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.pass_context
def testremote(ctx: click.Context) -> None:
    """Print the first configured remote site that responds."""
    injector = _injector(ctx)
    try:
        injector.testremote(ctx.obj["verbose"])
    except InjectError as e:
        raise click.ClickException(str(e)) from e
    click.echo(injector.site)


@cli.command("list")
@click.pass_context
def list_modules(ctx: click.Context) -> None:
    """Show the modules waiting in the repository."""
    injector = _injector(ctx)
    try:
        injector.readlist()
    except InjectError as e:
        raise click.ClickException(str(e)) from e
    for line in injector.module_list.sorted_records():
        click.echo(line)


if __name__ == "__main__":
    cli()
