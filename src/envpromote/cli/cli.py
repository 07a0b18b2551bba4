import logging

import click

from envpromote.cli.commands.config import config_group
from envpromote.cli.commands.pr import pr_group
from envpromote.cli.commands.promote import promote_cmd
from envpromote.core.config import ConfigError
from envpromote.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="envpromote")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Promote application versions to GitOps environments via pull requests."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_context()
        except ConfigError as e:
            raise click.ClickException(str(e)) from e


cli.add_command(promote_cmd)
cli.add_command(pr_group)
cli.add_command(config_group)
