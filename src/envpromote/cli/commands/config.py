import click

from envpromote.core.config import CONFIG_KEYS, ConfigError, write_config_value
from envpromote.core.context import PromoteContext
from envpromote.core.output import machine_output, user_output


@click.group("config")
def config_group() -> None:
    """Manage envpromote configuration."""


@config_group.command("list")
@click.pass_obj
def config_list(ctx: PromoteContext) -> None:
    """Print every configuration value."""
    user_output(click.style(f"# {ctx.config_path}", dim=True))
    for key in CONFIG_KEYS:
        machine_output(f"{key}={ctx.config.display_value(key)}")
    for host, kind in sorted(ctx.config.hosts.items()):
        machine_output(f"hosts.{host}={kind}")


@config_group.command("get")
@click.argument("key")
@click.pass_obj
def config_get(ctx: PromoteContext, key: str) -> None:
    """Print the value of KEY."""
    try:
        machine_output(ctx.config.display_value(key))
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(ctx: PromoteContext, key: str, value: str) -> None:
    """Set KEY to VALUE (use hosts.<host> to declare a git server kind)."""
    try:
        write_config_value(ctx.config_path, key, value)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    user_output(f"Set {key}={value} in {ctx.config_path}")
