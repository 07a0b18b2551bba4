"""Output helpers separating human-facing messages from machine-readable output."""

import click


def user_output(message: str = "", *, nl: bool = True) -> None:
    """Message for humans; goes to stderr so stdout stays parseable."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str) -> None:
    """Machine-readable output on stdout."""
    click.echo(message)
