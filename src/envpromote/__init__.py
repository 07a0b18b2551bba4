"""envpromote CLI entry point.

This package promotes application versions between GitOps environments by
opening a pull request against an environment repository and driving it to
a terminal outcome. See `envpromote --help` for details.
"""

from envpromote.cli.cli import cli


def main() -> None:
    """CLI entry point used by the `envpromote` console script."""
    cli()
