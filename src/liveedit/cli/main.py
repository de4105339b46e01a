"""liveedit CLI entry point: Click group with subcommands."""

import click

from liveedit import __version__
from liveedit.config import LiveEditConfig


@click.group()
@click.version_option(version=__version__, prog_name="liveedit")
@click.option(
    "--log-level",
    default=LiveEditConfig.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """liveedit - visual edits in a live preview, written back to source."""
    import logging

    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


# Import and register subcommands
from liveedit.cli.edit import apply_style, locate, replace_text  # noqa: E402
from liveedit.cli.serve import serve  # noqa: E402

cli.add_command(serve)
cli.add_command(locate)
cli.add_command(apply_style)
cli.add_command(replace_text)
