import click
import importlib.metadata
from .. import formula
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of guestfsbuilder and of the libguestfs it builds."""
    try:
        ver = importlib.metadata.version("guestfsbuilder")
        logger.info(f"guestfsbuilder version {ver} (libguestfs {formula.version()})")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of guestfsbuilder. Is it installed correctly?")
