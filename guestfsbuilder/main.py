import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Directory holding guestfsbuilder.toml.")
@click.pass_context
def cli(ctx, path):
    """Build and install libguestfs from source."""
    ctx.obj = {"path": path}

cli.add_command(install)
cli.add_command(check)
cli.add_command(deps)
cli.add_command(doctor)
cli.add_command(caveats)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
