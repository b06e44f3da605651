import click
from .. import config as config_module
from .. import builder
from .. import formula
from ..cli_logger import logger
from ..decorators import handle_exceptions


@click.command()
@click.pass_context
@click.option("--head", is_flag=True, help="Build from the git repository instead of the release archive.")
@click.option("--prefix", default=None, help="Install prefix for libguestfs.")
@click.option("--buildpath", default=None, help="Directory the sources are unpacked and built in.")
@click.option("--host-prefix", default=None, help="Prefix of the package manager providing the dependencies.")
@click.option("--verbose", "-v", is_flag=True, help="Echo the output of every build command.")
@handle_exceptions
def install(ctx, head, prefix, buildpath, host_prefix, verbose):
    """Fetch, patch, build and install libguestfs."""
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.resolve_settings(
        conf,
        head=head,
        verbose=verbose,
        prefix=prefix,
        buildpath=buildpath,
        host_prefix=host_prefix,
    )
    builder.install_libguestfs(settings)
    click.echo()
    click.echo(formula.caveats(settings.prefix))
