import click
from .. import config as config_module
from .. import builder
from ..decorators import handle_exceptions


@click.command()
@click.pass_context
@click.option("--prefix", default=None, help="Install prefix libguestfs was installed into.")
@click.option("--buildpath", default=None, help="Build tree left behind by 'install'.")
@click.option("--verbose", "-v", is_flag=True, help="Echo the test output.")
@handle_exceptions
def check(ctx, prefix, buildpath, verbose):
    """Run upstream's quickcheck against the installed appliance."""
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.resolve_settings(conf, verbose=verbose, prefix=prefix, buildpath=buildpath)
    builder.run_quickcheck(settings)
