import click
from .. import config as config_module
from .. import formula


@click.command()
@click.pass_context
@click.option("--prefix", default=None, help="Install prefix to render the caveats for.")
def caveats(ctx, prefix):
    """Show how to use the installed libguestfs."""
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.resolve_settings(conf, prefix=prefix)
    click.echo(formula.caveats(settings.prefix))
