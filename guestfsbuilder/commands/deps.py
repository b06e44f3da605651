import click
from ..dependencies import Platform, Source, current_platform, plan

SOURCE_LABELS = {
    Source.PACKAGE: "",
    Source.SYSTEM: " (provided by the system)",
    Source.EXTERNAL: " (install separately)",
}


@click.command()
@click.option(
    "--platform", "platform_name",
    type=click.Choice([p.value for p in Platform]),
    default=None,
    help="Platform to plan for. Defaults to the current one.",
)
def deps(platform_name):
    """List the dependencies of libguestfs."""
    platform = Platform(platform_name) if platform_name else current_platform()
    click.echo(f"Dependencies for {platform.value}:")
    for dep in plan(platform):
        click.echo(f"  {dep.name} [{dep.phase.value}]{SOURCE_LABELS[dep.source]}")
