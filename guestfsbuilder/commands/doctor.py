import sys
import click
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..dependencies import Platform, current_platform, missing_dependencies, plan
from ..requirement import MacFuseRequirement


@click.command()
@click.pass_context
@handle_exceptions
def doctor(ctx):
    """Check that everything libguestfs needs to build is installed."""
    logger.info("Running environment check...")
    settings = config_module.resolve_settings(config_module.load_config(path=ctx.obj["path"]))
    platform = current_platform()
    ok = True

    if platform is Platform.MACOS:
        requirement = MacFuseRequirement()
        if requirement.satisfied():
            logger.success(f"macFUSE found at {requirement.include_dir}")
        else:
            logger.error(requirement.message)
            ok = False

    missing = missing_dependencies(plan(platform), settings.host_prefix)
    for dep in missing:
        logger.warning(f"  - {dep.name} is not installed under {settings.host_prefix}")
    if missing:
        ok = False

    if ok:
        logger.success("Environment check completed successfully.")
    else:
        logger.error("Environment check found issues. Please review the warnings/errors above.")
        sys.exit(1)
