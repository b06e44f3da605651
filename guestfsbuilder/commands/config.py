import click
import os
import json
from .. import config as config_module
from ..cli_logger import logger


def _lookup(conf, key):
    value = conf
    for k in key.split('.'):
        value = value[k]
    return value


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the guestfsbuilder.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """View the contents of the guestfsbuilder.toml file."""
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    if not os.path.exists(config_file_path):
        logger.error("Error: No guestfsbuilder.toml found. Use 'guestfsbuilder config set' to create one.")
        return
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading guestfsbuilder.toml at {config_file_path}: {e}")
        logger.info("Please check file permissions.")

@config.command("list")
@click.option('--effective', is_flag=True, help="Show every known key with the value an install would use.")
@click.pass_context
def list_values(ctx, effective):
    """List the configured keys and values."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if effective:
        conf = config_module.effective_values(conf)
    click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value, falling back to the built-in default for known keys."""
    conf = config_module.load_config(path=ctx.obj["path"])
    try:
        click.echo(_lookup(conf, key))
        return
    except (KeyError, TypeError):
        pass

    if key in config_module.KNOWN_KEYS:
        logger.info(f"'{key}' is not set in guestfsbuilder.toml, showing the default")
        click.echo(config_module.effective_values(conf)[key])
    else:
        logger.error(f"Error: Key '{key}' not found in guestfsbuilder.toml")

@config.command("set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set one of the known keys in the guestfsbuilder.toml file."""
    if key not in config_module.KNOWN_KEYS:
        logger.error(f"Error: Unknown key '{key}'. Known keys: {', '.join(config_module.KNOWN_KEYS)}")
        return

    conf = config_module.load_config(path=ctx.obj["path"])
    section, name = key.split('.')
    if not isinstance(conf.get(section), dict):
        conf[section] = {}
    conf[section][name] = value

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to '{value}'")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key from the guestfsbuilder.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])

    keys = key.split('.')
    d = conf
    try:
        for k in keys[:-1]:
            d = d[k]
        del d[keys[-1]]
        if config_module.save_config(conf, path=ctx.obj["path"]):
            logger.info(f"Unset '{key}'")
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in guestfsbuilder.toml")
