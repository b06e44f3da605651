import toml
import os
from dataclasses import dataclass
from . import formula
from .cli_logger import logger
from .requirement import DEFAULT_HOST_PREFIX

CONFIG_FILE = "guestfsbuilder.toml"
DEFAULT_PREFIX = os.path.join(os.path.expanduser("~"), ".guestfsbuilder", "Cellar", formula.NAME)
DEFAULT_BUILDPATH = os.path.join(os.path.expanduser("~"), ".guestfsbuilder", "build", formula.NAME)


@dataclass(frozen=True)
class BuildSettings:
    prefix: str
    buildpath: str
    host_prefix: str
    source_url: str
    source_sha256: str
    head_url: str
    appliance: formula.PinnedResource
    head: bool = False
    verbose: bool = False

    @property
    def version(self):
        return "HEAD" if self.head else formula.version(self.source_url)


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False


def resolve_settings(conf, head=False, verbose=False, **overrides):
    """Merge formula defaults, the config file and command-line overrides.

    ``overrides`` may carry ``prefix``, ``buildpath`` and ``host_prefix``;
    ``None`` values are ignored.
    """
    build = conf.get("build", {})
    source = conf.get("source", {})
    appliance = conf.get("appliance", {})
    overrides = {k: v for k, v in overrides.items() if v is not None}

    host_prefix = (
        overrides.get("host_prefix")
        or build.get("host_prefix")
        or os.environ.get("HOMEBREW_PREFIX")
        or DEFAULT_HOST_PREFIX
    )
    return BuildSettings(
        prefix=os.path.abspath(overrides.get("prefix") or build.get("prefix") or DEFAULT_PREFIX),
        buildpath=os.path.abspath(overrides.get("buildpath") or build.get("buildpath") or DEFAULT_BUILDPATH),
        host_prefix=host_prefix,
        source_url=source.get("url", formula.URL),
        source_sha256=source.get("sha256", formula.SHA256),
        head_url=source.get("head", formula.HEAD),
        appliance=formula.PinnedResource(
            name=formula.FIXED_APPLIANCE.name,
            url=appliance.get("url", formula.FIXED_APPLIANCE.url),
            sha256=appliance.get("sha256", formula.FIXED_APPLIANCE.sha256),
        ),
        head=head,
        verbose=verbose,
    )


# Dotted keys read by resolve_settings, with where each lands in BuildSettings.
SETTING_KEYS = {
    "build.prefix": lambda s: s.prefix,
    "build.buildpath": lambda s: s.buildpath,
    "build.host_prefix": lambda s: s.host_prefix,
    "source.url": lambda s: s.source_url,
    "source.sha256": lambda s: s.source_sha256,
    "source.head": lambda s: s.head_url,
    "appliance.url": lambda s: s.appliance.url,
    "appliance.sha256": lambda s: s.appliance.sha256,
}
KNOWN_KEYS = tuple(SETTING_KEYS)


def effective_values(conf):
    """Every known key with the value an install would actually use."""
    settings = resolve_settings(conf)
    return {key: value(settings) for key, value in SETTING_KEYS.items()}
