import os
from types import MappingProxyType

from . import formula
from .cli_logger import logger
from .dependencies import Platform, opt_prefix

# Per-step override for steps that must run make with a single job.
SINGLE_JOB = (("MAKEFLAGS", "-j1"), ("HOMEBREW_MAKE_JOBS", "1"))


class BuildEnvironment:
    """Immutable set of environment variables handed to each build step.

    Every modifier returns a new environment; ``os.environ`` is never touched.
    """

    def __init__(self, variables=None):
        self._variables = MappingProxyType(dict(variables or {}))

    @property
    def variables(self):
        return self._variables

    def __getitem__(self, key):
        return self._variables[key]

    def __contains__(self, key):
        return key in self._variables

    def __eq__(self, other):
        if not isinstance(other, BuildEnvironment):
            return NotImplemented
        return dict(self._variables) == dict(other._variables)

    def __repr__(self):
        return f"BuildEnvironment({dict(self._variables)!r})"

    def get(self, key, default=None):
        return self._variables.get(key, default)

    def set(self, **values):
        variables = dict(self._variables)
        variables.update(values)
        return BuildEnvironment(variables)

    def update(self, values):
        return self.set(**values)

    def prepend_path(self, key, path):
        current = self._variables.get(key)
        return self.set(**{key: f"{path}{os.pathsep}{current}" if current else path})

    def append_path(self, key, path):
        current = self._variables.get(key)
        return self.set(**{key: f"{current}{os.pathsep}{path}" if current else path})

    def as_dict(self):
        return dict(self._variables)


def assemble_environment(host_prefix, platform, requirement=None, base=None):
    """Build the environment every step of the pipeline runs with."""
    logger.info("  - Assembling build environment...")
    env = BuildEnvironment(os.environ if base is None else base)

    if platform is Platform.MACOS:
        if requirement is not None:
            for key, path in requirement.search_paths(host_prefix).items():
                env = env.append_path(key, path)
        # macFUSE only; Linux gets libfuse through pkg-config
        env = env.set(FUSE_CFLAGS=formula.FUSE_CFLAGS, FUSE_LIBS=formula.FUSE_LIBS)

    env = env.set(LC_ALL="C")
    for ext in formula.PKG_CONFIG_EXTENSIONS:
        env = env.prepend_path("PKG_CONFIG_PATH", os.path.join(opt_prefix(host_prefix, ext), "lib", "pkgconfig"))
    env = env.update(formula.FOREIGN_PACKAGE_TOOL_OVERRIDES)

    logger.debug(f"  - PKG_CONFIG_PATH={env['PKG_CONFIG_PATH']}")
    return env
