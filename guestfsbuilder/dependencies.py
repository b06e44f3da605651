import os
import sys
from dataclasses import dataclass
from enum import Enum

from .cli_logger import logger


class Platform(Enum):
    MACOS = "macos"
    LINUX = "linux"
    OTHER = "other"


class Phase(Enum):
    BUILD = "build"
    RUNTIME = "runtime"  # needed to build and at runtime


class Scope(Enum):
    ALL = "all"
    MACOS = "macos"
    LINUX = "linux"


class Source(Enum):
    PACKAGE = "package"
    SYSTEM = "system"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Dependency:
    name: str
    phase: Phase = Phase.RUNTIME
    scope: Scope = Scope.ALL
    source: Source = Source.PACKAGE

    @property
    def build_only(self):
        return self.phase is Phase.BUILD


BUILD_TOOLS = (
    "autoconf",
    "automake",
    "bison",     # the macOS bison is one minor revision too old
    "gnu-sed",   # some Makefiles rely on GNU sed extensions
    "libtool",
    "ocaml",
    "ocaml-findlib",
    "pkg-config",
)

RUNTIME_LIBRARIES = (
    "augeas",
    "cdrtools",
    "coreutils",
    "cpio",
    "flex",
    "glib",
    "gperf",
    "hivex",
    "jansson",
    "libmagic",
    "libvirt",
    "pcre",
    "qemu",
    "readline",
    "xz",
)

# Shipped by macOS itself, fetched from the package repository elsewhere.
USES_FROM_MACOS = ("libxml2", "ncurses")

# macFUSE provides these on macOS.
LINUX_ONLY_LIBRARIES = ("libcap", "libfuse")

MACFUSE = "macfuse"


def current_platform(name=None):
    name = name or sys.platform
    if name == "darwin":
        return Platform.MACOS
    if name.startswith("linux"):
        return Platform.LINUX
    return Platform.OTHER


def plan(platform):
    """Return the ordered dependency set for ``platform``.

    Build tools come first, then runtime libraries, then the libraries the
    platform may already provide, then whatever is specific to the platform.
    """
    deps = [Dependency(name, phase=Phase.BUILD) for name in BUILD_TOOLS]
    deps.extend(Dependency(name) for name in RUNTIME_LIBRARIES)

    system_source = Source.SYSTEM if platform is Platform.MACOS else Source.PACKAGE
    deps.extend(Dependency(name, source=system_source) for name in USES_FROM_MACOS)

    if platform is Platform.MACOS:
        # Only needs to be present while building, nothing links to the cask.
        deps.append(Dependency(MACFUSE, phase=Phase.BUILD, scope=Scope.MACOS, source=Source.EXTERNAL))
    elif platform is Platform.LINUX:
        deps.extend(Dependency(name, scope=Scope.LINUX) for name in LINUX_ONLY_LIBRARIES)

    return tuple(_dedupe(deps))


def _dedupe(deps):
    seen = set()
    for dep in deps:
        if dep.name in seen:
            continue
        seen.add(dep.name)
        yield dep


def runtime_requirements(deps):
    """Dependencies that end up as runtime requirements of the installed library."""
    return tuple(dep for dep in deps if not dep.build_only)


def fetched_dependencies(deps):
    """Dependencies the package manager has to install itself."""
    return tuple(dep for dep in deps if dep.source is Source.PACKAGE)


def opt_prefix(host_prefix, name):
    return os.path.join(host_prefix, "opt", name)


def missing_dependencies(deps, host_prefix):
    """Return the package-managed dependencies not linked under ``<host_prefix>/opt``."""
    missing = []
    for dep in fetched_dependencies(deps):
        if not os.path.isdir(opt_prefix(host_prefix, dep.name)):
            logger.debug(f"  - {dep.name} not found under {host_prefix}/opt")
            missing.append(dep)
    return missing
