"""
Declarative description of the libguestfs build.

Nothing in here runs anything: the planner, resolver and builder read these
values and decide what to do with them.
"""
import re
from dataclasses import dataclass

NAME = "libguestfs"
DESC = "Tools for accessing and modifying virtual machine disk images"
HOMEPAGE = "https://libguestfs.org/"

# 1.48.4 is the latest stable release, but it lacks a lot of the macOS fixes
# that landed on the development branch since.
URL = "https://libguestfs.org/download/1.49-development/libguestfs-1.49.5.tar.gz"
SHA256 = "7923af8a5e2aa44268a5fed3cfb0634884e6562c88f46af65f066ce6a74547c4"
HEAD = "https://github.com/libguestfs/libguestfs.git"


@dataclass(frozen=True)
class PinnedResource:
    name: str
    url: str
    sha256: str


@dataclass(frozen=True)
class PatchArtifact:
    """A unified diff shipped inside the package under ``patches/``."""
    name: str
    filename: str
    sha256: str
    strip: int = 1


# The appliance cannot be built here, so a fixed one is downloaded instead.
FIXED_APPLIANCE = PinnedResource(
    name="fixed_appliance",
    url="file:///tmp/appliance-1.44.0.tar.xz",
    sha256="622b222c18882455e55745531b1d06e4663b25558e5f1123a375ab6da346042c",
)

# Links libvirt-is-version against gnulib and adds the missing errno.h include.
DARWIN_PATCH = PatchArtifact(
    name="libguestfs-darwin",
    filename="libguestfs-darwin.diff",
    sha256="3186ce84f26d823665ea5f9408541e9752b578a0e4a3d32b954512280c7d588d",
)

APPLIANCE_SUBDIR = ("var", "libguestfs-appliance")

FUSE_INCLUDE_DIR = "/usr/local/include/fuse"
FUSE_CFLAGS = f"-D_FILE_OFFSET_BITS=64 -D_DARWIN_USE_64_BIT_INODE -I{FUSE_INCLUDE_DIR}"
FUSE_LIBS = "-lfuse -pthread -liconv"

# Formulae whose lib/pkgconfig is prepended to PKG_CONFIG_PATH, in order.
# The last one ends up first in the search path.
PKG_CONFIG_EXTENSIONS = ("ncurses", "augeas", "jansson", "hivex")

# Keep the upstream Makefiles from probing for rpm, dpkg and pacman.
FOREIGN_PACKAGE_TOOL_OVERRIDES = {
    "HAVE_RPM_FALSE": "#",
    "HAVE_DPKG_FALSE": "#",
    "HAVE_PACMAN_FALSE": "#",
}

# --disable-golang appears twice upstream; kept as-is, configure ignores it.
DISABLED_FEATURES = (
    "probes",
    "appliance",
    "daemon",
    "ocaml",
    "lua",
    "haskell",
    "erlang",
    "gobject",
    "golang",
    "ruby",
    "golang",
    "php",
    "perl",
    "python",
)

MAN_SECTIONS = ("man1", "man3", "man5")
PUBLIC_HEADER = "guestfs.h"


def version(url=URL):
    """Extract the release version from a source archive URL."""
    match = re.search(r"-(\d+(?:\.\d+)+)\.tar", url)
    return match.group(1) if match else "HEAD"


def configure_args(prefix):
    args = [
        "--disable-dependency-tracking",
        "--disable-silent-rules",
        f"--prefix={prefix}",
        "--with-distro=DARWIN",
    ]
    args.extend(f"--disable-{feature}" for feature in DISABLED_FEATURES)
    return args


def appliance_path(prefix):
    return "/".join((prefix.rstrip("/"),) + APPLIANCE_SUBDIR)


def caveats(prefix):
    appliance = appliance_path(prefix)
    return f"""A fixed appliance is required for libguestfs to work on Mac OS X.
This formula downloads the appliance and places it in:
{appliance}

To use the appliance, add the following to your shell configuration:
export LIBGUESTFS_PATH={appliance}
and use libguestfs binaries in the normal way.

For compilers to find libguestfs you may need to set:
  export LDFLAGS="-L{prefix}/lib"
  export CPPFLAGS="-I{prefix}/include"

For pkg-config to find libguestfs you may need to set:
  export PKG_CONFIG_PATH="{prefix}/lib/pkgconfig"
"""
