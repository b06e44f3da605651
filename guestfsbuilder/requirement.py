import os

from .cli_logger import logger
from .errors import UnsatisfiedRequirementError

DEFAULT_HOST_PREFIX = "/usr/local"


class MacFuseRequirement:
    """macFUSE has to be installed out-of-band before libguestfs can build.

    The package manager cannot see the cask in its dependency graph, so the
    check is purely path based: the header must exist, and neither it nor the
    include directory may be a symlink to some other FUSE installation.
    """

    name = "macfuse"
    message = "macFUSE is required to build libguestfs. Please run `brew install --cask macfuse` first."

    def __init__(self, root="/usr/local"):
        self.root = root

    @property
    def include_dir(self):
        return os.path.join(self.root, "include", "fuse")

    @property
    def header(self):
        return os.path.join(self.include_dir, "fuse.h")

    @property
    def lib_dir(self):
        return os.path.join(self.root, "lib")

    def satisfied(self):
        if not os.path.exists(self.header):
            return False
        return not (os.path.islink(self.include_dir) or os.path.islink(self.header))

    def check(self):
        """Raise ``UnsatisfiedRequirementError`` unless macFUSE is installed."""
        if not self.satisfied():
            logger.error(self.message)
            raise UnsatisfiedRequirementError(self.name, self.message)
        logger.success(f"Found macFUSE headers at {self.include_dir}")

    def search_paths(self, host_prefix):
        """Extra compiler search paths to append for this requirement.

        Nothing is needed when the package manager itself lives in the same
        prefix as macFUSE; adding it again would duplicate its own entries.
        """
        if os.path.normpath(host_prefix) == os.path.normpath(DEFAULT_HOST_PREFIX):
            return {}
        return {
            "HOMEBREW_LIBRARY_PATHS": self.lib_dir,
            "HOMEBREW_INCLUDE_PATHS": self.include_dir,
        }
