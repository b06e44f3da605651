from .caveats import caveats
from .check import check
from .config import config
from .deps import deps
from .doctor import doctor
from .install import install
from .log import log
from .version import version

__all__ = ["caveats", "check", "config", "deps", "doctor", "install", "log", "version"]
