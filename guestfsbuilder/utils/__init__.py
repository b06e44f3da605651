from .command_executor import run_shell_command, run_logged_command
from .file_manager import (
    _safe_join,
    _safe_extract_tar,
    download,
    extract,
    fetch_verified,
    install_file,
    install_glob,
    sha256_file,
    verify_sha256,
)
from .patch_resolver import apply_patch
