import os
from ..cli_logger import logger
from ..errors import PatchApplicationError
from .command_executor import run_shell_command
from .file_manager import verify_sha256

PATCH_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "patches")


def patch_path(patch) -> str:
    return os.path.join(PATCH_DIR, patch.filename)


def apply_patch(patch, package_source_path: str) -> None:
    """
    Verifies and applies a shipped patch to a source tree.

    The patch is first checked against its pinned sha256, then dry-run so a
    patch that does not apply leaves the tree untouched.

    Args:
        patch: The ``PatchArtifact`` to apply.
        package_source_path: The absolute path to the unpacked source tree.

    Raises:
        IntegrityMismatchError: if the patch file does not match its checksum.
        PatchApplicationError: if the patch does not apply cleanly.
    """
    path = patch_path(patch)
    verify_sha256(patch.name, path, patch.sha256, discard=False)

    logger.info(f"  - Applying patch: {patch.filename}")
    base = ["patch", f"-p{patch.strip}", "--forward", "-i", path]
    for command in (base + ["--dry-run"], base):
        stdout, stderr, returncode = run_shell_command(command, cwd=package_source_path)
        if returncode != 0:
            logger.error(f"    - Failed to apply patch {patch.filename}: (Exit Code: {returncode})")
            if stdout:
                logger.error(f"      Patch Stdout:\n{stdout}")
            if stderr:
                logger.error(f"      Patch Stderr:\n{stderr}")
            raise PatchApplicationError(patch.name, stdout + stderr)
    logger.success(f"    - Successfully applied patch: {patch.filename}")
