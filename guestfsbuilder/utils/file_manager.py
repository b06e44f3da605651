import os
import glob
import hashlib
import requests
import tarfile
import tempfile
import shutil
import contextlib
from urllib.parse import urlparse, unquote
from ..cli_logger import logger
from ..errors import IntegrityMismatchError

INSTALL_DIR = os.path.join(os.path.expanduser("~"), ".guestfsbuilder")
DOWNLOAD_DIR = os.path.join(INSTALL_DIR, "downloads")

# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _safe_extract_tar(tar_ref: tarfile.TarFile, dest_dir: str, log_each=False):
    """Safely extract a tar file, preventing path traversal attacks."""
    for member in tar_ref.getmembers():
        member_path = _safe_join(dest_dir, member.name)
        if member.isdir():
            if log_each:
                logger.step_info(f"creating: {member.name}", indent=3)
            os.makedirs(member_path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(member_path), exist_ok=True)
        if member.issym():
            # the link target must stay inside the tree as well
            link_target = os.path.join(os.path.dirname(member_path), member.linkname)
            _safe_join(dest_dir, os.path.relpath(link_target, os.path.abspath(dest_dir)))
            with contextlib.suppress(FileNotFoundError):
                os.remove(member_path)
            os.symlink(member.linkname, member_path)
            continue
        if log_each:
            logger.step_info(f"extracting: {member.name}", indent=2)
        src = tar_ref.extractfile(member)
        if src is None:
            # device nodes, fifos, hard links: nothing in the sources needs them
            continue
        with src as src_file:
            with open(member_path, "wb") as out:
                shutil.copyfileobj(src_file, out)
            if member.mode:
                os.chmod(member_path, member.mode)


def sha256_file(path, chunk_size=1024 * 1024):
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_sha256(name, path, expected, discard=True):
    """Raise ``IntegrityMismatchError`` if ``path`` does not hash to ``expected``.

    A mismatching download is removed so it can never be used by accident.
    """
    actual = sha256_file(path)
    if actual.lower() != expected.lower():
        logger.error(f"Checksum mismatch for {name}: expected {expected}, got {actual}")
        if discard:
            with contextlib.suppress(OSError):
                os.remove(path)
        raise IntegrityMismatchError(name, expected, actual)
    logger.success(f"Verified {name} ({actual[:12]}...)")
    return path


def extract(filepath, dest_dir, strip_single_root=True):
    """Extracts a tar archive into ``dest_dir``.

    When the archive holds a single top-level directory its contents are
    moved up into ``dest_dir`` directly, the way source tarballs are staged.
    """
    os.makedirs(dest_dir, exist_ok=True)
    if not tarfile.is_tarfile(filepath):
        raise IOError(f"Unsupported archive type for {os.path.basename(filepath)}")

    staging = tempfile.mkdtemp(prefix=".extract-", dir=dest_dir)
    try:
        with tarfile.open(filepath, "r:*") as tar:
            _safe_extract_tar(tar, staging)

        root = staging
        entries = os.listdir(staging)
        if strip_single_root and len(entries) == 1 and os.path.isdir(os.path.join(staging, entries[0])):
            root = os.path.join(staging, entries[0])

        for item in os.listdir(root):
            target = os.path.join(dest_dir, item)
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            elif os.path.lexists(target):
                os.remove(target)
            shutil.move(os.path.join(root, item), target)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.success(f"Successfully extracted to {dest_dir}")
    return dest_dir

# -------------------- Download --------------------

def download(url, filepath, timeout=60):
    """Download ``url`` to ``filepath``. ``file://`` URLs are copied locally."""
    os.makedirs(os.path.dirname(filepath), exist_ok=True)
    parsed = urlparse(url)
    if parsed.scheme == "file":
        source = unquote(parsed.path)
        logger.info(f"  - Copying {source}...")
        shutil.copyfile(source, filepath)
        return filepath

    temp_filepath = filepath + ".tmp"
    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            total_size = int(r.headers.get('content-length', 0))

            with open(temp_filepath, 'wb') as f:
                chunks = logger.progress(
                    r.iter_content(chunk_size=1024 * 256),  # 256KB chunks
                    description=f"Downloading {os.path.basename(filepath)}",
                    total=total_size,
                    unit="b"
                )
                for chunk in chunks:
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)

        # Atomic rename
        os.replace(temp_filepath, filepath)
        return filepath
    except requests.exceptions.RequestException:
        with contextlib.suppress(OSError):
            os.remove(temp_filepath)
        raise


def fetch_verified(name, url, sha256, download_dir=None, timeout=60):
    """Return a local, checksum-verified copy of ``url``.

    A cached file with the right checksum is reused; anything else is fetched
    again and verified before it is handed back.
    """
    filepath = os.path.join(download_dir or DOWNLOAD_DIR, f"{name}--{os.path.basename(urlparse(url).path)}")
    if os.path.exists(filepath) and sha256_file(filepath).lower() == sha256.lower():
        logger.info(f"  - Using cached {os.path.basename(filepath)}")
        return filepath

    logger.info(f"  - Fetching {name} from {url}")
    download(url, filepath, timeout=timeout)
    return verify_sha256(name, filepath, sha256)

# -------------------- Install --------------------

def install_file(src, dest_dir):
    """Copy one file or directory tree into ``dest_dir``, keeping symlinks."""
    os.makedirs(dest_dir, exist_ok=True)
    target = os.path.join(dest_dir, os.path.basename(src))
    if os.path.isdir(src) and not os.path.islink(src):
        shutil.copytree(src, target, symlinks=True, dirs_exist_ok=True)
    else:
        if os.path.lexists(target):
            os.remove(target)
        shutil.copy2(src, target, follow_symlinks=False)
    return target


def install_glob(pattern, dest_dir):
    """Install everything matching ``pattern`` into ``dest_dir``."""
    installed = []
    for src in sorted(glob.glob(pattern)):
        installed.append(install_file(src, dest_dir))
    if not installed:
        logger.warning(f"  - Nothing matched {pattern}")
    return installed
