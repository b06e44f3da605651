import os
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from . import formula
from .cli_logger import logger
from .dependencies import Platform, current_platform, plan
from .environment import SINGLE_JOB, BuildEnvironment, assemble_environment
from .errors import BuildDirectoryError, BuildStepError
from .requirement import MacFuseRequirement
from .utils import (
    apply_patch,
    extract,
    fetch_verified,
    install_file,
    install_glob,
    run_logged_command,
    run_shell_command,
)


class BuildState(Enum):
    INIT = "init"
    ENV_PREPARED = "env-prepared"
    BOOTSTRAPPED = "bootstrapped"
    CONFIGURED = "configured"
    BUILT = "built"
    RESOURCE_STAGED = "resource-staged"
    INSTALLED = "installed"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildStep:
    """One entry of the pipeline: an external command or a Python action.

    ``state`` is where the pipeline stands once the step has succeeded.
    """
    name: str
    state: BuildState
    command: Tuple[str, ...] = ()
    action: Optional[Callable[[], object]] = None
    cwd: Optional[str] = None
    env: Tuple[Tuple[str, str], ...] = ()


# (artifact class, glob relative to the staged prefix, destination relative to prefix)
INSTALL_LAYOUT = (
    ("binary", "bin/*", "bin"),
    ("header", f"include/{formula.PUBLIC_HEADER}", "include"),
    ("library", "lib/*", "lib"),
) + tuple(
    ("man page", f"share/man/{section}/*", f"share/man/{section}") for section in formula.MAN_SECTIONS
)


class BuildExecutor:
    """Runs build steps strictly in order, stopping at the first failure.

    Steps are not safe to re-run after a failure (autoreconf on an already
    bootstrapped tree, a half-finished staged install), so an executor runs
    its steps once and then stays in ``DONE`` or ``FAILED``.
    """

    def __init__(self, steps, env, verbose=False):
        self.steps = list(steps)
        self.env = env
        self.verbose = verbose
        self.state = BuildState.INIT
        self.completed = []

    def execute(self):
        if self.state is not BuildState.INIT:
            raise RuntimeError(f"Pipeline already ran (state: {self.state.value})")
        self.state = BuildState.ENV_PREPARED

        total = len(self.steps)
        for index, step in enumerate(self.steps, start=1):
            logger.step(index, total, step.name)
            try:
                self._run(index, step)
            except BuildStepError as e:
                self.state = BuildState.FAILED
                logger.error(f"{step.name} failed (Exit Code: {e.exit_code})")
                if e.output:
                    logger.error(f"Output:\n{e.output.rstrip()}")
                raise
            except Exception:
                self.state = BuildState.FAILED
                raise
            self.completed.append(step.name)
            self.state = step.state

        return self.state

    def _run(self, index, step):
        if step.action is not None:
            try:
                step.action()
            except OSError as e:
                raise BuildStepError(index, step.name, e.errno or 1, str(e)) from e
            return

        env = self.env.update(dict(step.env)) if step.env else self.env
        output, returncode = run_logged_command(list(step.command), env=env.as_dict(), cwd=step.cwd, verbose=self.verbose)
        if returncode != 0:
            raise BuildStepError(index, step.name, returncode, output)


def staging_root(settings):
    """DESTDIR used for the staged ``make install``."""
    return settings.buildpath.rstrip(os.sep) + "-destdir"


def staged_prefix(settings):
    return os.path.join(staging_root(settings), settings.prefix.lstrip(os.sep))


def stage_resource(archive, target_dir):
    logger.info(f"  - Staging {os.path.basename(archive)} into {target_dir}")
    os.makedirs(target_dir, exist_ok=True)
    extract(archive, target_dir)


def copy_out(staged, prefix):
    """Copy the wanted parts of a staged install into ``prefix``.

    Only the classes in ``INSTALL_LAYOUT`` are copied; docs and everything
    else upstream installs stays behind. Not atomic: a failure part way
    through leaves whatever was already copied in place.
    """
    installed = {}
    for artifact, pattern, destination in INSTALL_LAYOUT:
        dest_dir = os.path.join(prefix, destination)
        if artifact == "header":
            files = [install_file(os.path.join(staged, pattern), dest_dir)]
        else:
            files = install_glob(os.path.join(staged, pattern), dest_dir)
        installed.setdefault(artifact, []).extend(files)
        logger.step_info(f"{artifact}: {len(files)} file(s) -> {dest_dir}", indent=2)
    return installed


def build_steps(settings, appliance_archive):
    """The ordered step list for one install.

    Head builds get the submodule step in front; everything after it is the
    same for both kinds of build.
    """
    src = settings.buildpath
    steps = []
    if settings.head:
        steps.append(BuildStep("Update git submodules", BuildState.ENV_PREPARED,
                               command=("git", "submodule", "update", "--init"), cwd=src))
    steps.extend([
        BuildStep("Regenerate build scripts", BuildState.BOOTSTRAPPED,
                  command=("autoreconf", "-i"), cwd=src),
        BuildStep("Configure", BuildState.CONFIGURED,
                  command=("./configure", *formula.configure_args(settings.prefix)), cwd=src),
        BuildStep("Compile", BuildState.BUILT,
                  command=("make",), cwd=src, env=SINGLE_JOB),
        BuildStep("Stage fixed appliance", BuildState.RESOURCE_STAGED,
                  action=lambda: stage_resource(appliance_archive, formula.appliance_path(settings.prefix))),
        BuildStep("Staged install", BuildState.INSTALLED,
                  command=("make", "INSTALLDIRS=vendor", f"DESTDIR={staging_root(settings)}", "install"), cwd=src),
        BuildStep("Install files", BuildState.DONE,
                  action=lambda: copy_out(staged_prefix(settings), settings.prefix)),
    ])
    return steps


# Dropped into every directory prepare_sources creates, so a rerun knows it may wipe it.
BUILD_MARKER = ".guestfsbuilder-build"


def _check_owned(path):
    """Raise unless ``path`` is missing, empty, or was made by us."""
    if not os.path.isdir(path):
        if os.path.lexists(path):
            raise BuildDirectoryError(path)
        return
    if os.listdir(path) and not os.path.isfile(os.path.join(path, BUILD_MARKER)):
        raise BuildDirectoryError(path)


def _mark(path):
    with open(os.path.join(path, BUILD_MARKER), "w") as f:
        f.write(f"{formula.NAME} build directory, wiped on every install\n")


def _reset_dir(path, mark=True):
    if os.path.exists(path):
        shutil.rmtree(path)
    os.makedirs(path)
    if mark:
        _mark(path)


def prepare_sources(settings):
    """Fetch and verify everything before a single build step runs.

    The build directory and its ``-destdir`` sibling are wiped first, but only
    when they are empty or carry ``BUILD_MARKER``; anything else raises
    ``BuildDirectoryError`` before a byte is downloaded.

    Returns the path of the verified appliance archive.
    """
    for path in (settings.buildpath, staging_root(settings)):
        _check_owned(path)

    archive = None
    if not settings.head:
        archive = fetch_verified(formula.NAME, settings.source_url, settings.source_sha256)
    appliance = fetch_verified(settings.appliance.name, settings.appliance.url, settings.appliance.sha256)

    _reset_dir(staging_root(settings))
    if settings.head:
        # git refuses to clone into a non-empty directory
        _reset_dir(settings.buildpath, mark=False)
        logger.info(f"  - Cloning {settings.head_url}")
        stdout, stderr, returncode = run_shell_command(["git", "clone", settings.head_url, settings.buildpath])
        if returncode != 0:
            raise BuildStepError(0, "Clone repository", returncode, stdout + stderr)
        _mark(settings.buildpath)
    else:
        _reset_dir(settings.buildpath)
        extract(archive, settings.buildpath)

    apply_patch(formula.DARWIN_PATCH, settings.buildpath)
    return appliance


def install_libguestfs(settings, platform=None, requirement=None, base_env=None):
    """Build and install libguestfs into ``settings.prefix``.

    Raises one of the ``GuestfsBuilderError`` subclasses on failure.
    """
    platform = platform or current_platform()
    logger.info(f"Installing {formula.NAME} {settings.version} into {settings.prefix}")
    if platform is Platform.OTHER:
        logger.warning(f"Unsupported platform '{sys.platform}', continuing anyway.")

    deps = plan(platform)
    logger.info(f"  - {len(deps)} dependencies planned for {platform.value}")

    if platform is Platform.MACOS:
        requirement = requirement or MacFuseRequirement()
        requirement.check()

    appliance = prepare_sources(settings)
    env = assemble_environment(settings.host_prefix, platform, requirement, base=base_env)

    executor = BuildExecutor(build_steps(settings, appliance), env, verbose=settings.verbose)
    state = executor.execute()
    logger.success(f"{formula.NAME} {settings.version} installed into {settings.prefix}")
    return state


def run_quickcheck(settings, base_env=None):
    """Run upstream's ``make quickcheck`` against the installed appliance."""
    env = BuildEnvironment(os.environ if base_env is None else base_env).set(
        LIBGUESTFS_PATH=formula.appliance_path(settings.prefix),
    )
    output, returncode = run_logged_command(["make", "-j1", "quickcheck"], env=env.as_dict(),
                                            cwd=settings.buildpath, verbose=settings.verbose)
    if returncode != 0:
        raise BuildStepError(1, "quickcheck", returncode, output)
    logger.success("quickcheck passed.")
    return True
