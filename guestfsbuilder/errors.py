class GuestfsBuilderError(Exception):
    """Base class for every fatal error raised while building libguestfs."""


class UnsatisfiedRequirementError(GuestfsBuilderError):
    """An out-of-band requirement is missing. Raised before any build step."""

    def __init__(self, requirement, message):
        super().__init__(message)
        self.requirement = requirement
        self.message = message


class IntegrityMismatchError(GuestfsBuilderError):
    """A fetched archive or patch does not match its pinned sha256."""

    def __init__(self, name, expected, actual):
        super().__init__(
            f"SHA256 mismatch for {name}: expected {expected}, got {actual}"
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class PatchApplicationError(GuestfsBuilderError):
    """The embedded patch does not apply cleanly to the source tree."""

    def __init__(self, patch_name, output=""):
        super().__init__(f"Failed to apply patch {patch_name}")
        self.patch_name = patch_name
        self.output = output


class BuildStepError(GuestfsBuilderError):
    """An external command in the pipeline exited non-zero."""

    def __init__(self, index, step, exit_code, output=""):
        super().__init__(f"Step {index} ({step}) failed with exit code {exit_code}")
        self.index = index
        self.step = step
        self.exit_code = exit_code
        self.output = output


class BuildDirectoryError(GuestfsBuilderError):
    """A build directory holds files this tool did not put there."""

    def __init__(self, path):
        super().__init__(f"Refusing to wipe {path}: it is not empty and was not created by guestfsbuilder")
        self.path = path
