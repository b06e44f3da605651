import functools
import click
import sys
from .cli_logger import logger
from .errors import (
    BuildDirectoryError,
    BuildStepError,
    GuestfsBuilderError,
    IntegrityMismatchError,
    PatchApplicationError,
    UnsatisfiedRequirementError,
)

def handle_exceptions(func):
    """Log build failures and exit non-zero instead of dumping a traceback."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
        except UnsatisfiedRequirementError as e:
            logger.error(f"Unsatisfied requirement: {e.message}")
        except IntegrityMismatchError as e:
            logger.error(f"Integrity check failed: {e}")
            logger.info("The download was discarded. Nothing has been built.")
        except PatchApplicationError as e:
            logger.error(f"{e}. The upstream sources may have drifted from the shipped patch.")
        except BuildDirectoryError as e:
            logger.error(f"{e}.")
            logger.info("Point --buildpath at an empty or new directory.")
        except BuildStepError as e:
            logger.error(f"Build failed: {e}")
            logger.exception(*sys.exc_info())
        except GuestfsBuilderError as e:
            logger.error(f"Error: {e}")
            logger.exception(*sys.exc_info())
        except FileNotFoundError as e:
            logger.error(f"Error: File not found - {e}")
            logger.exception(*sys.exc_info())
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
        sys.exit(1)
    return wrapper
