import os
import subprocess
import shlex
from ..cli_logger import logger

COMMAND_NOT_FOUND = -1


def run_shell_command(command, stream_output=False, env=None, input_data=None, cwd=None):
    """
    Executes a command, with options for streaming output and providing input.

    Args:
        command (list): The command to execute as a list of strings.
        stream_output (bool): If True, streams the output in real-time.
        env (dict, optional): A dictionary of environment variables.
        input_data (str, optional): Data to be passed to the command's stdin.
        cwd (str, optional): The working directory for the command.

    Returns:
        If stream_output is True, returns a tuple (line generator, process).
        If stream_output is False, returns a tuple (stdout, stderr, return_code).
    """
    logger.debug(f"$ {shlex.join(command)}" + (f"  (in {cwd})" if cwd else ""))
    try:
        if stream_output:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=1,
                universal_newlines=True,
                env=env,
                cwd=cwd
            )

            def _generator():
                for line in process.stdout:
                    yield line
                process.communicate()
            return _generator(), process

        else:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                env=env,
                input=input_data,
                check=False,
                cwd=cwd
            )
            return result.stdout, result.stderr, result.returncode

    except FileNotFoundError as e:
        if cwd and not os.path.isdir(cwd):
            logger.error(f"Working directory not found: {cwd}")
        else:
            logger.error(f"Command not found: {e.filename}")
        if stream_output:
            return iter([]), type('obj', (object,), {'returncode': COMMAND_NOT_FOUND})
        else:
            return "", str(e), COMMAND_NOT_FOUND


def run_logged_command(command, env=None, cwd=None, verbose=False):
    """Run ``command`` to completion, recording every output line in the log.

    Returns a tuple (combined output, return_code).
    """
    lines, process = run_shell_command(command, stream_output=True, env=env, cwd=cwd)
    output = []
    for line in lines:
        output.append(line)
        logger.output(line, verbose=verbose)
    return "".join(output), process.returncode
