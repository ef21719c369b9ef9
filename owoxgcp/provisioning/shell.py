"""Shell command execution helper."""

import logging
import subprocess

logger = logging.getLogger(__name__)


def format_cmd(command):
    """Render an argument list the way it would be typed."""
    return " ".join(command)


def run_shell_cmd(command, dry_run=False, timeout=600, input_text=None):
    """Run a shell command and return (returncode, stdout, stderr).

    Args:
        command: list of command arguments
        dry_run: if True, log the command instead of executing
        timeout: maximum seconds to wait for the command
        input_text: optional text written to the command's stdin

    Returns:
        (returncode, stdout, stderr) tuple
    """
    if dry_run:
        logger.info(f"[dry-run] {format_cmd(command)}")
        return 0, "", ""

    logger.debug(f"$ {format_cmd(command)}")
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input_text,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {format_cmd(command)}")
        return 1, "", "timeout"
    except FileNotFoundError:
        logger.error(f"Error: '{command[0]}' not found. Is it installed and on PATH?")
        return 1, "", f"'{command[0]}' not found"
