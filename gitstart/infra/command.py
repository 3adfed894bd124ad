"""
Command execution shared by the svn and git clients.
"""

import subprocess
import logging
import shlex
from typing import List, Optional

from ..exit_codes import ToolInvocationError

logger = logging.getLogger(__name__)


class ToolClient:
    """
    Base for clients that shell out to a version control executable.

    Commands are passed as argument lists (never through a shell), so
    URLs and paths need no quoting.
    """

    def __init__(self, executable: str, timeout: Optional[float] = None):
        """
        Args:
            executable: Program to run (e.g. "svn", "git")
            timeout: Command timeout in seconds (default: None, wait forever)
        """
        self.executable = executable
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        check: bool = True,
        merge_stderr: bool = False
    ) -> subprocess.CompletedProcess:
        """
        Run the executable with ``args``.

        Args:
            args: Arguments after the executable
            cwd: Working directory
            check: Raise ToolInvocationError on non-zero exit
            merge_stderr: Fold stderr into stdout (git svn prints its
                warnings on stderr)

        Returns:
            The completed process; stdout is text
        """
        cmd = [self.executable] + list(args)
        cmd_str = shlex.join(cmd)
        logger.debug(f"Running command in '{cwd or '.'}': {cmd_str}")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise ToolInvocationError(
                f"{self.executable} not found; is it installed and on PATH?",
                command=cmd_str
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ToolInvocationError(
                f"Command timed out after {self.timeout}s: {cmd_str}",
                command=cmd_str
            ) from e

        if result.stdout and result.stdout.strip():
            logger.debug(result.stdout.strip())

        if check and result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            message = f"Command failed with exit code {result.returncode}: {cmd_str}"
            if detail:
                message += f"\n{detail}"
            raise ToolInvocationError(
                message,
                command=cmd_str,
                returncode=result.returncode,
                output=result.stdout or ""
            )

        return result
