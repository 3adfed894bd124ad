"""
Git client infrastructure for gitstart.

Provides a clean abstraction over the git and git-svn commands a
migration runs. All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from the orchestration logic
"""

import re
import logging
import posixpath
from typing import Optional, List

from ..exit_codes import ParseError
from .command import ToolClient

logger = logging.getLogger(__name__)

EMPTY_DIR_MARKER = re.compile(r"^W: \+empty_dir: (.*)$")


def parse_empty_dirs(clone_output: str) -> List[str]:
    """
    Collect the directories git svn reported as empty.

    git svn cannot track empty directories; it prints one warning per
    directory it skipped::

        W: +empty_dir: src/assets

    Returns:
        Relative paths in the order reported

    Raises:
        ParseError: If a reported path is absolute or leaves the clone
    """
    empty_dirs = []
    for line in clone_output.splitlines():
        match = EMPTY_DIR_MARKER.match(line.rstrip("\r"))
        if not match or not match.group(1).strip():
            continue

        directory = match.group(1).strip()
        normalized = posixpath.normpath(directory)
        if posixpath.isabs(normalized) or normalized == ".." or normalized.startswith("../"):
            raise ParseError(f"Empty directory {directory!r} is outside the repository", line)
        empty_dirs.append(normalized)
    return empty_dirs


class GitClient(ToolClient):
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        output = client.svn_clone("http://svn.example.com/repo", "/tmp/repo", "482")
        client.checkout_new_branch("working", "/tmp/repo")
    """

    def __init__(self, executable: str = "git", timeout: Optional[float] = None):
        super().__init__(executable, timeout)

    def svn_clone(self, url: str, target: str, revision: Optional[str] = None) -> str:
        """
        Clone an svn repository with ``git svn clone``.

        Args:
            url: svn repository URL
            target: Directory to create
            revision: Newest revision to fetch; history up to it is kept

        Returns:
            Combined stdout/stderr of the clone
        """
        args = ["svn", "clone"]
        if revision:
            args += ["-r", f"0:{revision}"]
        args += [url, target]
        return self._run(args, merge_stderr=True).stdout or ""

    def svn_show_ignore(self, path: str) -> str:
        """Return svn:ignore properties translated to git exclude patterns."""
        return self._run(["svn", "show-ignore"], cwd=path).stdout or ""

    def checkout_new_branch(self, name: str, path: str) -> bool:
        """
        Create and switch to branch ``name``.

        Returns:
            True if the branch was created, False if git refused
            (typically because it already exists)
        """
        result = self._run(["checkout", "-b", name], cwd=path, check=False)
        if result.returncode != 0:
            logger.debug(f"git checkout -b {name} failed in {path}: {(result.stderr or '').strip()}")
            return False
        return True

