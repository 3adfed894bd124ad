"""
Subversion client infrastructure for gitstart.

Wraps the two svn queries a migration needs: the newest log entry and
the recursive svn:externals listing.
"""

import logging
from typing import Optional

from .command import ToolClient
from ..exit_codes import ToolInvocationError

logger = logging.getLogger(__name__)

PROPERTY_NOT_FOUND = "W200017"


def parse_latest_revision(log_text: str) -> str:
    """
    Extract the revision number from ``svn log --limit 1`` output.

    svn prints a dashed separator line first, then the entry header::

        ------------------------------------------------------------------------
        r482 | alice | 2021-01-01 12:00:00 +0000 (Fri, 01 Jan 2021) | 1 line

    The second line's first token is the revision, with its leading "r"
    removed.

    Raises:
        ToolInvocationError: If the output has no second line or it is blank
    """
    lines = log_text.rstrip("\n").split("\n")
    if len(lines) < 2 or not lines[1].split():
        raise ToolInvocationError(
            "Cannot find a revision in svn log output", output=log_text
        )

    token = lines[1].split()[0]
    revision = token[1:] if token.startswith("r") else token
    if not revision:
        raise ToolInvocationError(
            f"Cannot find a revision in svn log line: {lines[1]!r}", output=log_text
        )
    return revision


class SvnClient(ToolClient):
    """
    Abstraction over svn commands.

    Example:
        client = SvnClient()
        text = client.log("http://svn.example.com/repo/trunk", limit=1)
    """

    def __init__(self, executable: str = "svn", timeout: Optional[float] = None):
        super().__init__(executable, timeout)

    def log(self, url: str, limit: Optional[int] = None) -> str:
        """Return raw ``svn log`` output for ``url``."""
        args = ["log", "--non-interactive"]
        if limit:
            args += ["--limit", str(limit)]
        args.append(url)
        return self._run(args).stdout

    def get_externals(
        self,
        url: str,
        recursive: bool = True,
        revision: Optional[str] = None
    ) -> str:
        """
        Return raw svn:externals declarations for ``url``.

        Args:
            url: Repository URL
            recursive: Include every nested directory (``-R``)
            revision: Operative revision to read the property at
        """
        args = ["propget", "svn:externals", "--non-interactive"]
        if recursive:
            args.append("-R")
        if revision:
            args += ["-r", revision]
        args.append(url)
        try:
            return self._run(args).stdout
        except ToolInvocationError as e:
            # svn >= 1.9 exits non-zero when the property is not set at all
            if PROPERTY_NOT_FOUND in str(e):
                logger.debug(f"No svn:externals on {url}")
                return ""
            raise
