"""
Version control gateway for gitstart.

The orchestrator only talks to this narrow interface. GitSvnGateway is
the real implementation; tests substitute canned-text fakes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

from .git_client import GitClient
from .svn_client import SvnClient, parse_latest_revision

logger = logging.getLogger(__name__)


class VersionControlGateway(ABC):
    """Primitive operations against the source (svn) and target (git) systems."""

    @abstractmethod
    def resolve_latest_revision(self, url: str) -> str:
        """Return the newest revision of ``url``. Raises ToolInvocationError."""

    @abstractmethod
    def clone_with_history(self, url: str, target_path: str,
                           revision: Optional[str] = None) -> str:
        """Clone ``url`` into ``target_path`` and return the raw tool output."""

    @abstractmethod
    def list_externals(self, url: str, recursive: bool = True,
                       revision: Optional[str] = None) -> str:
        """Return raw svn:externals declarations for ``url``."""

    @abstractmethod
    def list_ignore_patterns(self, repo_path: str) -> str:
        """Return exclude patterns for a freshly converted tree."""

    @abstractmethod
    def create_branch(self, name: str, repo_path: str) -> None:
        """Create and check out ``name``; an existing branch is not an error."""


class GitSvnGateway(VersionControlGateway):
    """
    Gateway backed by the ``svn`` and ``git svn`` command line tools.

    Example:
        gateway = GitSvnGateway.from_config(load_config())
        revision = gateway.resolve_latest_revision("http://svn.example.com/repo")
    """

    def __init__(self, svn: Optional[SvnClient] = None, git: Optional[GitClient] = None):
        self.svn = svn or SvnClient()
        self.git = git or GitClient()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitSvnGateway':
        timeout = config.get("timeout")
        return cls(
            svn=SvnClient(config.get("svn_command", "svn"), timeout),
            git=GitClient(config.get("git_command", "git"), timeout),
        )

    def resolve_latest_revision(self, url: str) -> str:
        revision = parse_latest_revision(self.svn.log(url, limit=1))
        logger.debug(f"Latest revision of {url} is r{revision}")
        return revision

    def clone_with_history(self, url: str, target_path: str,
                           revision: Optional[str] = None) -> str:
        return self.git.svn_clone(url, target_path, revision)

    def list_externals(self, url: str, recursive: bool = True,
                       revision: Optional[str] = None) -> str:
        return self.svn.get_externals(url, recursive=recursive, revision=revision)

    def list_ignore_patterns(self, repo_path: str) -> str:
        return self.git.svn_show_ignore(repo_path)

    def create_branch(self, name: str, repo_path: str) -> None:
        self.git.checkout_new_branch(name, repo_path)
