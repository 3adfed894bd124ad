"""
Infrastructure layer for gitstart.

Contains abstractions for external systems:
- VersionControlGateway: The operations a migration needs
- GitSvnGateway: Gateway backed by svn and git svn
- SvnClient / GitClient: Command execution for each tool

These provide clean interfaces that can be mocked for testing.
"""

from .gateway import VersionControlGateway, GitSvnGateway
from .git_client import GitClient, parse_empty_dirs
from .svn_client import SvnClient, parse_latest_revision

__all__ = [
    'VersionControlGateway',
    'GitSvnGateway',
    'GitClient',
    'SvnClient',
    'parse_empty_dirs',
    'parse_latest_revision',
]
