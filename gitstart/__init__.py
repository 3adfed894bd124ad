"""
gitstart - Start working in git on an svn repository.

gitstart converts an svn repository into a git svn working copy pinned
to the repository's latest revision. svn:externals become independent
git svn clones under a hidden ``.externals`` directory, symlinked where
they were mounted, and a ``working`` branch is created for new work.

Quick Start:
    from gitstart import CloneOrchestrator

    result = CloneOrchestrator().run("http://svn.example.com/repo/trunk", "repo")
    print(result.source.revision)
    for linked in result.iter_externals():
        print(linked.definition.link_path, "->", linked.storage_path)

Domain Objects:
    RepositoryReference - svn URL plus pinned revision
    ExternalDefinition - One svn:externals mount
    MigrationResult - What a migration produced

Services:
    CloneOrchestrator - The migration sequence
    ExcludeRegistry - Append-only .git/info/exclude
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    RepositoryReference,
    ExternalDefinition,
    CloneResult,
    LinkedExternal,
    MigrationResult,
)

# Services
from .services import (
    CloneOrchestrator,
    CloneOptions,
    ExcludeRegistry,
)

# Infrastructure
from .infra import VersionControlGateway, GitSvnGateway

# Parsing
from .externals import parse_externals, parse_external_definitions

# Configuration
from .config import load_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RepositoryReference",
    "ExternalDefinition",
    "CloneResult",
    "LinkedExternal",
    "MigrationResult",
    # Services
    "CloneOrchestrator",
    "CloneOptions",
    "ExcludeRegistry",
    # Infrastructure
    "VersionControlGateway",
    "GitSvnGateway",
    # Parsing
    "parse_externals",
    "parse_external_definitions",
    # Configuration
    "load_config",
]
