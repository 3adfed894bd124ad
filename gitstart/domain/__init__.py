"""
Domain layer for gitstart.

Contains pure domain objects with no I/O or side effects:
- RepositoryReference: An svn URL, plus the revision once resolved
- ExternalDefinition: One svn:externals mount inside a repository
- CloneResult: What a single git svn clone produced
- LinkedExternal / MigrationResult: The outcome of a migration run

These objects are immutable and provide serialization methods for
JSON output.
"""

from .repository import RepositoryReference, CloneResult, EmptyDirMarker
from .external import ExternalDefinition, LinkedExternal
from .migration import MigrationResult

__all__ = [
    'RepositoryReference',
    'CloneResult',
    'EmptyDirMarker',
    'ExternalDefinition',
    'LinkedExternal',
    'MigrationResult',
]
