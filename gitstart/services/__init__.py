"""
Service layer for gitstart.

Services hold the migration logic and depend on the infrastructure
layer only through the VersionControlGateway interface:
- CloneOrchestrator: The clone / externals / branch sequence
- ExcludeRegistry: Append-only .git/info/exclude manager
"""

from .clone_service import CloneOrchestrator, CloneOptions
from .exclude_registry import ExcludeRegistry

__all__ = [
    'CloneOrchestrator',
    'CloneOptions',
    'ExcludeRegistry',
]
