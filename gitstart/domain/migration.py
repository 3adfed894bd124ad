"""
Migration result domain object for gitstart.
"""

from dataclasses import dataclass
from typing import Dict, Any, Tuple

from .repository import RepositoryReference, CloneResult
from .external import LinkedExternal


@dataclass(frozen=True)
class MigrationResult:
    """
    Everything one ``run`` produced for a single repository.

    Externals cloned during the run carry their own nested MigrationResult;
    externals whose clone already existed only record the link.
    """
    source: RepositoryReference
    clone: CloneResult
    externals: Tuple[LinkedExternal, ...] = ()
    branch: str = "working"

    @property
    def target_path(self) -> str:
        return self.clone.target_path

    def iter_externals(self):
        """Yield every linked external, depth first."""
        for linked in self.externals:
            yield linked
            if linked.migration is not None:
                yield from linked.migration.iter_externals()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source.to_dict(),
            'target_path': self.clone.target_path,
            'empty_dirs': list(self.clone.empty_dirs),
            'branch': self.branch,
            'externals': [linked.to_dict() for linked in self.externals],
        }
