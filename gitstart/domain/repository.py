"""
Repository domain objects for gitstart.

A RepositoryReference names an svn repository and, once the latest
revision has been looked up, the exact revision that gets cloned.
"""

from dataclasses import dataclass, replace
from typing import Optional, Dict, Any, Tuple

# Relative path reported by git svn as an empty directory it did not create
EmptyDirMarker = str


@dataclass(frozen=True)
class RepositoryReference:
    """An svn repository URL with an optional pinned revision."""
    url: str
    revision: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.revision is not None

    def resolved(self, revision: str) -> 'RepositoryReference':
        """Return a copy pinned to ``revision``."""
        return replace(self, revision=revision)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'revision': self.revision,
        }

    def __str__(self) -> str:
        if self.revision:
            return f"{self.url}@{self.revision}"
        return self.url


@dataclass(frozen=True)
class CloneResult:
    """Output of one clone-and-normalize step."""
    target_path: str
    empty_dirs: Tuple[EmptyDirMarker, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target_path': self.target_path,
            'empty_dirs': list(self.empty_dirs),
        }
