"""
svn:externals domain objects for gitstart.
"""

import posixpath
from dataclasses import dataclass
from typing import Optional, Dict, Any, TYPE_CHECKING

from .repository import RepositoryReference

if TYPE_CHECKING:
    from .migration import MigrationResult


@dataclass(frozen=True)
class ExternalDefinition:
    """
    One externals mount declaration.

    ``parent_dir`` is relative to the root of the repository that declares
    the external ("" for the root itself). ``local_name`` is the name of
    the link created inside it. ``source`` is never pinned: externals are
    cloned at their own latest revision.
    """
    parent_dir: str
    local_name: str
    source: RepositoryReference

    @property
    def link_path(self) -> str:
        """Mount point relative to the declaring repository's root."""
        if not self.parent_dir:
            return self.local_name
        return posixpath.join(self.parent_dir, self.local_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parent_dir': self.parent_dir,
            'local_name': self.local_name,
            'url': self.source.url,
        }


@dataclass(frozen=True)
class LinkedExternal:
    """An external that has been linked into its parent tree."""
    definition: ExternalDefinition
    storage_path: str
    cloned: bool = False
    migration: Optional['MigrationResult'] = None

    def to_dict(self) -> Dict[str, Any]:
        result = self.definition.to_dict()
        result['link'] = self.definition.link_path
        result['storage_path'] = self.storage_path
        result['cloned'] = self.cloned
        if self.migration is not None:
            result['migration'] = self.migration.to_dict()
        return result
