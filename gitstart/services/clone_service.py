"""
Clone orchestration for gitstart.

Turns an svn repository into a git svn working copy:
resolve the latest revision, clone at it, restore empty directories,
ignore generated files, recursively clone and link svn:externals, and
create the working branch. Used by the `gitstart` command.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

from ..config import load_config
from ..domain import (
    RepositoryReference,
    ExternalDefinition,
    CloneResult,
    LinkedExternal,
    MigrationResult,
)
from ..exit_codes import PreconditionError, CycleDetectedError
from ..externals import parse_external_definitions
from ..infra.gateway import VersionControlGateway, GitSvnGateway
from ..infra.git_client import parse_empty_dirs
from ..progress import ProgressReporter, get_progress
from .exclude_registry import ExcludeRegistry

logger = logging.getLogger(__name__)

LEGACY_IGNORE_HEADER = "# Git files"
LEGACY_IGNORE_FILE = ".gitignore"


@dataclass
class CloneOptions:
    """Options for a migration."""
    branch: str = "working"
    externals_dir: str = ".externals"
    jobs: int = 1  # Concurrent external clones per tree (1 = sequential)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'CloneOptions':
        return cls(
            branch=config.get("branch") or "working",
            externals_dir=config.get("externals_dir") or ".externals",
            jobs=max(1, int(config.get("jobs") or 1)),
        )


def _url_key(url: str) -> str:
    return url.rstrip("/")


class CloneOrchestrator:
    """
    Migrates an svn repository and its externals into git.

    Every external is cloned by re-running the whole sequence with the
    external's URL as source and ``<target>/.externals/<name>`` as
    target, then linked into the tree it was declared in.

    Example:
        orchestrator = CloneOrchestrator()
        result = orchestrator.run("http://svn.example.com/repo/trunk", "~/src/repo")
        for linked in result.iter_externals():
            print(linked.definition.link_path)
    """

    def __init__(
        self,
        gateway: Optional[VersionControlGateway] = None,
        options: Optional[CloneOptions] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize CloneOrchestrator.

        Args:
            gateway: Version control gateway (git svn backed if None)
            options: Clone options (read from config if None)
            config: Configuration dict (loads default if None)
        """
        if gateway is None or options is None:
            config = config if config is not None else load_config()
        self.gateway = gateway or GitSvnGateway.from_config(config)
        self.options = options or CloneOptions.from_config(config)
        self.last_result: Optional[MigrationResult] = None
        self._registries: Dict[str, ExcludeRegistry] = {}
        self._registries_lock = threading.Lock()

    def run(
        self,
        source_url: str,
        target_path: str,
        progress: Optional[ProgressReporter] = None
    ) -> MigrationResult:
        """
        Migrate ``source_url`` into a new directory ``target_path``.

        Raises:
            PreconditionError: If ``target_path`` already exists
            ToolInvocationError: If svn or git fails
            ParseError: If the externals listing is malformed
            CycleDetectedError: If externals refer back to an ancestor
        """
        progress = progress or get_progress()
        target = os.path.abspath(os.path.expanduser(target_path))

        self.check_for_local_dir(target)
        result = self._migrate(RepositoryReference(source_url), target, progress, ())
        self.last_result = result
        return result

    def registry_for(self, target: str) -> ExcludeRegistry:
        """Return the one ExcludeRegistry this orchestrator uses for ``target``."""
        key = os.path.abspath(target)
        with self._registries_lock:
            if key not in self._registries:
                self._registries[key] = ExcludeRegistry(key)
            return self._registries[key]

    def check_for_local_dir(self, target: str) -> None:
        if os.path.lexists(target):
            raise PreconditionError(f"Error: target {target} already exists - please move it!")

    def _migrate(
        self,
        source: RepositoryReference,
        target: str,
        progress: ProgressReporter,
        active: Tuple[str, ...]
    ) -> MigrationResult:
        key = _url_key(source.url)
        if key in active:
            raise CycleDetectedError(source.url, active)
        active = active + (key,)

        source, clone = self.clone_repository(source, target, progress)
        externals = self.clone_externals(
            source.url, target,
            revision=source.revision,
            progress=progress,
            _active=active,
        )
        self.create_working_branch(target, progress)

        return MigrationResult(
            source=source,
            clone=clone,
            externals=tuple(externals),
            branch=self.options.branch,
        )

    def clone_repository(
        self,
        source: RepositoryReference,
        target: str,
        progress: ProgressReporter
    ) -> Tuple[RepositoryReference, CloneResult]:
        """
        Pin ``source`` to its latest revision and clone it into ``target``.

        Returns:
            The resolved reference and the clone result
        """
        progress(f"finding latest revision of {source.url}")
        source = source.resolved(self.gateway.resolve_latest_revision(source.url))

        progress(f"creating git repository in {target}")
        inner = progress.indented()

        output = self.gateway.clone_with_history(source.url, target, source.revision)
        empty_dirs = parse_empty_dirs(output)
        for directory in empty_dirs:
            inner(f"making empty directory: {directory}")
            Path(target, directory).mkdir(parents=True, exist_ok=True)

        self.ignore_generated_files(target, inner)

        return source, CloneResult(target_path=target, empty_dirs=tuple(empty_dirs))

    def ignore_generated_files(self, target: str, progress: ProgressReporter) -> None:
        """Copy svn:ignore into the exclude file, then exclude .gitignore."""
        registry = self.registry_for(target)
        with progress.timed("setting ignored files from subversion (this can take a while)"):
            patterns = self.gateway.list_ignore_patterns(target)

        registry.append_text(patterns)
        registry.append("", LEGACY_IGNORE_HEADER, LEGACY_IGNORE_FILE)

    def clone_externals(
        self,
        source_url: str,
        target_path: str,
        revision: Optional[str] = None,
        progress: Optional[ProgressReporter] = None,
        _active: Tuple[str, ...] = ()
    ) -> List[LinkedExternal]:
        """
        Clone and link every svn:external declared anywhere in ``source_url``.

        Externals whose storage directory already exists are reused, not
        cloned again; their links are recreated either way.

        Args:
            source_url: svn URL whose externals to resolve
            target_path: Root of the git working tree for ``source_url``
            revision: Revision to read the externals listing at
            progress: Progress reporter

        Returns:
            One LinkedExternal per declaration, in listing order
        """
        progress = progress or get_progress()
        target = os.path.abspath(os.path.expanduser(target_path))
        active = _active or (_url_key(source_url),)
        registry = self.registry_for(target)

        progress(f"checking for svn:externals to install from {source_url}")
        inner = progress.indented()

        raw = self.gateway.list_externals(source_url, recursive=True, revision=revision)
        definitions = parse_external_definitions(raw, source_url)

        storage_root = Path(target) / self.options.externals_dir
        storage_root.mkdir(parents=True, exist_ok=True)
        registry.append(self.options.externals_dir)

        # Reserve each storage path once, before any clone starts
        pending: Dict[str, ExternalDefinition] = {}
        for definition in definitions:
            name = definition.local_name
            if name in pending:
                if pending[name].source.url != definition.source.url:
                    logger.warning(
                        f"{definition.link_path} reuses {self.options.externals_dir}/{name} "
                        f"cloned from {pending[name].source.url}"
                    )
                continue
            if os.path.lexists(storage_root / name):
                logger.debug(f"Reusing existing clone {storage_root / name}")
                continue
            pending[name] = definition

        migrations = self._clone_pending(pending, storage_root, inner, active)

        linked = []
        for definition in definitions:
            storage_path = storage_root / definition.local_name
            self.link_external(target, definition, storage_path, inner)
            registry.append(definition.link_path)

            migration = migrations.pop(definition.local_name, None)
            linked.append(LinkedExternal(
                definition=definition,
                storage_path=str(storage_path),
                cloned=migration is not None,
                migration=migration,
            ))

        return linked

    def _clone_pending(
        self,
        pending: Dict[str, ExternalDefinition],
        storage_root: Path,
        progress: ProgressReporter,
        active: Tuple[str, ...]
    ) -> Dict[str, MigrationResult]:
        """Run the full migration for each reserved external."""
        def clone_one(definition: ExternalDefinition) -> MigrationResult:
            return self._migrate(
                definition.source,
                str(storage_root / definition.local_name),
                progress,
                active,
            )

        if self.options.jobs <= 1 or len(pending) <= 1:
            return {name: clone_one(definition) for name, definition in pending.items()}

        with ThreadPoolExecutor(max_workers=self.options.jobs) as executor:
            futures = {
                name: executor.submit(clone_one, definition)
                for name, definition in pending.items()
            }
            return {name: future.result() for name, future in futures.items()}

    def link_external(
        self,
        target: str,
        definition: ExternalDefinition,
        storage_path: Path,
        progress: ProgressReporter
    ) -> Path:
        """
        Symlink ``storage_path`` at the external's mount point, replacing
        any existing link.

        Raises:
            PreconditionError: If a real file or directory occupies the mount point
        """
        parent = Path(target, definition.parent_dir) if definition.parent_dir else Path(target)
        link = parent / definition.local_name

        progress(f"symlinking {definition.local_name} into {parent}")
        parent.mkdir(parents=True, exist_ok=True)

        if link.is_symlink():
            link.unlink()
        elif link.exists():
            raise PreconditionError(
                f"Cannot link external {definition.link_path}: {link} exists and is not a symlink"
            )

        link.symlink_to(storage_path.absolute(), target_is_directory=True)
        return link

    def create_working_branch(self, target: str, progress: ProgressReporter) -> None:
        progress(f"creating '{self.options.branch}' branch on {target}")
        self.gateway.create_branch(self.options.branch, target)
