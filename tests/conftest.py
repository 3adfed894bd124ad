"""
Shared fixtures: a canned-text VersionControlGateway.
"""

import threading
from pathlib import Path

import pytest

from gitstart.infra.gateway import VersionControlGateway
from gitstart.services.clone_service import CloneOrchestrator, CloneOptions


class FakeGateway(VersionControlGateway):
    """
    In-memory stand-in for svn / git svn.

    ``repos`` maps a URL to a dict with optional keys:
        revision: str returned by resolve_latest_revision
        externals: raw svn:externals listing text
        empty_dirs: directories reported by the clone
    """

    def __init__(self, repos=None):
        self.repos = repos or {}
        self.calls = []
        self.ignore_patterns = "# /\n/build\n"
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def resolve_latest_revision(self, url):
        self._record("resolve_latest_revision", url)
        return self.repos.get(url, {}).get("revision", "1")

    def clone_with_history(self, url, target_path, revision=None):
        self._record("clone_with_history", url, target_path, revision)
        (Path(target_path) / ".git" / "info").mkdir(parents=True)
        lines = [f"\tA\t{name}" for name in ("README", "src/main.c")]
        for directory in self.repos.get(url, {}).get("empty_dirs", []):
            lines.append(f"W: +empty_dir: {directory}")
        lines.append(f"r{revision} = 0123abcd (refs/remotes/git-svn)")
        lines.append("Checked out HEAD:")
        return "\n".join(lines) + "\n"

    def list_externals(self, url, recursive=True, revision=None):
        self._record("list_externals", url, recursive, revision)
        return self.repos.get(url, {}).get("externals", "")

    def list_ignore_patterns(self, repo_path):
        self._record("list_ignore_patterns", repo_path)
        return self.ignore_patterns

    def create_branch(self, name, repo_path):
        self._record("create_branch", name, repo_path)
        (Path(repo_path) / ".git" / "HEAD").write_text(f"ref: refs/heads/{name}\n")


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator around a FakeGateway, without loading config."""
    def factory(repos=None, **options):
        gateway = FakeGateway(repos)
        orchestrator = CloneOrchestrator(gateway=gateway, options=CloneOptions(**options))
        return orchestrator, gateway
    return factory
