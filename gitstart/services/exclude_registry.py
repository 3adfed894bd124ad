"""
Exclude registry for gitstart.

Appends patterns to a repository's ``.git/info/exclude``:
- Append-only, never rewrites or deduplicates existing lines
- Creates the file and its parent directories on first use
- Thread-safe per instance; writers to the same file must share one
  registry (CloneOrchestrator.registry_for hands out one per target)
"""

import logging
import threading
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

EXCLUDE_FILE = Path(".git") / "info" / "exclude"


class ExcludeRegistry:
    """
    Append-only manager of a git repository's exclude file.

    Example:
        registry = ExcludeRegistry("/path/to/repo")
        registry.append(".externals")
        registry.append("vendor/lib/libX")
    """

    def __init__(self, repo_path):
        """
        Args:
            repo_path: Root of the git working tree
        """
        self.repo_path = Path(repo_path)
        self.path = self.repo_path / EXCLUDE_FILE
        self._lock = threading.Lock()

    def append(self, *lines: str) -> None:
        """Append each of ``lines`` as its own line."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                for line in lines:
                    f.write(f"{line}\n")
        logger.debug(f"Appended {len(lines)} line(s) to {self.path}")

    def append_text(self, text: str) -> None:
        """Append a block of text, making sure it ends with a newline."""
        if text and not text.endswith("\n"):
            text += "\n"
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(text)

    def entries(self) -> List[str]:
        """Return the current lines, in file order."""
        if not self.path.exists():
            return []
        with self._lock:
            return self.path.read_text(encoding='utf-8').splitlines()
