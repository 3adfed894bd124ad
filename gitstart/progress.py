"""
Progress reporting utilities for gitstart.

Provides consistent progress reporting on stderr that respects piping
and redirection, with nesting for recursive externals.
"""

import sys
import os
import time
import threading
from typing import Optional, TextIO
from enum import Enum


class LogLevel(Enum):
    """Log levels for progress messages."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    SUCCESS = 4


class ProgressReporter:
    """
    Handles progress reporting to stderr while keeping stdout clean for data.

    The indent depth is fixed per instance. ``indented()`` returns a child
    reporter one level deeper that shares the stream, so nested clones
    (possibly running on worker threads) never mutate a shared counter.

    Example:
        progress = ProgressReporter(enabled=True)
        progress("cloning trunk")
        child = progress.indented()
        child("making empty directory: src/assets")  # printed with one tab
    """

    indent_string = "\t"

    def __init__(self, enabled: Optional[bool] = None, force_tty: bool = False,
                 use_colors: Optional[bool] = None, stream: Optional[TextIO] = None,
                 depth: int = 0, _lock: Optional[threading.Lock] = None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = auto-detect
            force_tty: Treat the stream as a TTY even if it's not (for testing)
            use_colors: Use ANSI colors in output
            stream: Output stream (default: sys.stderr at write time)
            depth: Indentation depth of this reporter
        """
        self._stream = stream
        is_tty = self._is_tty() or force_tty

        if enabled is None:
            # Auto-detect: show progress if stderr is a terminal
            self.enabled = is_tty
        else:
            self.enabled = enabled

        if use_colors is None:
            self.use_colors = self._is_tty() and os.environ.get('NO_COLOR') is None
        else:
            self.use_colors = use_colors

        self.depth = depth
        self._lock = _lock or threading.Lock()

        self.colors = {
            'reset': '\033[0m',
            'bold': '\033[1m',
            'dim': '\033[2m',
            'red': '\033[31m',
            'green': '\033[32m',
            'yellow': '\033[33m',
            'cyan': '\033[36m',
        }

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _is_tty(self) -> bool:
        isatty = getattr(self.stream, 'isatty', None)
        return bool(isatty and isatty())

    def _colorize(self, text: str, color: str) -> str:
        """Add color to text if colors are enabled."""
        if self.use_colors and color in self.colors:
            return f"{self.colors[color]}{text}{self.colors['reset']}"
        return text

    def _write(self, message: str) -> None:
        prefix = self.indent_string * self.depth
        with self._lock:
            print(f"{prefix}{message}", file=self.stream, flush=True)

    def indented(self) -> 'ProgressReporter':
        """Return a reporter writing one level deeper to the same stream."""
        return ProgressReporter(
            enabled=self.enabled,
            use_colors=self.use_colors,
            stream=self._stream,
            depth=self.depth + 1,
            _lock=self._lock,
        )

    def __call__(self, message: str = "", force: bool = False, level: LogLevel = LogLevel.INFO):
        """
        Output progress message to stderr if enabled.

        Args:
            message: Progress message to display
            force: Force output even if disabled
            level: Log level for the message
        """
        if not (force or self.enabled):
            return

        if level == LogLevel.ERROR:
            message = self._colorize(f"✗ {message}", 'red')
        elif level == LogLevel.WARNING:
            message = self._colorize(f"⚠ {message}", 'yellow')
        elif level == LogLevel.SUCCESS:
            message = self._colorize(f"✓ {message}", 'green')
        elif level == LogLevel.DEBUG:
            message = self._colorize(message, 'dim')

        self._write(message)

    def error(self, message: str):
        """Always output errors to stderr."""
        with self._lock:
            print(self._colorize(message, 'red'), file=self.stream, flush=True)

    def warning(self, message: str):
        """Output warnings to stderr if enabled."""
        if self.enabled:
            self._write(self._colorize(f"WARNING: {message}", 'yellow'))

    def success(self, message: str):
        """Output success message if enabled."""
        if self.enabled:
            self(message, level=LogLevel.SUCCESS)

    def timed(self, description: str) -> 'Timer':
        """
        Context manager that announces a long-running step and reports
        its elapsed time when done.

        Example:
            with progress.timed("setting ignored files from subversion"):
                patterns = gateway.list_ignore_patterns(path)
        """
        return Timer(self, description)


class Timer:
    """Announces a step and reports how long it took."""

    def __init__(self, reporter: ProgressReporter, description: str):
        self.reporter = reporter
        self.description = description
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.time()
        self.reporter(self.description)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None and self.start_time is not None:
            elapsed = time.time() - self.start_time
            self.reporter(f"done in {elapsed:.1f}s", level=LogLevel.DEBUG)
        return False


# Global progress reporter instance
_progress = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the global progress reporter.

    Args:
        enabled: Override auto-detection of progress display

    Returns:
        ProgressReporter instance
    """
    global _progress
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress


# Environment variable override
if os.environ.get('GITSTART_PROGRESS') == '0':
    _progress = ProgressReporter(enabled=False)
elif os.environ.get('GITSTART_PROGRESS') == '1':
    _progress = ProgressReporter(enabled=True)
