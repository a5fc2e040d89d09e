"""
Single-run lock.

Two runs against the same working tree would race on staging and
committing, so a run holds an exclusive, non-blocking lock on a file
inside the repository's .git directory for its whole duration.
"""

from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console

from .errors import RunLockedError

try:
    import fcntl  # POSIX systems

    HAVE_FCNTL = True
except ImportError:
    HAVE_FCNTL = False

console = Console()

LOCK_NAME = "md2html.lock"


class RunLock:
    """Exclusive lock context manager; fails fast if already held."""

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._file: Optional[TextIO] = None

    def __enter__(self) -> "RunLock":
        if not HAVE_FCNTL:
            console.print("[yellow]Warning: file locking not available, running unlocked[/yellow]")
            return self

        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.lock_path, "w")
        try:
            fcntl.flock(self._file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            self._file.close()
            self._file = None
            raise RunLockedError(
                f"Another run is in progress (lock held on {self.lock_path})"
            ) from e

        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        if self._file is None:
            return

        fcntl.flock(self._file.fileno(), fcntl.LOCK_UN)
        self._file.close()
        self._file = None
