"""
Change detection against the last published revision.

Asks git which documents in the source folder changed between the
revision recorded in the tracking index and HEAD.
"""

import subprocess
from pathlib import Path

from rich.console import Console

from .errors import ChangeDetectionError
from .git_handler import GitHandler
from .selection import is_document

console = Console()


class ChangeDetector:
    """Computes the change set for a run."""

    def __init__(self, git_handler: GitHandler, source_path: Path):
        self.git_handler = git_handler
        self.source_path = source_path

    def changed_files(self, revision: str) -> list[str]:
        """
        Documents changed since ``revision``, relative to the source folder.

        With no recorded revision git is not consulted and the result is
        empty; the caller treats that as "every document is a candidate".

        Args:
            revision: Revision recorded by the last successful publish.

        Returns:
            Changed document paths, in git's order, without duplicates.

        Raises:
            ChangeDetectionError: If git cannot produce the diff.
        """
        if not revision:
            console.print("[dim]No previous publish recorded[/dim]")
            return []

        try:
            paths = self.git_handler.diff_names(revision, self.source_path)
        except (subprocess.CalledProcessError, OSError) as e:
            output = ""
            if isinstance(e, subprocess.CalledProcessError):
                output = (e.stderr or "") + (e.stdout or "")
            raise ChangeDetectionError(
                f"Failed to diff {self.source_path} against {revision}", output
            ) from e

        changed = []
        for path in paths:
            if is_document(path) and path not in changed:
                changed.append(path)

        console.print(
            f"[dim]{len(changed)} changed document(s) since {revision[:7]}[/dim]"
        )
        return changed
