"""
Per-document selection rules.

Decides, for one entry of the source folder, whether it must be
converted on this run. The rules are applied in order:

1. A non-empty change set scopes the run: anything outside it is skipped.
2. A tracked document that is not in the change set is already published.
3. Entries without a Markdown extension are not documents.
4. Everything else is converted.

An empty change set therefore means "no window": every untracked
document is a candidate. A tracked document that appears in the change
set is converted again, so edits to published documents are picked up.
"""

from enum import Enum
from typing import Collection

from .config import DOCUMENT_EXTENSIONS


class Action(Enum):
    """Outcome of the selection rules for a single entry."""
    CONVERT = "convert"
    SKIP_OUT_OF_WINDOW = "skip_out_of_window"
    SKIP_UNCHANGED = "skip_unchanged"
    SKIP_NOT_DOCUMENT = "skip_not_document"

    @property
    def converts(self) -> bool:
        return self is Action.CONVERT


def is_document(name: str) -> bool:
    """Check whether a path names a Markdown document."""
    return name.endswith(DOCUMENT_EXTENSIONS)


def decide(name: str, changed: Collection[str], tracked: Collection[str]) -> Action:
    """
    Choose what to do with one source entry.

    Args:
        name: Entry path relative to the source folder.
        changed: Documents reported changed since the recorded revision.
        tracked: Documents converted on earlier runs.

    Returns:
        The action for this entry.
    """
    in_change_set = name in changed

    if changed and not in_change_set:
        return Action.SKIP_OUT_OF_WINDOW

    if not in_change_set and name in tracked:
        return Action.SKIP_UNCHANGED

    if not is_document(name):
        return Action.SKIP_NOT_DOCUMENT

    return Action.CONVERT
