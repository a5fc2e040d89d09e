"""
Tracking index persistence.

The index records every document that has been converted and the
revision of the last successful publish. It is a small JSON file kept
inside the repository so that it travels with the generated output:

    {"files": ["hello.md", "notes/today.md"], "__commit__": "3f2a..."}
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from .errors import IndexCorruptError

console = Console()

FILES_KEY = "files"
REVISION_KEY = "__commit__"


@dataclass
class TrackingRecord:
    """Documents already converted plus the last published revision."""

    files: list[str] = field(default_factory=list)
    revision: str = ""

    def __contains__(self, name: str) -> bool:
        return name in self.files

    def add(self, name: str) -> None:
        """Record a converted document, keeping first-seen order."""
        if name not in self.files:
            self.files.append(name)

    @property
    def has_revision(self) -> bool:
        """Whether anything has been published yet."""
        return bool(self.revision)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {FILES_KEY: list(self.files), REVISION_KEY: self.revision}

    @classmethod
    def from_dict(cls, data: dict) -> "TrackingRecord":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        files = data.get(FILES_KEY) or []
        revision = data.get(REVISION_KEY) or ""
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ValueError(f"'{FILES_KEY}' must be a list of strings")
        if not isinstance(revision, str):
            raise ValueError(f"'{REVISION_KEY}' must be a string")

        record = cls(revision=revision)
        for name in files:
            record.add(name)
        return record


def load_index(path: Path, strict: bool = False) -> TrackingRecord:
    """
    Load the tracking record from disk.

    A missing file yields an empty record. An unreadable JSON document
    is reported and reset to an empty record, unless ``strict`` is set.

    Args:
        path: Location of the index file.
        strict: Raise instead of resetting when the file is malformed.

    Returns:
        The persisted record, or an empty one.

    Raises:
        IndexCorruptError: If strict and the file cannot be parsed.
        OSError: If the file exists but cannot be read.
    """
    if not path.is_file():
        return TrackingRecord()

    try:
        return TrackingRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as e:
        if strict:
            raise IndexCorruptError(f"Could not parse index file {path}: {e}") from e
        console.print(
            f"[yellow]Warning: Could not parse index file {path} ({e}); "
            "starting from an empty index[/yellow]"
        )
        return TrackingRecord()


def save_index(path: Path, record: TrackingRecord) -> None:
    """
    Write the tracking record to disk, creating parent folders first.

    The record is encoded to bytes before anything is written, then
    written to a temporary file beside the index and renamed over it,
    so a failed save leaves the previous index untouched. Names that
    are not valid UTF-8 are stored as ``\\udcXX`` JSON escapes and load
    back unchanged.
    """
    payload = (json.dumps(record.to_dict(), indent=2) + "\n").encode("utf-8")

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
