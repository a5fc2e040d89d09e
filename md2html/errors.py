"""
Error types raised by the publisher.

Every error aborts the run. Plain ``OSError`` from reading or writing
files is not wrapped and propagates as-is.
"""

from typing import Optional


class Md2HtmlError(Exception):
    """Base class for publisher errors."""


class GitCommandError(Md2HtmlError):
    """A git invocation failed; carries whatever git printed."""

    def __init__(self, message: str, output: Optional[str] = None):
        self.output = (output or "").strip()
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message)


class ChangeDetectionError(GitCommandError):
    """The revision-range diff could not be computed."""


class PublishError(GitCommandError):
    """Staging, committing or pushing failed."""


class IndexCorruptError(Md2HtmlError):
    """The tracking index exists but could not be parsed."""


class ConversionError(Md2HtmlError):
    """A document could not be rendered."""


class RunLockedError(Md2HtmlError):
    """Another run already holds the lock for this index."""
