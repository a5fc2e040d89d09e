"""Tests for change detection against a recorded revision."""

from unittest.mock import MagicMock

import pytest

from conftest import commit_all, git, requires_git, write
from md2html.change_detector import ChangeDetector
from md2html.errors import ChangeDetectionError
from md2html.git_handler import GitHandler


def test_no_recorded_revision_skips_git():
    git_handler = MagicMock(spec=GitHandler)
    detector = ChangeDetector(git_handler, source_path=MagicMock())

    assert detector.changed_files("") == []
    git_handler.diff_names.assert_not_called()


def test_duplicate_paths_are_reported_once():
    git_handler = MagicMock(spec=GitHandler)
    git_handler.diff_names.return_value = ["b.md", "a.md", "b.md", "c.txt"]
    detector = ChangeDetector(git_handler, source_path=MagicMock())

    assert detector.changed_files("abc123") == ["b.md", "a.md"]


@requires_git
def test_reports_changed_documents_relative_to_source(repo, config):
    write(repo / "posts" / "a.md", "# A\n")
    write(repo / "posts" / "unchanged.md", "# U\n")
    base = commit_all(repo, "base")

    write(repo / "posts" / "a.md", "# A edited\n")
    write(repo / "posts" / "b.markdown", "# B\n")
    write(repo / "posts" / "my notes.md", "# spaces\n")
    write(repo / "posts" / "café.md", "# unicode\n")
    write(repo / "posts" / "nested" / "deep.md", "# deep\n")
    write(repo / "posts" / "image.png", "png")
    write(repo / "other" / "a.md", "# outside source\n")
    commit_all(repo, "edits")

    detector = ChangeDetector(GitHandler(config), config.source_path)
    changed = detector.changed_files(base)

    assert set(changed) == {"a.md", "b.markdown", "my notes.md", "café.md", "nested/deep.md"}
    assert len(changed) == len(set(changed))


@requires_git
def test_no_changes_since_revision_is_empty(repo, config):
    write(repo / "posts" / "a.md", "# A\n")
    base = commit_all(repo, "base")
    write(repo / "_index", "{}")
    commit_all(repo, "index only")

    detector = ChangeDetector(GitHandler(config), config.source_path)

    assert detector.changed_files(base) == []


@requires_git
def test_unknown_revision_is_fatal(repo, config):
    detector = ChangeDetector(GitHandler(config), config.source_path)

    with pytest.raises(ChangeDetectionError) as excinfo:
        detector.changed_files("0" * 40)

    assert excinfo.value.output


@requires_git
def test_missing_source_folder_is_fatal(repo, config):
    base = git(repo, "rev-parse", "HEAD")
    detector = ChangeDetector(GitHandler(config), repo / "does-not-exist")

    with pytest.raises(ChangeDetectionError):
        detector.changed_files(base)
