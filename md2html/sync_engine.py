"""
Main engine for Markdown → HTML publishing.

Orchestrates:
- Tracking index loading
- Change detection against the last published revision
- Document selection and conversion
- Publishing the generated HTML, then the updated index
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .change_detector import ChangeDetector
from .config import Config
from .converter import HtmlConverter, output_name
from .errors import Md2HtmlError
from .git_handler import Author, GitHandler
from .index_store import TrackingRecord, load_index, save_index
from .lock import LOCK_NAME, RunLock
from .selection import Action, decide

console = Console()

CONTENT_COMMIT_MESSAGE = "generated new markdown files"
INDEX_COMMIT_MESSAGE = "update tracking index"


@dataclass
class RunResult:
    """Result of a publishing run."""

    converted: list[str] = field(default_factory=list)
    skipped: dict[str, Action] = field(default_factory=dict)
    content_revision: Optional[str] = None
    index_revision: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        """Check if any document was converted."""
        return len(self.converted) > 0

    @property
    def published(self) -> bool:
        """Check if both the content and the index were published."""
        return self.index_revision is not None

    def skipped_count(self, action: Action) -> int:
        return sum(1 for a in self.skipped.values() if a is action)


class SyncEngine:
    """
    Main orchestrator for a publishing run.

    A run is strictly sequential:
    1. Load the tracking index
    2. Ask git which documents changed since the recorded revision
    3. Walk the source folder and convert the selected documents
    4. Commit and push the destination folder
    5. Record the new revision, then commit and push the index

    Steps 4 and 5 are separate commits. If step 5 fails the content is
    already published under a revision the index does not know yet; the
    next run diffs from the older revision and converts those documents
    again.
    """

    def __init__(
        self,
        config: Config,
        git_handler: Optional[GitHandler] = None,
        converter: Optional[HtmlConverter] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Configuration instance.
            git_handler: Git collaborator; built from ``config`` if omitted.
            converter: Conversion collaborator; built from ``config`` if omitted.
        """
        self.config = config
        self.git_handler = git_handler or GitHandler(config)
        self.converter = converter or HtmlConverter(config.template_paths)
        self.change_detector = ChangeDetector(self.git_handler, config.source_path)
        self.author = Author.from_config(config)

    def _pathspec(self, path: Path) -> str:
        """Express a path relative to the repository root for git."""
        return Path(os.path.relpath(path, self.config.repo_root)).as_posix()

    def _require_repo(self) -> None:
        if not self.git_handler.is_git_repo():
            raise Md2HtmlError(f"{self.config.repo_root} is not a git repository")

    def run(self) -> RunResult:
        """
        Perform one publishing run under the repository lock.

        Returns:
            RunResult with details of the operation.

        Raises:
            Md2HtmlError: On any git, index or conversion failure.
            OSError: If the source folder or a document cannot be read,
                or output cannot be written.
        """
        console.print("\n[bold blue]Starting Markdown → HTML publish[/bold blue]\n")

        self._require_repo()
        with RunLock(self.git_handler.git_dir() / LOCK_NAME):
            result = self._run()

        self._print_summary(result)
        return result

    def _run(self) -> RunResult:
        result = RunResult()

        record = load_index(self.config.index_path, strict=self.config.strict_index)
        changed = self.change_detector.changed_files(record.revision)

        tracked = set(record.files)
        for name in self.discover_sources():
            action = decide(name, changed, tracked)

            if not action.converts:
                result.skipped[name] = action
                self._report_skip(name, action)
                continue

            console.print(f"[cyan]Converting:[/cyan] {escape(name)}")
            output_path = self.converter.convert_file(
                name, self.config.source_path, self.config.destination_path
            )
            console.print(f"[dim]  → {escape(self._pathspec(output_path))}[/dim]")

            result.converted.append(name)
            record.add(name)

        if not result.has_changes:
            console.print("[dim]No file was generated[/dim]")
            return result

        if self.config.dry_run:
            console.print(
                f"[yellow]Dry run - would publish {len(result.converted)} file(s) "
                f"and update {self.config.index_file}[/yellow]"
            )
            return result

        self._publish(record, result)
        return result

    def _publish(self, record: TrackingRecord, result: RunResult) -> None:
        """Publish the generated HTML, then the index that records it."""
        result.content_revision = self.git_handler.publish(
            self.author,
            self._pathspec(self.config.destination_path),
            CONTENT_COMMIT_MESSAGE,
        )

        record.revision = result.content_revision
        save_index(self.config.index_path, record)

        result.index_revision = self.git_handler.publish(
            self.author,
            self._pathspec(self.config.index_path),
            INDEX_COMMIT_MESSAGE,
        )

    def discover_sources(self) -> list[str]:
        """
        List source entries relative to the source folder.

        Only files are returned. Without ``recursive`` just the top level
        is listed; otherwise nested folders are walked, skipping hidden
        ones. Entries come back sorted.

        Raises:
            OSError: If the source folder cannot be listed.
        """
        source = self.config.source_path

        if not self.config.recursive:
            return sorted(entry.name for entry in source.iterdir() if entry.is_file())

        names = []
        for root, dirs, files in os.walk(source, onerror=_raise):
            dirs[:] = sorted(d for d in dirs if not d.startswith("."))
            rel_root = Path(root).relative_to(source)
            for filename in sorted(files):
                names.append((rel_root / filename).as_posix())
        return sorted(names)

    def _report_skip(self, name: str, action: Action) -> None:
        if action is Action.SKIP_UNCHANGED:
            console.print(f"[dim]Skipping {escape(name)} (already converted)[/dim]")
        elif action is Action.SKIP_NOT_DOCUMENT:
            console.print(f"[dim]Skipping {escape(name)} (not a markdown file)[/dim]")
        elif self.config.debug:
            console.print(f"[dim]Skipping {escape(name)} (not changed since last publish)[/dim]")

    def _print_summary(self, result: RunResult) -> None:
        """Print run summary."""
        console.print("\n" + "=" * 50)
        console.print("[bold]Publish Summary[/bold]")
        console.print("=" * 50)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Files converted", str(len(result.converted)))
        table.add_row("Skipped (already converted)", str(result.skipped_count(Action.SKIP_UNCHANGED)))
        table.add_row("Skipped (outside change set)", str(result.skipped_count(Action.SKIP_OUT_OF_WINDOW)))
        table.add_row("Skipped (not markdown)", str(result.skipped_count(Action.SKIP_NOT_DOCUMENT)))
        table.add_row("Content revision", result.content_revision or "✗")
        table.add_row("Index revision", result.index_revision or "✗")

        console.print(table)

        if result.converted:
            console.print(f"\n[green]Converted:[/green] {escape(', '.join(result.converted))}")

        console.print("")

    def status(self) -> TrackingRecord:
        """Print the current tracking index."""
        record = load_index(self.config.index_path, strict=self.config.strict_index)

        console.print("\n[bold]Publish Status[/bold]\n")

        if not record.files:
            console.print("[yellow]No documents have been converted yet.[/yellow]")
            console.print("Run 'md2html' to perform the first publish.")
            return record

        table = Table(title="Tracked Documents")
        table.add_column("Document", style="cyan")
        table.add_column("Output", style="green")
        table.add_column("Source present", style="yellow")

        for name in record.files:
            present = (self.config.source_path / name).is_file()
            table.add_row(
                escape(name),
                escape((self.config.destination_dir / output_name(name)).as_posix()),
                "✓" if present else "✗",
            )

        console.print(table)

        if record.has_revision:
            console.print(f"\nLast published revision: {record.revision}")
        else:
            console.print("\n[yellow]Nothing has been published yet.[/yellow]")

        return record


def _raise(error: OSError) -> None:
    raise error
