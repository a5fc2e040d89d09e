"""
Git operations for the publisher.

Handles:
- Revision-range diffs
- Staging and committing generated files under a fixed author
- Authenticated pushes to the configured remote
"""

import base64
import os
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import Config, GitCredentials
from .errors import PublishError

console = Console()

REDACTED = "***"


@dataclass(frozen=True)
class Author:
    """Identity recorded on commits made by the publisher."""

    name: str
    email: str

    @classmethod
    def from_config(cls, config: Config) -> "Author":
        return cls(name=config.git_user_name, email=config.git_user_email)


def _auth_header(credentials: GitCredentials) -> str:
    """HTTP basic authorization header for a username/token pair."""
    pair = f"{credentials.username}:{credentials.token}".encode("utf-8")
    return "Authorization: Basic " + base64.b64encode(pair).decode("ascii")


class GitHandler:
    """
    Handles git interactions for a publishing run.

    Every command runs against ``repo_root``. Failures raise; nothing
    here retries.
    """

    def __init__(self, config: Config):
        """
        Initialize git handler.

        Args:
            config: Configuration instance.
        """
        self.config = config
        self.repo_root = config.repo_root
        self._secrets: list[str] = []
        if config.credentials is not None:
            self._secrets = [
                config.credentials.token,
                _auth_header(config.credentials).split(" ", 2)[2],
            ]

    def redact(self, text: str) -> str:
        """Blank out credentials in command lines and git output."""
        for secret in self._secrets:
            if secret:
                text = text.replace(secret, REDACTED)
        return text

    def run(
        self,
        *args: str,
        cwd: Optional[Path] = None,
        env: Optional[dict] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """
        Run a git command.

        Output is decoded as UTF-8 with surrogate escapes so that paths
        which are not valid UTF-8 survive a round trip.
        """
        cmd = ["git", "-C", str(cwd or self.repo_root)] + list(args)

        if self.config.debug:
            console.print(f"[dim]Running: {self.redact(' '.join(cmd))}[/dim]")

        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
            env=env,
            check=check,
        )

    def _output(self, e: subprocess.CalledProcessError) -> str:
        return self.redact((e.stderr or "") + (e.stdout or ""))

    def is_git_repo(self) -> bool:
        """Check if repo_root is a git repository."""
        try:
            self.run("rev-parse", "--git-dir")
            return True
        except subprocess.CalledProcessError:
            return False

    def git_dir(self) -> Path:
        """Absolute path of the repository's .git directory."""
        result = self.run("rev-parse", "--absolute-git-dir")
        return Path(result.stdout.strip())

    def head_revision(self) -> str:
        """Full hash of the current HEAD commit."""
        result = self.run("rev-parse", "HEAD")
        return result.stdout.strip()

    def diff_names(self, revision: str, path: Path) -> list[str]:
        """
        List paths changed between ``revision`` and HEAD below ``path``.

        Paths are NUL-separated by git and returned relative to ``path``.

        Raises:
            subprocess.CalledProcessError: If git rejects the diff.
        """
        result = self.run(
            "diff", "--name-only", "-z", "--relative", revision, "HEAD", "--", ".",
            cwd=path,
        )
        return [p for p in result.stdout.split("\0") if p]

    def stage(self, pathspec: str) -> None:
        """Stage additions, modifications and deletions matching a pathspec."""
        self.run("add", "-A", "--", pathspec)

    def has_staged_changes(self) -> bool:
        """Check whether the index differs from HEAD."""
        result = self.run("diff", "--cached", "--quiet", check=False)
        return result.returncode != 0

    def commit(self, author: Author, message: str, when: Optional[datetime] = None) -> str:
        """
        Commit the staged changes and return the new revision.

        Author and committer are both set to ``author`` at ``when``
        (default: now), independent of any user.name/user.email config.
        """
        when = (when or datetime.now(timezone.utc)).replace(microsecond=0)
        stamp = when.isoformat()

        env = dict(os.environ)
        env.update({
            "GIT_AUTHOR_NAME": author.name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": author.name,
            "GIT_COMMITTER_EMAIL": author.email,
            "GIT_COMMITTER_DATE": stamp,
        })

        self.run("commit", "--quiet", "-m", message, env=env)
        return self.head_revision()

    def push(self) -> None:
        """
        Push the current branch to the configured remote.

        Credentials are sent as an HTTP header rather than embedded in the
        remote URL. An empty ``http.extraHeader`` first clears any header
        inherited from git config.
        """
        remote = self.config.remote

        result = self.run("remote", "get-url", remote, check=False)
        if result.returncode != 0:
            raise PublishError(f"Remote '{remote}' is not configured")

        args = []
        if self.config.credentials is not None:
            args = [
                "-c", "http.extraHeader=",
                "-c", f"http.extraHeader={_auth_header(self.config.credentials)}",
            ]

        self.run(*args, "push", "--quiet", remote, "HEAD")

    def publish(self, author: Author, pathspec: str, message: str) -> str:
        """
        Stage, commit and push everything matching ``pathspec``.

        Makes at most one commit. When staging leaves nothing to commit
        no commit is created and the current HEAD is returned.

        Args:
            author: Commit identity.
            pathspec: Path or glob, relative to the repository root.
            message: Commit message.

        Returns:
            The revision that now holds the published files.

        Raises:
            PublishError: If staging, committing or pushing fails.
        """
        try:
            self.stage(pathspec)
        except subprocess.CalledProcessError as e:
            raise PublishError(f"Failed to stage '{pathspec}'", self._output(e)) from e

        try:
            if self.has_staged_changes():
                revision = self.commit(author, message)
                console.print(f"[green]Committed:[/green] {message} ({revision[:7]})")
            else:
                revision = self.head_revision()
                console.print(f"[dim]No changes to commit for '{pathspec}'[/dim]")
        except subprocess.CalledProcessError as e:
            raise PublishError("Failed to commit changes", self._output(e)) from e

        if not self.config.push:
            console.print("[yellow]Push disabled, commit kept locally[/yellow]")
            return revision

        try:
            self.push()
        except subprocess.CalledProcessError as e:
            raise PublishError(
                f"Failed to push to '{self.config.remote}'", self._output(e)
            ) from e
        console.print(f"[green]Pushed to {self.config.remote}[/green]")

        return revision
