"""
Configuration management for the Markdown → HTML publisher.

Loads settings from environment variables and provides
structured configuration for all publishing components.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_APP_NAME = "md2html"

# Recognised document extensions, compared case-sensitively
DOCUMENT_EXTENSIONS = (".md", ".markdown")


def _env_flag(name: str, default: bool) -> bool:
    """Read a true/false environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _split_paths(value: Optional[str]) -> list[Path]:
    """Split a comma or path-separator delimited list of template paths."""
    if not value:
        return []
    parts = value.replace(os.pathsep, ",").split(",")
    return [Path(p.strip()) for p in parts if p.strip()]


@dataclass
class GitCredentials:
    """Username/token pair used to authenticate pushes."""

    username: str
    token: str

    def __repr__(self) -> str:
        return f"GitCredentials(username={self.username!r}, token='***')"


@dataclass
class Config:
    """
    Central configuration for a publishing run.

    Loads from environment variables and provides defaults.
    Credentials are carried here and handed to the git handler
    explicitly; nothing reads them from process globals.
    """

    # Paths
    source_dir: Path = Path("posts")
    destination_dir: Path = Path("html")
    index_file: Path = Path("_index")
    templates: list[Path] = field(default_factory=list)
    repo_root: Path = field(default_factory=lambda: Path.cwd())

    # Git settings
    git_user_name: str = DEFAULT_APP_NAME
    git_user_email: str = DEFAULT_APP_NAME
    credentials: Optional[GitCredentials] = None
    remote: str = "origin"

    # Run behaviour
    push: bool = True
    dry_run: bool = False
    debug: bool = False
    strict_index: bool = False
    recursive: bool = False

    @property
    def source_path(self) -> Path:
        """Source folder resolved against the repository root."""
        return self.repo_root / self.source_dir

    @property
    def destination_path(self) -> Path:
        """Destination folder resolved against the repository root."""
        return self.repo_root / self.destination_dir

    @property
    def index_path(self) -> Path:
        """Tracking index file resolved against the repository root."""
        return self.repo_root / self.index_file

    @property
    def template_paths(self) -> list[Path]:
        """Template files resolved against the repository root."""
        return [self.repo_root / t for t in self.templates]

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                     ``APP_ENV_FILE`` is consulted, then ``.env`` in the
                     current directory.

        Returns:
            Configured Config instance. Credentials are not checked here;
            call :meth:`validate` once CLI overrides are applied.
        """
        if env_file is None and os.getenv("APP_ENV_FILE"):
            env_file = Path(os.environ["APP_ENV_FILE"])

        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        username = os.getenv("GITHUB_USERNAME")
        token = os.getenv("GITHUB_TOKEN")
        credentials = GitCredentials(username, token) if username and token else None

        repo_root_str = os.getenv("REPO_ROOT")
        repo_root = Path(repo_root_str) if repo_root_str else Path.cwd()

        return cls(
            source_dir=Path(os.getenv("APP_SOURCE_FOLDER", "posts")),
            destination_dir=Path(os.getenv("APP_DESTINATION_FOLDER", "html")),
            index_file=Path(os.getenv("APP_INDEX_FILE", "_index")),
            templates=_split_paths(os.getenv("APP_HTML_TEMPLATES")),
            repo_root=repo_root,
            git_user_name=os.getenv("APP_GIT_USER_NAME", DEFAULT_APP_NAME),
            git_user_email=os.getenv("APP_GIT_USER_EMAIL", DEFAULT_APP_NAME),
            credentials=credentials,
            remote=os.getenv("APP_GIT_REMOTE", "origin"),
            push=_env_flag("APP_AUTO_PUSH", True),
            dry_run=_env_flag("DRY_RUN", False),
            debug=_env_flag("DEBUG", False),
            strict_index=_env_flag("APP_STRICT_INDEX", False),
            recursive=_env_flag("APP_RECURSIVE", False),
        )

    def validate(self) -> None:
        """
        Check the configuration is usable for a run.

        Raises:
            ValueError: If a required setting is missing or inconsistent.
        """
        if self.push and not self.dry_run and self.credentials is None:
            raise ValueError(
                "GITHUB_USERNAME and GITHUB_TOKEN environment variables are required "
                "to push changes.\n"
                "Create a token at https://github.com/settings/tokens, "
                "or run with --no-push."
            )

        if not self.git_user_name or not self.git_user_email:
            raise ValueError("Git author name and email must not be empty.")

        if self.source_path.resolve() == self.destination_path.resolve():
            raise ValueError("Source and destination folders must differ.")

    def __post_init__(self):
        """Normalise path fields given as strings."""
        for name in ("source_dir", "destination_dir", "index_file", "repo_root"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value))
        self.templates = [Path(t) for t in self.templates]
