"""Shared fixtures: throwaway git repositories with a local bare remote."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from md2html.config import Config, GitCredentials

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

TOKEN = "s3cret-token"

ENV_VARS = [
    "APP_ENV_FILE",
    "APP_SOURCE_FOLDER",
    "APP_DESTINATION_FOLDER",
    "APP_HTML_TEMPLATES",
    "APP_INDEX_FILE",
    "APP_GIT_USER_NAME",
    "APP_GIT_USER_EMAIL",
    "APP_GIT_REMOTE",
    "APP_AUTO_PUSH",
    "APP_STRICT_INDEX",
    "APP_RECURSIVE",
    "GITHUB_USERNAME",
    "GITHUB_TOKEN",
    "REPO_ROOT",
    "DRY_RUN",
    "DEBUG",
]


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(cwd), *args], capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit_all(repo: Path, message: str) -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so values loaded by python-dotenv are undone too
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def remote(tmp_path) -> Path:
    path = tmp_path / "remote.git"
    subprocess.run(["git", "init", "-q", "--bare", str(path)], check=True)
    return path


@pytest.fixture
def repo(tmp_path, remote) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    git(path, "init", "-q")
    git(path, "checkout", "-q", "-b", "main")
    git(path, "config", "user.name", "Test Author")
    git(path, "config", "user.email", "author@example.com")
    git(path, "config", "commit.gpgsign", "false")
    git(path, "remote", "add", "origin", str(remote))

    write(path / "README.md", "# site\n")
    (path / "posts").mkdir()
    commit_all(path, "initial")
    git(path, "push", "-q", "origin", "main")
    return path


@pytest.fixture
def config(repo) -> Config:
    return Config(repo_root=repo, credentials=GitCredentials("publisher", TOKEN))
