#!/usr/bin/env python3
"""
Markdown → HTML Publisher CLI

Usage:
    md2html                 # Convert changed documents and publish
    md2html --no-push       # Commit locally without pushing
    md2html --dry-run       # Convert without committing or updating the index
    md2html status          # Show tracked documents and last revision
    md2html version         # Show version information
"""

import sys
import traceback
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from md2html import __version__
from md2html.config import Config, GitCredentials
from md2html.sync_engine import SyncEngine

console = Console()


def _build_config(options: dict) -> Config:
    """Load configuration from the environment and apply CLI overrides."""
    env_file: Optional[str] = options.get("env_file")
    config = Config.from_env(Path(env_file) if env_file else None)

    overrides = {
        "source_dir": options.get("source"),
        "destination_dir": options.get("destination"),
        "index_file": options.get("index"),
        "git_user_name": options.get("git_user_name"),
        "git_user_email": options.get("git_user_email"),
        "remote": options.get("remote"),
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, Path(value) if name.endswith(("_dir", "_file")) else value)

    if options.get("templates"):
        config.templates = [Path(t) for t in options["templates"]]

    username = options.get("github_username")
    token = options.get("github_token")
    if username or token:
        current = config.credentials
        username = username or (current.username if current else None)
        token = token or (current.token if current else None)
        config.credentials = GitCredentials(username, token) if username and token else None

    if options.get("no_push"):
        config.push = False
    for flag in ("dry_run", "debug", "strict_index", "recursive"):
        if options.get(flag):
            setattr(config, flag, True)

    return config


def _fail(message: str, debug: bool, code: int = 1) -> None:
    console.print(message)
    if debug:
        traceback.print_exc()
    sys.exit(code)


@click.group(invoke_without_command=True)
@click.option("--source", help="Source folder containing markdown files [posts]")
@click.option("--destination", help="Destination folder to store html files [html]")
@click.option("--templates", multiple=True, help="Template used to wrap generated html (repeatable)")
@click.option("--index", help="Index file tracking converted markdown files [_index]")
@click.option("--git-user-name", help="Git author name for commits [md2html]")
@click.option("--git-user-email", help="Git author email for commits [md2html]")
@click.option("--github-username", help="Username used to push changes")
@click.option("--github-token", help="Token used to push changes")
@click.option("--remote", help="Git remote to push to [origin]")
@click.option("--env-file", type=click.Path(dir_okay=False), help="Load environment from this file")
@click.option("--no-push", is_flag=True, help="Commit locally but don't push")
@click.option("--dry-run", is_flag=True, help="Convert without committing or updating the index")
@click.option("--strict-index", is_flag=True, help="Fail instead of resetting a corrupt index")
@click.option("--recursive", is_flag=True, help="Include markdown files in nested folders")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx, **options):
    """
    Markdown → HTML Publisher

    Converts new and changed markdown documents to HTML and pushes the
    result to the repository's remote.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(options)

    # If no subcommand, run a publish
    if ctx.invoked_subcommand is None:
        ctx.invoke(publish)


@cli.command()
@click.pass_context
def publish(ctx):
    """Convert changed documents and publish them."""
    debug = bool(ctx.obj.get("debug"))

    try:
        config = _build_config(ctx.obj)
        config.validate()
    except ValueError as e:
        _fail(f"[red]Configuration error:[/red] {e}", debug=False)

    try:
        SyncEngine(config).run()
    except KeyboardInterrupt:
        _fail("\n[yellow]Publish cancelled.[/yellow]", debug=False, code=130)
    except Exception as e:
        _fail(f"[red]Error:[/red] {e}", debug=debug)


@cli.command()
@click.pass_context
def status(ctx):
    """Show tracked documents and the last published revision."""
    debug = bool(ctx.obj.get("debug"))

    try:
        config = _build_config(ctx.obj)
        SyncEngine(config).status()
    except ValueError as e:
        _fail(f"[red]Configuration error:[/red] {e}", debug=False)
    except Exception as e:
        _fail(f"[red]Error:[/red] {e}", debug=debug)


@cli.command()
def version():
    """Show version information."""
    console.print(f"Markdown → HTML Publisher v{__version__}")


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
