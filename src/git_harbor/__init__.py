"""Git Harbor: Local replicas of every GitHub repository you own.

This package provides the command-line entry points, the configuration layer,
and the orchestration core that enumerates a user's and organizations'
repositories through `gh` and keeps mirror backups or working copies of them
up to date through `git`.
"""

from . import (
    cli,
    config,
    constants,
    git_wrapper,
    github,
    models,
    ops,
    runner,
    system,
)

__all__ = [
    "cli",
    "config",
    "constants",
    "git_wrapper",
    "github",
    "models",
    "ops",
    "runner",
    "system",
]
