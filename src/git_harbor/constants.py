import os
from pathlib import Path

"""Global constants and configuration path definitions for Git Harbor.

This module defines the filesystem layout (adhering to XDG standards where applicable),
application identifiers, and the GitHub API values used across the application.
"""

# --- Identity ---
APP_NAME = "git-harbor"
"""str: The human-readable application name."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "git-harbor"
"""Path: The directory for runtime state data (logs)."""

# Ensure state directory exists immediately upon module import.
STATE_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = STATE_DIR / "harbor.log"
"""Path: The file path for the run logs."""

# --- Configuration Paths ---
CONFIG_DIR: Path = Path.home() / ".config/git-harbor"
"""Path: The directory for user configuration files."""

_ENV_CONFIG = os.environ.get("GIT_HARBOR_CONFIG")
CONFIG_FILE: Path = Path(_ENV_CONFIG) if _ENV_CONFIG else CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

LOCAL_CONFIG_NAME = "harbor.toml"
"""str: The per-directory configuration file merged over the global one."""

# --- Modes ---
MODE_MIRROR = "mirror"
"""str: Pipeline producing bare mirror backups."""

MODE_WORKING = "working"
"""str: Pipeline producing working-copy clones."""

DESTINATION_PREFIXES = {
    MODE_MIRROR: "github-backup",
    MODE_WORKING: "github-repos",
}
"""dict[str, str]: Default destination directory prefix per pipeline."""

# --- GitHub / Logic Constants ---
DEFAULT_HOST = "github.com"
"""str: The GitHub hostname passed to `gh`."""

API_ACCEPT = "Accept: application/vnd.github+json"
"""str: The media type header sent with every API request."""

PAGE_SIZE = 100
"""int: Items requested per page from listing endpoints (GitHub maximum)."""

PROTOCOLS = ("ssh", "https")
"""tuple[str, ...]: Supported clone protocols."""

REQUIRED_COMMANDS = ["git", "gh"]
"""list[str]: External tools whose absence aborts the run."""

LFS_COMMAND = "git-lfs"
"""str: Optional tool enabling large-file replication."""
