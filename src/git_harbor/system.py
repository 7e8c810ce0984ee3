import logging
import shutil
import sys

from rich.console import Console

from .constants import APP_NAME, LFS_COMMAND

err_console = Console(stderr=True)
logger = logging.getLogger(APP_NAME)


def has_command(name: str) -> bool:
    """Returns True if `name` resolves to an executable on PATH."""
    return shutil.which(name) is not None


def require_commands(names: list[str]) -> None:
    """Aborts the run if any required external tool is missing.

    Args:
        names (list[str]): Executables that must be on PATH.

    Raises:
        SystemExit: With code 1 naming the first missing command.
    """
    for name in names:
        if not has_command(name):
            logger.error(f"Missing required command: {name}")
            err_console.print(
                f"[bold red]ERROR:[/bold red] Missing required command: {name}"
            )
            sys.exit(1)


def warn_missing_lfs() -> None:
    """Prints a note that LFS objects will not be fetched."""
    logger.info(f"{LFS_COMMAND} not found; LFS objects will not be fetched.")
    err_console.print(
        f"[bold yellow]NOTE:[/bold yellow] {LFS_COMMAND} not found. LFS objects "
        "won't be fetched (set include.lfs = false or install git-lfs)."
    )
