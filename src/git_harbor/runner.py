import logging
import sys
from collections import Counter
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

from . import ops, system
from .config import Config
from .constants import APP_NAME, LOG_FILE, MODE_MIRROR, MODE_WORKING, REQUIRED_COMMANDS
from .git_wrapper import GitClient
from .github import GitHubClient
from .models import Owner, OwnerRole, RepositoryRecord, SyncResult, SyncStatus

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)

console = Console()
err_console = Console(stderr=True)

SEPARATOR = "----------------"


def setup_logging(config: Config) -> None:
    """Attaches a rotating file handler to the application logger.

    Operator-facing output goes through the rich console; the log file keeps
    a timestamped record of every run.

    Args:
        config (Config): Supplies the rotation size.
    """
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=config.limits.max_log_size,
        backupCount=5,
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


def ensure_authenticated(api: GitHubClient) -> str:
    """Verifies `gh` is logged in and returns the authenticated login.

    Raises:
        SystemExit: With code 1 if authentication is not established.
    """
    login = None
    if api.is_authenticated():
        try:
            login = api.authenticated_login()
        except RuntimeError as e:
            logger.error(f"Identity lookup failed: {e}")

    if not login:
        logger.error("Not authenticated with gh.")
        err_console.print(
            "[bold red]ERROR:[/bold red] You must run: gh auth login   "
            "(grant at least 'repo' scope for private repos)"
        )
        sys.exit(1)
    return login


def _owner_header(owner: Owner, mode: str) -> str:
    kind = "user" if owner.role is OwnerRole.SELF else "org"
    verb = "Enumerating" if mode == MODE_MIRROR else "Cloning"
    return f"== {verb} {kind} repos for: {owner.login} =="


def _sync_record(
    record: RepositoryRecord,
    mode: str,
    root: Path,
    config: Config,
    git: GitClient,
    api: GitHubClient,
) -> SyncResult:
    """Filters and synchronizes a single repository, never raising."""
    options = config.options
    reason = ops.filter_repo(record, options.include_forks, options.include_archived)
    if reason:
        logger.info(f"SKIPPED {record.full_name}: {reason}")
        console.print(f"Skipping {record.full_name} (fork/archived filter)")
        return SyncResult(record.full_name, SyncStatus.SKIPPED, reason)

    try:
        if mode == MODE_MIRROR:
            return ops.sync_mirror(record, root, options, git, api)
        return ops.sync_working_copy(record, root, git)
    except Exception as e:
        logger.exception(f"LOOP ERROR {record.full_name}")
        console.print(f"   [bold red]ERROR:[/bold red] {record.full_name}: {e}")
        return SyncResult(record.full_name, SyncStatus.FAILED, str(e))


def sync_owner(
    owner: Owner,
    mode: str,
    root: Path,
    config: Config,
    git: GitClient,
    api: GitHubClient,
) -> list[SyncResult]:
    """Enumerates one owner's repositories and synchronizes each in turn.

    A listing failure ends this owner's sweep but not the run.

    Returns:
        list[SyncResult]: Outcomes for every repository reached.
    """
    console.print(f"[bold]{_owner_header(owner, mode)}[/bold]")
    results: list[SyncResult] = []
    records = api.list_repositories(owner, config.options.protocol)

    try:
        if mode == MODE_WORKING:
            console.print("  Fetching repository list...")
            records = list(records)
            console.print(f"  Found {len(records)} repositories")

        for record in records:
            results.append(_sync_record(record, mode, root, config, git, api))
            if mode == MODE_WORKING:
                console.print(SEPARATOR)
    except RuntimeError as e:
        logger.error(f"LISTING ERROR {owner.login}: {e}")
        console.print(
            f"[bold red]ERROR:[/bold red] Could not list repositories for "
            f"{owner.login}: {e}"
        )

    return results


def print_summary(
    mode: str, root: Path, login: str, results: list[SyncResult]
) -> None:
    """Prints the completion line, a tally, and the follow-up tips."""
    tally = Counter(r.status.value for r in results)
    if tally:
        parts = ", ".join(f"{n} {status}" for status, n in sorted(tally.items()))
        console.print(f"Processed {len(results)} repositories: {parts}")

    if mode == MODE_MIRROR:
        console.print(
            "[bold green]SUCCESS:[/bold green] Done. "
            f"All mirrored repos are under: {root}"
        )
        console.print(
            f"Tip: tar it up ->  tar -czf {root.name}.tar.gz "
            f'-C "{root.parent}" "{root.name}"'
        )
        return

    console.print(
        f"[bold green]SUCCESS:[/bold green] Done. All repositories are under: {root}"
    )
    console.print("\nQuick navigation tips:")
    console.print(f"  cd {root}")
    console.print(f"  cd {root / login}/<repository-name>")
    console.print("  git status      # Check repo status")
    console.print("  git branch -a   # See all branches")


def run(
    mode: str,
    config: Config | None = None,
    git: GitClient | None = None,
    api: GitHubClient | None = None,
) -> list[SyncResult]:
    """Runs one full sweep of a pipeline.

    Preconditions (required tools, authentication) are checked before any
    enumeration or filesystem writes, the log file included. After that,
    nothing short of process termination stops the sweep: each owner and
    repository is independent.

    Args:
        mode (str): MODE_MIRROR or MODE_WORKING.
        config (Config | None): Configuration; loaded from disk when omitted.
        git (GitClient | None): Version-control capability override.
        api (GitHubClient | None): Hosting API capability override.

    Returns:
        list[SyncResult]: The outcome of every repository reached.
    """
    config = config or Config.load(Path.cwd())

    system.require_commands(REQUIRED_COMMANDS)
    git = git or GitClient()
    api = api or GitHubClient(host=config.core.host)
    login = ensure_authenticated(api)

    setup_logging(config)
    options = config.options
    if mode == MODE_MIRROR and options.include_lfs and not git.lfs_available:
        system.warn_missing_lfs()

    root = config.destination_root(mode)
    root.mkdir(parents=True, exist_ok=True)
    target = "Backing up to" if mode == MODE_MIRROR else "Cloning repositories to"
    console.print(f"{target}: {root}")
    logger.info(f"START {mode} sweep for {login} into {root}")

    results: list[SyncResult] = []
    for owner in ops.resolve_owners(login, config.owners.organizations):
        results.extend(sync_owner(owner, mode, root, config, git, api))

    logger.info(f"DONE {mode} sweep: {len(results)} repositories")
    print_summary(mode, root, login, results)
    return results
