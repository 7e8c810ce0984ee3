import logging
from pathlib import Path

from rich.console import Console

from .config import SyncOptions
from .constants import APP_NAME
from .git_wrapper import GitClient
from .github import GitHubClient
from .models import (
    Owner,
    OwnerRole,
    RepositoryRecord,
    SyncResult,
    SyncStatus,
)

console = Console()
logger = logging.getLogger(APP_NAME)


def resolve_owners(login: str, organizations: list[str]) -> list[Owner]:
    """Builds the ordered owner list: the authenticated user, then each organization.

    Organization names equal (case-insensitively) to the login or to an
    earlier entry are dropped, as are blank names.

    Args:
        login (str): The authenticated login.
        organizations (list[str]): Configured organization names.

    Returns:
        list[Owner]: The owners to process, in order.
    """
    owners = [Owner(login, OwnerRole.SELF)]
    seen = {login.lower()}
    for org in organizations:
        name = org.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        owners.append(Owner(name, OwnerRole.ORGANIZATION))
    return owners


def filter_repo(
    record: RepositoryRecord, include_forks: bool, include_archived: bool
) -> str | None:
    """Applies the inclusion policy to a record.

    Returns:
        str | None: The reason for skipping, or None if the record is accepted.
    """
    if record.is_fork and not include_forks:
        return "fork"
    if record.is_archived and not include_archived:
        return "archived"
    return None


def mirror_path(root: Path, record: RepositoryRecord) -> Path:
    return root / record.owner / f"{record.name}.git"


def wiki_path(root: Path, record: RepositoryRecord) -> Path:
    return root / record.owner / f"{record.name}.wiki.git"


def working_path(root: Path, record: RepositoryRecord) -> Path:
    return root / record.owner / record.name


def wiki_url(clone_url: str) -> str:
    """Derives the wiki remote from a repository clone URL ('x.git' -> 'x.wiki.git')."""
    base = clone_url[:-4] if clone_url.endswith(".git") else clone_url
    return f"{base}.wiki.git"


def _sync_large_files(git: GitClient, record: RepositoryRecord, dest: Path) -> None:
    console.print(f"   LFS: fetching all objects for {record.full_name}")
    try:
        git.fetch_large_files(dest)
    except (RuntimeError, ValueError) as e:
        # Optional feature; an informational note is all a failure gets.
        logger.info(f"LFS fetch skipped for {record.full_name}: {e}")
        console.print(f"   [dim]LFS: nothing fetched for {record.full_name}[/dim]")


def sync_wiki(
    record: RepositoryRecord, root: Path, git: GitClient, api: GitHubClient
) -> SyncStatus:
    """Clones or updates the wiki mirror when it is enabled and reachable.

    The bulk listing's has_wiki flag is not trusted; the repository is
    re-queried before anything touches the network via git.

    Returns:
        SyncStatus: CLONED/UPDATED on success, SKIPPED when disabled or
                    unreachable, FAILED when the clone/update itself errors.
    """
    try:
        enabled = api.has_wiki(record.full_name)
    except RuntimeError as e:
        logger.warning(f"Wiki flag lookup failed for {record.full_name}: {e}")
        console.print("   Wiki: could not verify wiki flag (skipping).")
        return SyncStatus.SKIPPED

    if not enabled:
        return SyncStatus.SKIPPED

    url = wiki_url(record.clone_url)
    if not git.is_reachable(url):
        console.print("   Wiki: not found or disabled (skipping).")
        return SyncStatus.SKIPPED

    dest = wiki_path(root, record)
    action = "updating" if dest.is_dir() else "cloning"
    console.print(f"   Wiki: {action} {record.full_name}.wiki")
    try:
        return git.mirror_clone_or_update(url, dest)
    except (RuntimeError, ValueError) as e:
        logger.warning(f"Wiki {action} failed for {record.full_name}: {e}")
        console.print(
            f"   [bold yellow]WARNING:[/bold yellow] Wiki {action} failed: {e}"
        )
        return SyncStatus.FAILED


def sync_mirror(
    record: RepositoryRecord,
    root: Path,
    options: SyncOptions,
    git: GitClient,
    api: GitHubClient,
) -> SyncResult:
    """Creates or updates the bare mirror of one repository, plus LFS and wiki.

    Args:
        record (RepositoryRecord): An accepted repository.
        root (Path): The destination root.
        options (SyncOptions): Inclusion switches.
        git (GitClient): Version-control capability.
        api (GitHubClient): Hosting API capability.

    Returns:
        SyncResult: The outcome; FAILED is reported, never raised.
    """
    dest = mirror_path(root, record)
    dest.parent.mkdir(parents=True, exist_ok=True)

    action = "Updating" if dest.is_dir() else "Cloning"
    console.print(f"→ {action} {record.full_name}")
    try:
        status = git.mirror_clone_or_update(record.clone_url, dest)
    except (RuntimeError, ValueError) as e:
        logger.error(f"MIRROR ERROR {record.full_name}: {e}")
        console.print(f"   [bold red]ERROR:[/bold red] {action} failed: {e}")
        return SyncResult(record.full_name, SyncStatus.FAILED, str(e))

    logger.info(f"MIRROR {record.full_name}: {status.value}")
    result = SyncResult(record.full_name, status)

    if options.include_lfs and git.lfs_available:
        _sync_large_files(git, record, dest)

    if options.include_wikis and not record.is_fork:
        result.wiki = sync_wiki(record, root, git, api)

    return result


def sync_working_copy(
    record: RepositoryRecord, root: Path, git: GitClient
) -> SyncResult:
    """Clones a working copy, or fetches and fast-forwards an existing one.

    Args:
        record (RepositoryRecord): An accepted repository.
        root (Path): The destination root.
        git (GitClient): Version-control capability.

    Returns:
        SyncResult: The outcome; FAILED is reported, never raised.
    """
    dest = working_path(root, record)
    dest.parent.mkdir(parents=True, exist_ok=True)
    cloning = not dest.is_dir()

    console.print(f"→ {'Cloning' if cloning else 'Updating'} {record.full_name}")
    try:
        state = git.working_clone_or_update(record.clone_url, dest)
    except (RuntimeError, ValueError) as e:
        verb = "clone" if cloning else "fetch updates for"
        logger.error(f"WORKING COPY ERROR {record.full_name}: {e}")
        console.print(
            f"   [bold red]ERROR:[/bold red] Failed to {verb} {record.full_name}"
        )
        return SyncResult(record.full_name, SyncStatus.FAILED, str(e))

    if state.status is SyncStatus.CLONED:
        console.print(
            f"   [bold green]SUCCESS:[/bold green] Cloned {record.full_name}"
        )
        console.print(f"   Working directory: {dest}")
        console.print(f"   Current branch: {state.branch or 'detached'}")
    elif state.status is SyncStatus.UPDATED:
        console.print(
            f"   [bold green]SUCCESS:[/bold green] Updated to latest {state.branch}"
        )
    elif state.status is SyncStatus.DIVERGED:
        console.print(
            "   [bold yellow]WARNING:[/bold yellow] Has local changes - "
            "fetch completed but not merged"
        )
    else:
        console.print("   [blue]INFO:[/blue] On detached HEAD - fetched latest changes")

    console.print(f"   Last commit: {state.last_commit}")
    logger.info(f"WORKING COPY {record.full_name}: {state.status.value}")
    return SyncResult(record.full_name, state.status, state.branch or "")
