import logging
import os
import shutil
import subprocess
from pathlib import Path

from .constants import APP_NAME, LFS_COMMAND
from .models import SyncStatus, WorkingCopyState

logger = logging.getLogger(APP_NAME)


def run_git(
    args: list[str],
    cwd: Path | None = None,
    capture: bool = True,
    env: dict | None = None,
) -> str:
    """Executes a Git command, optionally within a directory.

    Args:
        args (list[str]): A list of arguments to pass to the git command.
        cwd (Path | None, optional): Working directory for the command.
        capture (bool, optional): Whether to capture and return stdout.
                                  Defaults to True.
        env (dict | None, optional): Environment variables for the subprocess.

    Returns:
        str: The stripped stdout if capture is True, otherwise an empty string.

    Raises:
        RuntimeError: If the git command returns a non-zero exit code.
    """
    try:
        res = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=True,
            env=env,
        )
        return res.stdout.strip() if capture else ""
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Git error: {(e.stderr or '').strip() or e}") from e


class GitRepo:
    """A wrapper around the Git command-line interface for a local replica.

    Handles both working copies (a `.git` directory inside the tree) and bare
    mirror stores (the directory itself is the git dir).

    Attributes:
        path (Path): The file system path to the repository.
        bare (bool): Whether the repository is a bare store.
    """

    def __init__(self, path: Path, bare: bool = False):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The repository directory.
            bare (bool, optional): Whether `path` is a bare repository.

        Raises:
            ValueError: If the path does not look like a git repository.
        """
        self.path = path
        self.bare = bare
        marker = self.path / "HEAD" if bare else self.path / ".git"
        if not marker.exists():
            raise ValueError(f"Not a git repository: {self.path}")

    def _run(
        self, args: list[str], capture: bool = True, env: dict | None = None
    ) -> str:
        """Executes a Git command within the repository context."""
        return run_git(args, cwd=self.path, capture=capture, env=env)

    def current_branch(self) -> str:
        """Retrieves the checked-out branch name (empty when detached)."""
        return self._run(["branch", "--show-current"])

    def last_commit(self) -> str:
        """Returns the one-line summary of HEAD, or 'No commits'."""
        try:
            return self._run(["log", "-1", "--oneline"]) or "No commits"
        except RuntimeError:
            return "No commits"

    def fetch(self, remote: str = "origin") -> None:
        """Fetches all branches from a remote without touching the working tree."""
        self._run(["fetch", remote])

    def merge_ff_only(self, target: str) -> None:
        """Fast-forwards the current branch to `target`.

        Raises:
            RuntimeError: If the branch has diverged or the merge is refused.
        """
        self._run(["merge", "--ff-only", target])

    def remote_update(self, prune: bool = True) -> None:
        """Updates all remotes, removing refs deleted upstream when `prune` is set."""
        cmd = ["remote", "update"]
        if prune:
            cmd.append("--prune")
        self._run(cmd)

    def lfs_fetch_all(self) -> None:
        """Fetches Git LFS objects for every ref into this repository."""
        env = os.environ.copy()
        env["GIT_DIR"] = str(self.path if self.bare else self.path / ".git")
        self._run(["lfs", "fetch", "--all"], env=env)


class GitClient:
    """Version-control capability used by the synchronizers.

    Each operation decides create-versus-update from directory presence alone,
    so repeated runs are idempotent and resume after interruption.
    """

    @property
    def lfs_available(self) -> bool:
        return shutil.which(LFS_COMMAND) is not None

    def mirror_clone_or_update(self, url: str, dest: Path) -> SyncStatus:
        """Creates or refreshes a bare mirror of `url` at `dest`.

        Args:
            url (str): The remote URL.
            dest (Path): The bare repository directory (e.g. owner/repo.git).

        Returns:
            SyncStatus: CLONED for a new mirror, UPDATED for an existing one.

        Raises:
            RuntimeError: If the clone or update fails.
        """
        if not dest.is_dir():
            dest.parent.mkdir(parents=True, exist_ok=True)
            run_git(["clone", "--mirror", "--no-hardlinks", url, str(dest)])
            return SyncStatus.CLONED

        GitRepo(dest, bare=True).remote_update(prune=True)
        return SyncStatus.UPDATED

    def fetch_large_files(self, dest: Path) -> None:
        """Fetches all LFS objects for all refs into the mirror at `dest`."""
        GitRepo(dest, bare=True).lfs_fetch_all()

    def working_clone_or_update(self, url: str, dest: Path) -> WorkingCopyState:
        """Creates a working copy, or fetches and fast-forwards an existing one.

        Local divergent commits are never discarded: if the fast-forward is
        refused the tree is left as it was.

        Args:
            url (str): The remote URL.
            dest (Path): The working tree directory.

        Returns:
            WorkingCopyState: The outcome plus current branch and last commit.

        Raises:
            RuntimeError: If the clone or fetch fails.
        """
        if not dest.is_dir():
            dest.parent.mkdir(parents=True, exist_ok=True)
            run_git(["clone", url, str(dest)])
            repo = GitRepo(dest)
            return WorkingCopyState(
                SyncStatus.CLONED, repo.current_branch() or None, repo.last_commit()
            )

        repo = GitRepo(dest)
        repo.fetch("origin")
        branch = repo.current_branch()

        if not branch:
            return WorkingCopyState(SyncStatus.DETACHED, None, repo.last_commit())

        try:
            repo.merge_ff_only(f"origin/{branch}")
            status = SyncStatus.UPDATED
        except RuntimeError as e:
            logger.info(f"Fast-forward refused in {dest}: {e}")
            status = SyncStatus.DIVERGED

        return WorkingCopyState(status, branch, repo.last_commit())

    def _batch_ssh_command(self) -> str:
        """Returns the SSH command git would use, with interactive auth disabled.

        GIT_SSH_COMMAND takes precedence over core.sshCommand, as in git itself.
        """
        base = os.environ.get("GIT_SSH_COMMAND", "").strip()
        if not base:
            try:
                base = run_git(["config", "--get", "core.sshCommand"])
            except RuntimeError:
                base = ""
        return f"{base or 'ssh'} -o BatchMode=yes"

    def is_reachable(self, url: str) -> bool:
        """Probes a remote with `git ls-remote`, never prompting for credentials."""
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["GIT_SSH_COMMAND"] = self._batch_ssh_command()
        try:
            run_git(["ls-remote", url], env=env)
            return True
        except RuntimeError as e:
            logger.debug(f"ls-remote failed for {url}: {e}")
            return False
