import json
import logging
import subprocess
from collections.abc import Iterator
from typing import Any

from .constants import API_ACCEPT, APP_NAME, DEFAULT_HOST, PAGE_SIZE
from .models import Owner, OwnerRole, RepositoryRecord

logger = logging.getLogger(APP_NAME)


class GitHubClient:
    """Hosting API capability backed by the `gh` command-line client.

    `gh` owns authentication and transport; this class only builds endpoint
    paths, drains pagination and projects the JSON into records.

    Attributes:
        host (str): The GitHub hostname passed to `gh --hostname`.
        per_page (int): Items requested per listing page.
    """

    def __init__(self, host: str = DEFAULT_HOST, per_page: int = PAGE_SIZE):
        self.host = host
        self.per_page = per_page

    def _api(self, path: str) -> Any:
        """Performs a GET request through `gh api` and decodes the JSON body.

        Args:
            path (str): The endpoint path including any query string.

        Returns:
            Any: The decoded response.

        Raises:
            RuntimeError: If `gh` fails or returns invalid JSON.
        """
        cmd = ["gh", "api", "--hostname", self.host, "-H", API_ACCEPT, path]
        try:
            res = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise RuntimeError(
                f"GitHub API error: {(e.stderr or '').strip() or e}"
            ) from e

        try:
            return json.loads(res.stdout or "null")
        except json.JSONDecodeError as e:
            raise RuntimeError(f"GitHub API error: invalid JSON from {path}") from e

    def is_authenticated(self) -> bool:
        """Checks `gh auth status` for the configured host."""
        try:
            res = subprocess.run(
                ["gh", "auth", "status", "--hostname", self.host],
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.error(f"Could not run gh: {e}")
            return False
        return res.returncode == 0

    def authenticated_login(self) -> str:
        """Returns the login of the authenticated identity.

        Raises:
            RuntimeError: If the lookup fails or returns no login.
        """
        data = self._api("/user")
        login = data.get("login") if isinstance(data, dict) else None
        if not login:
            raise RuntimeError("GitHub API error: no login for authenticated user")
        return login

    def _paginate(self, path: str) -> Iterator[dict[str, Any]]:
        """Yields every item of a listing endpoint, fetching pages until exhausted."""
        sep = "&" if "?" in path else "?"
        page = 1
        while True:
            items = self._api(f"{path}{sep}per_page={self.per_page}&page={page}")
            if not isinstance(items, list):
                raise RuntimeError(f"GitHub API error: expected a list from {path}")
            logger.debug(f"Fetched page {page} of {path}: {len(items)} items")
            yield from items
            if len(items) < self.per_page:
                return
            page += 1

    def list_repositories(
        self, owner: Owner, protocol: str
    ) -> Iterator[RepositoryRecord]:
        """Lazily enumerates the repositories belonging to an owner.

        For the authenticated user the listing covers everything visible to the
        identity, so items are narrowed to those owned by `owner.login`.
        Organization listings are scoped server-side and returned as-is.

        Args:
            owner (Owner): The owner to enumerate.
            protocol (str): 'ssh' or 'https', selecting the clone URL.

        Yields:
            RepositoryRecord: One normalized record per repository.

        Raises:
            RuntimeError: If a page cannot be fetched or an entry is malformed.
        """
        if owner.role is OwnerRole.SELF:
            items = self._paginate("/user/repos")
        else:
            items = self._paginate(f"/orgs/{owner.login}/repos?type=all")

        for item in items:
            try:
                if (
                    owner.role is OwnerRole.SELF
                    and (item.get("owner") or {}).get("login") != owner.login
                ):
                    continue
                record = RepositoryRecord.from_payload(item, protocol)
            except (AttributeError, KeyError, TypeError) as e:
                raise RuntimeError(
                    f"GitHub API error: malformed repository entry: {e!r}"
                ) from e
            yield record

    def has_wiki(self, full_name: str) -> bool:
        """Re-reads the authoritative wiki flag for a single repository."""
        data = self._api(f"/repos/{full_name}")
        return bool(isinstance(data, dict) and data.get("has_wiki"))
