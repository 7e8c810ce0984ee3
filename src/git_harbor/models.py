from dataclasses import dataclass
from enum import Enum
from typing import Any


class OwnerRole(str, Enum):
    """The relationship between an owner and the authenticated identity."""

    SELF = "user"
    ORGANIZATION = "org"


class SyncStatus(str, Enum):
    """Outcome of synchronizing a single repository."""

    CLONED = "cloned"
    UPDATED = "updated"
    DIVERGED = "diverged"
    DETACHED = "detached"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class Owner:
    """A user or organization whose repositories are replicated.

    Attributes:
        login (str): The GitHub login of the owner.
        role (OwnerRole): Whether this is the authenticated user or an organization.
    """

    login: str
    role: OwnerRole


@dataclass(frozen=True)
class RepositoryRecord:
    """Flat projection of a repository listing item.

    Attributes:
        full_name (str): The 'owner/name' key, unique within a run.
        clone_url (str): The clone URL for the configured protocol.
        has_wiki (bool): The wiki flag as reported by the bulk listing.
        is_fork (bool): Whether the repository is a fork.
        is_archived (bool): Whether the repository is archived.
    """

    full_name: str
    clone_url: str
    has_wiki: bool
    is_fork: bool
    is_archived: bool

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[1]

    @classmethod
    def from_payload(cls, payload: dict[str, Any], protocol: str) -> "RepositoryRecord":
        """Builds a record from raw GitHub API data, discarding all other fields.

        Args:
            payload (dict[str, Any]): A single item from a repository listing.
            protocol (str): 'ssh' selects `ssh_url`, 'https' selects `clone_url`.

        Returns:
            RepositoryRecord: The normalized record.
        """
        url_key = "clone_url" if protocol == "https" else "ssh_url"
        return cls(
            full_name=payload["full_name"],
            clone_url=payload.get(url_key) or "",
            has_wiki=bool(payload.get("has_wiki", False)),
            is_fork=bool(payload.get("fork", False)),
            is_archived=bool(payload.get("archived", False)),
        )


@dataclass(frozen=True)
class WorkingCopyState:
    """What a working-copy sync observed after cloning or updating.

    Attributes:
        status (SyncStatus): CLONED, UPDATED, DIVERGED or DETACHED.
        branch (str | None): The checked-out branch, None when detached.
        last_commit (str): One-line summary of HEAD, or 'No commits'.
    """

    status: SyncStatus
    branch: str | None
    last_commit: str


@dataclass
class SyncResult:
    """Per-repository outcome reported to the operator.

    Attributes:
        full_name (str): The repository key.
        status (SyncStatus): The main replica outcome.
        detail (str): Human-readable context (error text, skip reason).
        wiki (SyncStatus | None): The wiki replica outcome, None if not attempted.
    """

    full_name: str
    status: SyncStatus
    detail: str = ""
    wiki: SyncStatus | None = None
