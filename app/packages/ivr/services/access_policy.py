"""Path-hierarchy access policy.

A Standard user's grants authorize a path and everything nested under it.
Folders *above* a grant are also visible so the granted subtree stays
reachable by navigation; the user can see such a folder but gets nothing
from it beyond the branch that leads to the grant. Admins bypass all checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from app.packages.ivr.core.enums import RoleEnum
from app.packages.ivr.services.entries import Entry
from app.packages.ivr.utils import path_utils


@dataclass(frozen=True)
class Principal:
    """The acting user as plain data, decoupled from the ORM row."""

    id: str
    display_name: str
    role: RoleEnum = RoleEnum.STANDARD
    granted_paths: tuple[str, ...] = field(default_factory=tuple)
    can_upload: bool = False
    can_delete: bool = False
    can_download: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", RoleEnum(self.role))
        object.__setattr__(self, "granted_paths", normalize_grants(self.granted_paths))

    @property
    def is_admin(self) -> bool:
        return self.role is RoleEnum.ADMIN

    @classmethod
    def from_user(cls, user: Any) -> "Principal":
        return cls(
            id=user.username,
            display_name=user.display_name or user.username,
            role=RoleEnum(user.role),
            granted_paths=tuple(user.granted_paths),
            can_upload=bool(user.can_upload),
            can_delete=bool(user.can_delete),
            can_download=bool(user.can_download),
        )


def normalize_grants(paths: Iterable[str]) -> tuple[str, ...]:
    """Normalize and de-duplicate grants, keeping their first-seen order.

    An empty grant would cover the whole tree, so it is dropped; only the
    Admin role gets unrestricted access.
    """
    seen: dict[str, None] = {}
    for raw in paths or ():
        normalized = path_utils.normalize(raw)
        if normalized:
            seen.setdefault(normalized, None)
    return tuple(seen)


def grant_covers_entry(grant: str, entry_path: str) -> bool:
    return path_utils.is_ancestor_or_self(grant, entry_path)


def entry_is_ancestor_of_grant(entry: Entry, grant: str) -> bool:
    return entry.is_folder and path_utils.is_ancestor_or_self(entry.path, grant)


def visible(entry: Entry, user: Principal) -> bool:
    if user.is_admin:
        return True
    return any(
        grant_covers_entry(grant, entry.path) or entry_is_ancestor_of_grant(entry, grant)
        for grant in user.granted_paths
    )


def can_access_path(user: Principal, path: str) -> bool:
    """Whether ``path`` itself lies inside one of the user's grants (no ancestor pass)."""
    if user.is_admin:
        return True
    path = path_utils.normalize(path)
    return any(grant_covers_entry(grant, path) for grant in user.granted_paths)


def can_upload(user: Principal) -> bool:
    return user.is_admin or user.can_upload


def can_delete(user: Principal) -> bool:
    return user.is_admin or user.can_delete


def can_download(user: Principal) -> bool:
    return user.is_admin or user.can_download
