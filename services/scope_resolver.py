# services/scope_resolver.py

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScopeType(str, Enum):
    ENTIRE = "entire"
    SPECIFIC = "specific"
    NESTED = "nested"


def _clean_folder(path: str) -> str:
    return path.strip().strip("/")


@dataclass(frozen=True)
class Scope:
    """
    Folder restriction layered on top of a member permission.

    ``folders`` is only meaningful for specific and nested scopes. Paths are
    stored without leading or trailing slashes, duplicates removed, original
    order kept (the root listing shows them in that order).
    """
    type: ScopeType = ScopeType.ENTIRE
    folders: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "type", ScopeType(self.type))
        cleaned = []
        for folder in self.folders:
            folder = _clean_folder(folder)
            if folder and folder not in cleaned:
                cleaned.append(folder)
        object.__setattr__(self, "folders", tuple(cleaned))

    @property
    def is_limited(self) -> bool:
        return self.type != ScopeType.ENTIRE

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "folders": list(self.folders)}

    @classmethod
    def entire(cls) -> "Scope":
        return cls(ScopeType.ENTIRE)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Scope":
        """
        Read ``{"type": ..., "folders": [...]}``.

        A missing type means the entire bucket. An unknown type raises
        ValueError rather than widening access.
        """
        if not data:
            return cls.entire()
        return cls.from_columns(data.get("type"), data.get("folders"))

    @classmethod
    def from_columns(cls, scope_type: Optional[str], scope_folders: Any) -> "Scope":
        """
        Build a scope from the two persisted columns.

        Args:
            scope_type: 'entire', 'specific', 'nested' or None
            scope_folders: JSON text or an already decoded list of paths

        Returns:
            Scope
        """
        if not scope_type or scope_type == ScopeType.ENTIRE:
            return cls.entire()
        if isinstance(scope_folders, (str, bytes)):
            try:
                scope_folders = json.loads(scope_folders or "[]")
            except ValueError:
                logger.warning("Malformed scope folders %r, using an empty folder set", scope_folders)
                scope_folders = []
        folders = [f for f in (scope_folders or []) if isinstance(f, str)]
        return cls(ScopeType(scope_type), tuple(folders))


@dataclass
class ListingItem:
    """One entry of a folder listing as produced by the storage layer."""
    name: str
    path: str
    type: str = "file"
    virtual_path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({"name": self.name, "path": self.path, "type": self.type})
        if self.virtual_path is not None:
            data["virtualPath"] = self.virtual_path
        return data


def _matches_specific(folder: str, item_path: str) -> bool:
    # exact, descendant of the folder, or ancestor on the way down to it
    return (item_path == folder
            or item_path.startswith(folder + "/")
            or folder.startswith(item_path + "/"))


def _matches_nested(folder: str, item_path: str) -> bool:
    # Unanchored both ways: "projects/2024" also matches "projects/20" and
    # "projects/2024-old". Known looseness, kept as is.
    return item_path.startswith(folder) or folder.startswith(item_path)


def is_item_in_scope(scope: Optional[Scope], item_path: str) -> bool:
    """
    Decide whether a storage item falls inside a member's folder scope.

    Args:
        scope: Member scope, ``None`` means the entire bucket
        item_path: Slash delimited key, no leading slash, trailing slash
            already stripped by the caller

    Returns:
        bool: True if the item may be accessed
    """
    if scope is None or scope.type == ScopeType.ENTIRE:
        return True
    if scope.type == ScopeType.SPECIFIC:
        return any(_matches_specific(folder, item_path) for folder in scope.folders)
    return any(_matches_nested(folder, item_path) for folder in scope.folders)


def covers_folder(folders: Iterable[str], path: str) -> bool:
    """True if ``path`` matches one of ``folders`` with the specific-scope test."""
    return any(_matches_specific(folder, path) for folder in folders)


def can_browse_folder(scope: Optional[Scope], current_folder: str) -> bool:
    """
    Whether a member may open ``current_folder`` at all.

    For a specific scope the folder has to be an allowed folder or lead down
    to one. Contents of a descendant are reached through its allowed parent.
    """
    current_folder = current_folder.strip("/")
    if scope is None or scope.type == ScopeType.ENTIRE or not current_folder:
        return True
    return is_item_in_scope(scope, current_folder)


def filter_listing(scope: Optional[Scope], items: Iterable[ListingItem],
                   current_folder: Optional[str] = None) -> List[ListingItem]:
    """
    Restrict a folder listing to what the scope allows.

    At the bucket root a specific-scoped member does not see the real listing;
    one virtual folder per allowed path is synthesized instead, named after
    the last path segment. Everywhere else items are filtered one by one with
    ``is_item_in_scope``.
    """
    items = list(items)
    if scope is None or scope.type == ScopeType.ENTIRE:
        return items

    at_root = not (current_folder or "").strip("/")
    if scope.type == ScopeType.SPECIFIC and at_root:
        return [
            ListingItem(
                name=folder.split("/")[-1],
                path=folder,
                type="folder",
                virtual_path=folder,
            )
            for folder in scope.folders
        ]

    return [item for item in items if is_item_in_scope(scope, item.path.rstrip("/"))]
