# services/permission_model.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union


class ViewLevel(str, Enum):
    """Which files a member may list and preview."""
    NONE = "none"
    VIEW_OWN = "view_own"
    VIEW_ALL = "view_all"


class UploadLevel(str, Enum):
    """Upload access. "Manage" means rename + delete."""
    NONE = "none"
    MANAGE_OWN = "upload_manage_own"
    MANAGE_ALL = "upload_manage_all"


class Extra(str, Enum):
    DOWNLOAD = "download"
    SHARE = "share"
    CREATE_FOLDERS = "create_folders"
    DELETE_FOLDERS = "delete_folders"
    INVITE_MEMBERS = "invite_members"


class Action(str, Enum):
    VIEW_FILES = "view_files"
    VIEW_OWN_FILES = "view_own_files"
    VIEW_ALL_FILES = "view_all_files"
    UPLOAD = "upload"
    RENAME_FILE = "rename_file"
    DELETE_FILE = "delete_file"
    DOWNLOAD = "download"
    SHARE = "share"
    CREATE_FOLDERS = "create_folders"
    DELETE_FOLDERS = "delete_folders"
    INVITE_MEMBERS = "invite_members"


class Ownership(str, Enum):
    OWN = "own"
    OTHER = "other"


VIEW_RANK = {ViewLevel.NONE: 0, ViewLevel.VIEW_OWN: 1, ViewLevel.VIEW_ALL: 2}
UPLOAD_RANK = {UploadLevel.NONE: 0, UploadLevel.MANAGE_OWN: 1, UploadLevel.MANAGE_ALL: 2}

# Extras that only make sense with some view access
_VIEW_DEPENDENT = frozenset({Extra.DOWNLOAD, Extra.SHARE})
# Extras that only make sense with some upload access
_UPLOAD_DEPENDENT = frozenset({Extra.CREATE_FOLDERS, Extra.DELETE_FOLDERS})

_EXTRA_ACTIONS = {
    Action.DOWNLOAD: Extra.DOWNLOAD,
    Action.SHARE: Extra.SHARE,
    Action.CREATE_FOLDERS: Extra.CREATE_FOLDERS,
    Action.DELETE_FOLDERS: Extra.DELETE_FOLDERS,
    Action.INVITE_MEMBERS: Extra.INVITE_MEMBERS,
}

_DESCRIPTIONS = {
    ViewLevel.VIEW_OWN: "View Own Files",
    ViewLevel.VIEW_ALL: "View All Files",
    UploadLevel.MANAGE_OWN: "Upload & Manage Own Files",
    UploadLevel.MANAGE_ALL: "Upload & Manage All Files",
    Extra.DOWNLOAD: "Download Files",
    Extra.SHARE: "Generate Share Links",
    Extra.CREATE_FOLDERS: "Create Folders",
    Extra.DELETE_FOLDERS: "Delete Folders",
    Extra.INVITE_MEMBERS: "Invite Members",
}


@dataclass(frozen=True)
class StructuredPermission:
    """
    Capability set of a bucket member: a view level, an upload level and
    independently togglable extras.

    Instances are plain values and may hold invalid combinations until they
    go through ``normalize`` (or are built with ``create_permission``).
    """
    view: ViewLevel = ViewLevel.NONE
    upload: UploadLevel = UploadLevel.NONE
    extras: FrozenSet[Extra] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept raw strings and any iterable of extras, keep the value hashable
        object.__setattr__(self, "view", ViewLevel(self.view))
        object.__setattr__(self, "upload", UploadLevel(self.upload))
        object.__setattr__(self, "extras", frozenset(Extra(e) for e in self.extras))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON friendly dictionary.

        Extras are sorted so the output is stable across runs.
        """
        return {
            "view": self.view.value,
            "upload": self.upload.value,
            "extras": sorted(e.value for e in self.extras),
        }


def create_permission(view: Union[ViewLevel, str],
                      upload: Union[UploadLevel, str] = UploadLevel.NONE,
                      extras: Optional[Iterable[Union[Extra, str]]] = None) -> StructuredPermission:
    """Build a permission and repair its dependencies in one step."""
    return normalize(StructuredPermission(view, upload, frozenset(extras or ())))


def normalize(permission: StructuredPermission) -> StructuredPermission:
    """
    Repair dependency violations between view, upload and extras.

    Rules are applied in order, later ones may override what earlier ones
    derived:

    1. no view access disables everything else (returns immediately)
    2. manage-own upload needs at least view-own
    3. manage-all upload needs view-all
    4. download/share need view access
    5. create/delete folders need upload access

    Invalid combinations are never rejected, they are silently downgraded
    (or, for rules 2-3, the view level is raised). The function is
    idempotent.

    Args:
        permission: Permission to repair

    Returns:
        StructuredPermission satisfying every dependency rule
    """
    if permission.view == ViewLevel.NONE:
        return StructuredPermission(ViewLevel.NONE, UploadLevel.NONE, frozenset())

    view = permission.view
    upload = permission.upload
    extras = set(permission.extras)

    # Unreachable after rule 1, kept so the rule set reads complete
    if upload == UploadLevel.MANAGE_OWN and view == ViewLevel.NONE:
        view = ViewLevel.VIEW_OWN

    if upload == UploadLevel.MANAGE_ALL and view != ViewLevel.VIEW_ALL:
        view = ViewLevel.VIEW_ALL

    if view == ViewLevel.NONE:
        extras -= _VIEW_DEPENDENT

    if upload == UploadLevel.NONE:
        extras -= _UPLOAD_DEPENDENT

    return StructuredPermission(view, upload, frozenset(extras))


def has_capability(permission: Optional[StructuredPermission],
                   action: Union[Action, str],
                   ownership: Optional[Union[Ownership, str]] = None) -> bool:
    """
    Check whether a permission allows an action.

    Args:
        permission: Member permission, ``None`` means no permission at all
        action: Action name, unknown actions are never allowed
        ownership: 'own' or 'other', only read for rename_file/delete_file

    Returns:
        bool: True if the action is allowed
    """
    if permission is None:
        return False
    try:
        action = Action(action)
    except ValueError:
        return False

    if action == Action.VIEW_FILES:
        return permission.view != ViewLevel.NONE
    if action == Action.VIEW_OWN_FILES:
        return permission.view in (ViewLevel.VIEW_OWN, ViewLevel.VIEW_ALL)
    if action == Action.VIEW_ALL_FILES:
        return permission.view == ViewLevel.VIEW_ALL
    if action == Action.UPLOAD:
        return permission.upload != UploadLevel.NONE
    if action in (Action.RENAME_FILE, Action.DELETE_FILE):
        if permission.upload == UploadLevel.MANAGE_ALL:
            return True
        if permission.upload == UploadLevel.MANAGE_OWN:
            return ownership == Ownership.OWN
        return False
    return _EXTRA_ACTIONS[action] in permission.extras


def describe_permission(permission: StructuredPermission) -> str:
    """Human readable summary, e.g. "View All Files, Download Files"."""
    parts = []
    if permission.view != ViewLevel.NONE:
        parts.append(_DESCRIPTIONS[permission.view])
    if permission.upload != UploadLevel.NONE:
        parts.append(_DESCRIPTIONS[permission.upload])
    # Extra enum order is the display order
    parts.extend(_DESCRIPTIONS[e] for e in Extra if e in permission.extras)
    return ", ".join(parts) if parts else "No permissions"
