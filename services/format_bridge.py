# services/format_bridge.py

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Union

from services.permission_model import (
    Extra,
    StructuredPermission,
    UploadLevel,
    ViewLevel,
    normalize,
)

logger = logging.getLogger(__name__)

# Python attribute -> key used in stored/wire JSON
LEGACY_KEYS = {
    "view_only": "viewOnly",
    "view_download": "viewDownload",
    "upload_only": "uploadOnly",
    "upload_view_own": "uploadViewOwn",
    "upload_view_all": "uploadViewAll",
    "delete_files": "deleteFiles",
    "delete_own_files": "deleteOwnFiles",
    "generate_links": "generateLinks",
    "create_folder": "createFolder",
    "invite_members": "inviteMembers",
}


@dataclass(frozen=True)
class LegacyPermission:
    """
    Flat ten-boolean permission record as it is persisted in the members and
    invitations tables. No invariants are enforced here.
    """
    view_only: bool = False
    view_download: bool = False
    upload_only: bool = False
    upload_view_own: bool = False
    upload_view_all: bool = False
    delete_files: bool = False
    delete_own_files: bool = False
    generate_links: bool = False
    create_folder: bool = False
    invite_members: bool = False

    def to_dict(self) -> Dict[str, bool]:
        """Serialize with the camelCase keys used on the wire."""
        return {LEGACY_KEYS[name]: value for name, value in asdict(self).items()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "LegacyPermission":
        """
        Read a legacy payload.

        Missing keys are false, unknown keys are ignored and values are
        coerced with ``bool``. Anything that is not a mapping yields the
        all-false permission.
        """
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring non-object legacy permission payload: %r", data)
            return cls()
        values = {}
        for f in fields(cls):
            # Accept both the wire key and the attribute name
            raw = data.get(LEGACY_KEYS[f.name], data.get(f.name))
            values[f.name] = bool(raw) if raw is not None else False
        return cls(**values)

    @classmethod
    def from_json(cls, raw: Union[str, bytes, None]) -> "LegacyPermission":
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Malformed legacy permission JSON, treating as no permission")
            return cls()
        return cls.from_dict(data)


def from_legacy(legacy: LegacyPermission) -> StructuredPermission:
    """
    Derive the structured permission from a legacy record.

    The view level is view_all when any of uploadViewAll, viewOnly or
    viewDownload is set, else view_own for uploadViewOwn. The upload level
    is manage_all for uploadViewAll, else manage_own for uploadViewOwn or
    uploadOnly. Any file-delete flag implies the delete_folders extra.
    The result is normalized.
    """
    if legacy.upload_view_all or legacy.view_only or legacy.view_download:
        view = ViewLevel.VIEW_ALL
    elif legacy.upload_view_own:
        view = ViewLevel.VIEW_OWN
    else:
        view = ViewLevel.NONE

    if legacy.upload_view_all:
        upload = UploadLevel.MANAGE_ALL
    elif legacy.upload_view_own or legacy.upload_only:
        upload = UploadLevel.MANAGE_OWN
    else:
        upload = UploadLevel.NONE

    extras = set()
    if legacy.view_download:
        extras.add(Extra.DOWNLOAD)
    if legacy.generate_links:
        extras.add(Extra.SHARE)
    if legacy.create_folder:
        extras.add(Extra.CREATE_FOLDERS)
    if legacy.delete_files or legacy.delete_own_files:
        extras.add(Extra.DELETE_FOLDERS)
    if legacy.invite_members:
        extras.add(Extra.INVITE_MEMBERS)

    return normalize(StructuredPermission(view, upload, frozenset(extras)))


def to_legacy(permission: StructuredPermission) -> LegacyPermission:
    """
    Encode a structured permission in the legacy format.

    This is not the inverse of ``from_legacy``: delete_folders has no legacy
    field and is dropped, and the two delete flags can only be produced from
    the upload level.
    """
    values = {}
    if permission.view == ViewLevel.VIEW_ALL:
        if Extra.DOWNLOAD in permission.extras:
            values["view_download"] = True
        else:
            values["view_only"] = True

    if permission.upload == UploadLevel.MANAGE_OWN:
        values["upload_view_own"] = True
        values["delete_own_files"] = True
    elif permission.upload == UploadLevel.MANAGE_ALL:
        values["upload_view_all"] = True
        values["delete_files"] = True

    if Extra.SHARE in permission.extras:
        values["generate_links"] = True
    if Extra.CREATE_FOLDERS in permission.extras:
        values["create_folder"] = True
    if Extra.INVITE_MEMBERS in permission.extras:
        values["invite_members"] = True

    return LegacyPermission(**values)


def correct_legacy_dependencies(legacy: LegacyPermission) -> LegacyPermission:
    """Repair a legacy payload before persisting it."""
    return to_legacy(normalize(from_legacy(legacy)))
