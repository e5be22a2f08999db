# services/access_decision.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

from services.escalation_guard import can_grant, can_grant_scope, uncovered_folders
from services.format_bridge import LegacyPermission, from_legacy
from services.permission_model import Action, Ownership, has_capability, normalize
from services.scope_resolver import ListingItem, Scope, is_item_in_scope

logger = logging.getLogger(__name__)


class DenyReason(str, Enum):
    FORBIDDEN = "Forbidden"
    SCOPE_VIOLATION = "ScopeViolation"
    ESCALATION_DENIED = "EscalationDenied"
    NOT_FOUND = "NotFound"
    EXPIRED = "Expired"


HTTP_STATUS = {
    DenyReason.FORBIDDEN: 403,
    DenyReason.SCOPE_VIOLATION: 403,
    DenyReason.ESCALATION_DENIED: 403,
    DenyReason.NOT_FOUND: 404,
    DenyReason.EXPIRED: 410,
}

_DENIAL_MESSAGES = {
    Action.VIEW_FILES: "You do not have permission to view files in this bucket.",
    Action.UPLOAD: "You do not have permission to upload files. Please contact the owner for access.",
    Action.DOWNLOAD: "You do not have permission to download files. Please contact the owner for access.",
    Action.DELETE_FILE: "You do not have permission to delete files. You can only delete files you uploaded.",
    Action.RENAME_FILE: "You do not have permission to rename files. You can only rename files you uploaded.",
    Action.SHARE: "You do not have permission to share files. Please contact the owner for access.",
    Action.CREATE_FOLDERS: "You do not have permission to create folders. Please contact the owner for access.",
    Action.DELETE_FOLDERS: "You do not have permission to delete folders. Please contact the owner for access.",
    Action.INVITE_MEMBERS: "You do not have permission to invite members. Please contact the owner for access.",
}


def denial_message(action: Union[Action, str]) -> str:
    """User facing text for a Forbidden verdict on ``action``."""
    try:
        return _DENIAL_MESSAGES[Action(action)]
    except (KeyError, ValueError):
        name = action.value if isinstance(action, Action) else action
        return f"You do not have permission to perform {name}. Please contact the owner for access."


@dataclass(frozen=True)
class Decision:
    """Verdict of ``authorize``. Truthy when access is allowed."""
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    def __bool__(self):
        return self.allowed

    @property
    def status_code(self) -> int:
        return 200 if self.allowed else HTTP_STATUS[self.reason]

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(False, reason, message)

    def to_dict(self):
        if self.allowed:
            return {"allowed": True}
        return {"allowed": False, "reason": self.reason.value, "msg": self.message}


@dataclass(frozen=True)
class BucketRef:
    name: str
    owner_email: str


@dataclass(frozen=True)
class MemberGrant:
    """A member row as the engine sees it: stored legacy permission plus scope."""
    email: str
    bucket_name: str
    permission: LegacyPermission = field(default_factory=LegacyPermission)
    scope: Scope = field(default_factory=Scope.entire)


@dataclass(frozen=True)
class GrantRequest:
    """Permission and scope an inviter wants to hand out."""
    permission: LegacyPermission
    scope: Scope = field(default_factory=Scope.entire)


Item = Union[str, ListingItem]


def _item_path(item: Item) -> str:
    return item if isinstance(item, str) else item.path


def ownership_of(items: Optional[Sequence[Item]], actor_email: str,
                 owners: Optional[Mapping[str, str]] = None) -> Optional[Ownership]:
    """
    Resolve "own files" for a batch of items.

    Args:
        items: Items the action applies to
        actor_email: Member performing the action
        owners: file path -> uploader email, from the ownership records

    Returns:
        Ownership.OWN when every item was uploaded by the actor,
        Ownership.OTHER when any item was not (or has no record),
        None when there are no items
    """
    if not items:
        return None
    owners = owners or {}
    for item in items:
        if owners.get(_item_path(item)) != actor_email:
            return Ownership.OTHER
    return Ownership.OWN


def authorize(actor_email: str,
              bucket: Optional[BucketRef],
              action: Union[Action, str],
              items: Optional[Sequence[Item]] = None,
              member: Optional[MemberGrant] = None,
              owners: Optional[Mapping[str, str]] = None,
              grant_request: Optional[GrantRequest] = None) -> Decision:
    """
    Decide whether ``actor_email`` may perform ``action`` on ``items``.

    The bucket owner is always allowed. Anybody else needs a member record
    whose permission has the capability and whose scope contains every item.
    For invite_members the requested permission and scope must also stay
    within the inviter's own.

    This is a snapshot decision over already loaded values, callers that
    need stronger guarantees re-load and re-check right before acting.

    Args:
        actor_email: Who is asking
        bucket: Target bucket, None if it does not exist
        action: Action name (see ``Action``)
        items: Item paths (or listing items) the action touches
        member: The actor's member record for this bucket, if any
        owners: Ownership records for ``items``, path -> uploader email
        grant_request: Invitation payload, only read for invite_members

    Returns:
        Decision
    """
    if bucket is None:
        return Decision.deny(DenyReason.NOT_FOUND, "Bucket not found")

    if actor_email == bucket.owner_email:
        return Decision.allow()

    if member is None:
        label = action.value if isinstance(action, Action) else str(action)
        return _log_denial(actor_email, bucket, action, Decision.deny(
            DenyReason.FORBIDDEN,
            f"You do not have permission to perform {label.upper()} on this bucket. "
            "Please contact the owner for access.",
        ))

    permission = normalize(from_legacy(member.permission))
    if not has_capability(permission, action, ownership_of(items, actor_email, owners)):
        return _log_denial(actor_email, bucket, action,
                           Decision.deny(DenyReason.FORBIDDEN, denial_message(action)))

    for item in items or ():
        path = _item_path(item)
        if not is_item_in_scope(member.scope, path):
            message = f"You do not have permission to access: {path}."
            if member.scope.folders:
                message += f" Allowed folders: {', '.join(member.scope.folders)}"
            return _log_denial(actor_email, bucket, action,
                               Decision.deny(DenyReason.SCOPE_VIOLATION, message))

    if action == Action.INVITE_MEMBERS and grant_request is not None:
        requested = normalize(from_legacy(grant_request.permission))
        if not can_grant(permission, requested):
            return _log_denial(actor_email, bucket, action, Decision.deny(
                DenyReason.ESCALATION_DENIED, "You can't grant permissions higher than your own."))
        if not can_grant_scope(member.scope, grant_request.scope):
            outside = uncovered_folders(member.scope, grant_request.scope)
            if outside:
                message = f"You can't grant access to folders outside your scope: {', '.join(outside)}"
            else:
                message = "You can't grant entire bucket access when you have limited access."
            return _log_denial(actor_email, bucket, action,
                               Decision.deny(DenyReason.ESCALATION_DENIED, message))

    return Decision.allow()


def _log_denial(actor_email: str, bucket: BucketRef, action, decision: Decision) -> Decision:
    logger.info("Denied %s on bucket %s for %s: %s",
                getattr(action, "value", action), bucket.name, actor_email, decision.reason.value)
    return decision

