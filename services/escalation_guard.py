# services/escalation_guard.py

from typing import List, Optional

from services.permission_model import UPLOAD_RANK, VIEW_RANK, StructuredPermission
from services.scope_resolver import Scope, ScopeType, covers_folder


def can_grant(grantor: Optional[StructuredPermission], requested: StructuredPermission) -> bool:
    """
    Check that ``requested`` is a subset of what ``grantor`` holds.

    Both permissions are expected to be normalized. A grantor of ``None`` is
    the bucket owner and may grant anything.

    Args:
        grantor: Permission of the member sending the invite or update
        requested: Permission being granted

    Returns:
        bool: False as soon as the view level, upload level or any extra
        exceeds the grantor's own
    """
    if grantor is None:
        return True
    if VIEW_RANK[requested.view] > VIEW_RANK[grantor.view]:
        return False
    if UPLOAD_RANK[requested.upload] > UPLOAD_RANK[grantor.upload]:
        return False
    return requested.extras <= grantor.extras


def uncovered_folders(grantor_scope: Optional[Scope], requested_scope: Optional[Scope]) -> List[str]:
    """Requested folders the grantor's own scope does not cover."""
    if grantor_scope is None or not grantor_scope.is_limited:
        return []
    if requested_scope is None or not requested_scope.is_limited:
        return []
    return [folder for folder in requested_scope.folders
            if not covers_folder(grantor_scope.folders, folder)]


def can_grant_scope(grantor_scope: Optional[Scope], requested_scope: Optional[Scope]) -> bool:
    """
    Check that a requested folder scope stays inside the grantor's.

    An entire-bucket grantor may grant any scope. A folder-limited grantor
    can never grant the entire bucket, and every requested folder must be
    equal to, below or above one of the grantor's folders. Nested requests
    are checked the same way as specific ones.
    """
    if grantor_scope is None or grantor_scope.type == ScopeType.ENTIRE:
        return True
    if requested_scope is None or requested_scope.type == ScopeType.ENTIRE:
        return False
    return not uncovered_folders(grantor_scope, requested_scope)
