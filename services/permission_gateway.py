# services/permission_gateway.py

import logging
from typing import Iterable, Optional, Union

from extensions import db
from models.bucket import Bucket
from models.file_ownership import FileOwnership
from models.member import Member
from services.access_decision import Decision, GrantRequest, authorize
from services.permission_model import Action

logger = logging.getLogger(__name__)


def clean_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def clean_item_path(path: str) -> str:
    """Storage keys come with a trailing slash for folder markers, drop it."""
    return path.lstrip("/").rstrip("/")


class PermissionGateway:
    """
    Loads bucket, member and ownership records and asks the access engine
    for a verdict. Every call is a fresh snapshot of the stored state.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def get_bucket(self, bucket_name: str) -> Optional[Bucket]:
        if not bucket_name:
            return None
        return self.session.query(Bucket).filter_by(name=bucket_name).first()

    def get_member(self, email: str, bucket_name: str) -> Optional[Member]:
        return self.session.query(Member).filter_by(email=clean_email(email), bucket_name=bucket_name).first()

    def check(self, actor_email: str, bucket_name: str, action: Union[Action, str],
              items: Optional[Iterable[str]] = None,
              grant_request: Optional[GrantRequest] = None) -> Decision:
        """
        Authorize ``actor_email`` for ``action`` on ``bucket_name``.

        Args:
            actor_email: Email from the authenticated identity
            bucket_name: Target bucket
            action: Action name
            items: Storage keys the action touches
            grant_request: Requested permission/scope for invite_members

        Returns:
            Decision
        """
        actor_email = clean_email(actor_email)
        paths = [clean_item_path(p) for p in (items or [])]
        paths = [p for p in paths if p]

        bucket = self.get_bucket(bucket_name)
        if bucket is None:
            logger.info("Permission check on unknown bucket %s by %s", bucket_name, actor_email)
            return authorize(actor_email, None, action)

        ref = bucket.to_ref()
        member = None
        owners = None
        if actor_email != ref.owner_email:
            row = self.get_member(actor_email, bucket_name)
            member = row.to_grant() if row else None
            if member is not None and action in (Action.RENAME_FILE, Action.DELETE_FILE):
                owners = FileOwnership.owners_for(bucket_name, paths)

        return authorize(
            actor_email,
            ref,
            action,
            items=paths or None,
            member=member,
            owners=owners,
            grant_request=grant_request,
        )
