# services/share_links.py

import json
import logging
import uuid
from datetime import datetime, timezone, timedelta
from typing import List, Optional

from flask import current_app

from models.share import Share
from services.access_decision import DenyReason
from services.errors import AccessError
from services.permission_gateway import PermissionGateway, clean_email, clean_item_path
from services.permission_model import Action

logger = logging.getLogger(__name__)


class ShareLinkService:
    """Time limited public links to bucket items"""

    def __init__(self, gateway: PermissionGateway = None):
        self.gateway = gateway or PermissionGateway()
        self.session = self.gateway.session

    def create_share(self, actor_email: str, bucket_name: str, items: List[str],
                     expires_in_hours: Optional[int] = None) -> Share:
        """
        Create a share link for ``items``.

        Requires the share capability and every item inside the actor's scope.

        Raises:
            AccessError: If the actor may not share these items
        """
        paths = [clean_item_path(p) for p in items or []]
        paths = [p for p in paths if p]
        if not paths:
            raise AccessError("No items to share", 400, "InvalidRequest")

        decision = self.gateway.check(actor_email, bucket_name, Action.SHARE, items=paths)
        if not decision:
            raise AccessError.from_decision(decision)

        hours = expires_in_hours or current_app.config.get("SHARE_LINK_EXPIRY_HOURS", 24)
        share = Share(
            id=str(uuid.uuid4()),
            bucket_name=bucket_name,
            items=json.dumps(paths),
            created_by=clean_email(actor_email),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
        )
        self.session.add(share)
        self.session.commit()
        logger.info("Share %s created on %s by %s (%d items)", share.id, bucket_name, actor_email, len(paths))
        return share

    def resolve_share(self, share_id: str) -> Share:
        share = self.session.get(Share, share_id)
        if share is None or share.revoked:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, "Share not found")
        if share.is_expired():
            raise AccessError.for_reason(DenyReason.EXPIRED, "Share link has expired")
        return share

    def revoke_share(self, actor_email: str, share_id: str) -> None:
        """Only the creator of the link or the bucket owner may revoke it."""
        share = self.session.get(Share, share_id)
        if share is None or share.revoked:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, "Share not found")
        bucket = self.gateway.get_bucket(share.bucket_name)
        if clean_email(actor_email) not in (share.created_by, bucket.to_ref().owner_email if bucket else None):
            raise AccessError.for_reason(DenyReason.FORBIDDEN, "You cannot revoke this share link.")
        share.revoked = True
        self.session.commit()
