# services/membership_service.py

import logging
import uuid
from typing import List

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models.invitation import Invitation
from models.member import Member
from services.access_decision import DenyReason, GrantRequest
from services.errors import AccessError
from services.format_bridge import LegacyPermission, correct_legacy_dependencies
from services.permission_gateway import PermissionGateway, clean_email
from services.permission_model import Action
from services.scope_resolver import Scope

logger = logging.getLogger(__name__)


class MembershipService:
    """Invitations and member records of a bucket"""

    def __init__(self, gateway: PermissionGateway = None):
        self.gateway = gateway or PermissionGateway()
        self.session = self.gateway.session

    def create_invitation(self, inviter_email: str, bucket_name: str, email: str,
                          permission: LegacyPermission, scope: Scope) -> Invitation:
        """
        Invite ``email`` to a bucket.

        Members need invite_members and may only hand out a subset of their
        own permission and scope. The stored permission has its dependencies
        repaired.

        Args:
            inviter_email: Owner or member sending the invite
            bucket_name: Target bucket
            email: Invitee
            permission: Requested legacy permission
            scope: Requested folder scope

        Returns:
            Invitation: The pending invitation

        Raises:
            AccessError: If the inviter may not send this invitation
        """
        if not email:
            raise AccessError("Invitee email is required", 400, "InvalidRequest")

        # The stored form is the one checked against the inviter
        permission = correct_legacy_dependencies(permission)
        decision = self.gateway.check(
            inviter_email, bucket_name, Action.INVITE_MEMBERS,
            grant_request=GrantRequest(permission, scope),
        )
        if not decision:
            raise AccessError.from_decision(decision)

        invitation = Invitation.build(
            token=str(uuid.uuid4()),
            bucket_name=bucket_name,
            email=clean_email(email),
            permission=permission,
            scope=scope,
            created_by=clean_email(inviter_email),
            expiry_days=current_app.config.get("INVITATION_EXPIRY_DAYS", 7),
        )
        self.session.add(invitation)
        self.session.commit()
        logger.info("Invitation %s created for %s on %s by %s",
                    invitation.id, invitation.email, bucket_name, inviter_email)
        return invitation

    def get_invitation(self, token: str) -> Invitation:
        """Pending invitation for ``token``, NotFound or Expired otherwise."""
        invitation = self.session.query(Invitation).filter_by(id=token, accepted=False).first()
        if invitation is None:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, "Invitation not found or already accepted")
        if invitation.is_expired():
            raise AccessError.for_reason(DenyReason.EXPIRED, "Invitation has expired")
        return invitation

    def accept_invitation(self, token: str) -> Member:
        """
        Turn an invitation into a member row.

        The invitation is claimed with a conditional update so that only one
        of two concurrent accepts succeeds; the member row is upserted on
        (email, bucket) in the same transaction.

        Raises:
            AccessError: NotFound if unknown or already accepted, Expired
        """
        invitation = self.get_invitation(token)

        claimed = (self.session.query(Invitation)
                   .filter_by(id=token, accepted=False)
                   .update({"accepted": True}, synchronize_session=False))
        if claimed != 1:
            self.session.rollback()
            raise AccessError.for_reason(DenyReason.NOT_FOUND, "Invitation not found or already accepted")

        try:
            member = self._upsert_member(invitation)
            self.session.commit()
        except IntegrityError:
            # Another request inserted the row first, update it instead
            self.session.rollback()
            self.session.query(Invitation).filter_by(id=token).update(
                {"accepted": True}, synchronize_session=False)
            member = self._upsert_member(invitation)
            self.session.commit()

        logger.info("Invitation %s accepted by %s", token, member.email)
        return member

    def _upsert_member(self, invitation: Invitation) -> Member:
        member = self.gateway.get_member(invitation.email, invitation.bucket_name)
        if member is None:
            member = Member(email=invitation.email, bucket_name=invitation.bucket_name)
            self.session.add(member)
        member.set_grant(invitation.legacy_permission, invitation.scope)
        member.invited_by = invitation.created_by
        self.session.flush()
        return member

    def update_member_permissions(self, actor_email: str, bucket_name: str, email: str,
                                  permission: LegacyPermission, scope: Scope) -> Member:
        """
        Change a member's permission and scope.

        The owner may set anything. A member may only update members they
        invited themselves, and only within their own permission and scope.
        """
        actor_email, email = clean_email(actor_email), clean_email(email)
        bucket = self._require_bucket(bucket_name)
        member = self.gateway.get_member(email, bucket_name)
        if member is None:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, f"Member {email} not found")

        permission = correct_legacy_dependencies(permission)
        if actor_email != bucket.to_ref().owner_email:
            if member.invited_by != actor_email:
                raise AccessError.for_reason(
                    DenyReason.FORBIDDEN, "You can only update members you invited.")
            decision = self.gateway.check(
                actor_email, bucket_name, Action.INVITE_MEMBERS,
                grant_request=GrantRequest(permission, scope),
            )
            if not decision:
                raise AccessError.from_decision(decision)

        member.set_grant(permission, scope)
        self.session.commit()
        logger.info("Permissions of %s on %s updated by %s", email, bucket_name, actor_email)
        return member

    def remove_member(self, actor_email: str, bucket_name: str, email: str) -> None:
        actor_email, email = clean_email(actor_email), clean_email(email)
        bucket = self._require_bucket(bucket_name)
        if actor_email != bucket.to_ref().owner_email:
            raise AccessError.for_reason(DenyReason.FORBIDDEN, "Only the bucket owner can remove members.")

        member = self.gateway.get_member(email, bucket_name)
        if member is None:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, f"Member {email} not found")
        self.session.delete(member)
        self.session.commit()
        logger.info("Member %s removed from %s", email, bucket_name)

    def list_members(self, actor_email: str, bucket_name: str) -> List[Member]:
        actor_email = clean_email(actor_email)
        bucket = self._require_bucket(bucket_name)
        query = self.session.query(Member).filter_by(bucket_name=bucket_name)
        if actor_email != bucket.to_ref().owner_email:
            if self.gateway.get_member(actor_email, bucket_name) is None:
                raise AccessError.for_reason(
                    DenyReason.FORBIDDEN, "You are not a member of this bucket.")
            query = query.filter_by(invited_by=actor_email)
        return query.order_by(Member.email).all()

    def _require_bucket(self, bucket_name: str):
        bucket = self.gateway.get_bucket(bucket_name)
        if bucket is None:
            raise AccessError.for_reason(DenyReason.NOT_FOUND, "Bucket not found")
        return bucket
