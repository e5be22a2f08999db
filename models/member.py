import json
from datetime import datetime, timezone
from extensions import db
from sqlalchemy.orm import validates
from sqlalchemy import UniqueConstraint
from services.access_decision import MemberGrant
from services.format_bridge import LegacyPermission, from_legacy
from services.scope_resolver import Scope


class Member(db.Model):
    """A collaborator of one bucket. At most one row per (email, bucket)."""
    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    bucket_name = db.Column(db.String(255), db.ForeignKey("buckets.name"), nullable=False)
    permissions = db.Column(db.Text, nullable=False, default="{}")
    scope_type = db.Column(db.String(20), nullable=False, default="entire")
    scope_folders = db.Column(db.Text, nullable=False, default="[]")
    invited_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    bucket = db.relationship("Bucket", backref=db.backref("members", lazy=True))

    __table_args__ = (
        UniqueConstraint("email", "bucket_name", name="uq_member_email_bucket"),
    )

    @validates("email", "invited_by")
    def _lower_email(self, key, value):
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<Member {self.email} @ {self.bucket_name}>"

    @property
    def legacy_permission(self) -> LegacyPermission:
        return LegacyPermission.from_json(self.permissions)

    @property
    def scope(self) -> Scope:
        return Scope.from_columns(self.scope_type, self.scope_folders)

    def set_grant(self, permission: LegacyPermission, scope: Scope):
        self.permissions = permission.to_json()
        self.scope_type = scope.type.value
        self.scope_folders = json.dumps(list(scope.folders))

    def to_grant(self) -> MemberGrant:
        return MemberGrant(
            email=self.email,
            bucket_name=self.bucket_name,
            permission=self.legacy_permission,
            scope=self.scope,
        )

    def to_dict(self):
        structured = from_legacy(self.legacy_permission)
        return {
            "email": self.email,
            "bucketName": self.bucket_name,
            "permissions": self.legacy_permission.to_dict(),
            "structured": structured.to_dict(),
            "scope": self.scope.to_dict(),
            "invitedBy": self.invited_by,
        }
