import json
from datetime import datetime, timezone, timedelta
from extensions import db
from sqlalchemy.orm import validates
from services.format_bridge import LegacyPermission
from services.scope_resolver import Scope


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes, they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Invitation(db.Model):
    """Pending invitation. Goes pending -> accepted once, or expires."""
    __tablename__ = "invitations"

    id = db.Column(db.String(36), primary_key=True)  # token
    bucket_name = db.Column(db.String(255), db.ForeignKey("buckets.name"), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    permissions = db.Column(db.Text, nullable=False, default="{}")
    scope_type = db.Column(db.String(20), nullable=False, default="entire")
    scope_folders = db.Column(db.Text, nullable=False, default="[]")
    created_by = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime, nullable=False)
    accepted = db.Column(db.Boolean, default=False, nullable=False)

    @validates("email", "created_by")
    def _lower_email(self, key, value):
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<Invitation {self.id} {self.email} @ {self.bucket_name}>"

    @classmethod
    def build(cls, token: str, bucket_name: str, email: str, permission: LegacyPermission,
              scope: Scope, created_by: str, expiry_days: int) -> "Invitation":
        return cls(
            id=token,
            bucket_name=bucket_name,
            email=email,
            permissions=permission.to_json(),
            scope_type=scope.type.value,
            scope_folders=json.dumps(list(scope.folders)),
            created_by=created_by,
            expires_at=datetime.now(timezone.utc) + timedelta(days=expiry_days),
            accepted=False,
        )

    @property
    def legacy_permission(self) -> LegacyPermission:
        return LegacyPermission.from_json(self.permissions)

    @property
    def scope(self) -> Scope:
        return Scope.from_columns(self.scope_type, self.scope_folders)

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return as_utc(self.expires_at) < now

    def to_dict(self):
        return {
            "token": self.id,
            "bucketName": self.bucket_name,
            "email": self.email,
            "permissions": self.legacy_permission.to_dict(),
            "scope": self.scope.to_dict(),
            "createdBy": self.created_by,
            "expiresAt": as_utc(self.expires_at).isoformat(),
            "accepted": self.accepted,
        }
