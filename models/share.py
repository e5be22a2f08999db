import json
from datetime import datetime, timezone
from extensions import db
from sqlalchemy.orm import validates
from .invitation import as_utc


class Share(db.Model):
    __tablename__ = "shares"

    id = db.Column(db.String(36), primary_key=True)
    bucket_name = db.Column(db.String(255), db.ForeignKey("buckets.name"), nullable=False)
    items = db.Column(db.Text, nullable=False, default="[]")
    created_by = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked = db.Column(db.Boolean, default=False, nullable=False)

    @validates("created_by")
    def _lower_email(self, key, value):
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<Share {self.id} @ {self.bucket_name}>"

    @property
    def item_paths(self):
        return json.loads(self.items or "[]")

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return as_utc(self.expires_at) < now

    def to_dict(self):
        return {
            "id": self.id,
            "bucketName": self.bucket_name,
            "items": self.item_paths,
            "createdBy": self.created_by,
            "expiresAt": as_utc(self.expires_at).isoformat(),
        }
