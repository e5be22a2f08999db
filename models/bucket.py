from datetime import datetime, timezone
from extensions import db
from sqlalchemy.orm import validates
from services.access_decision import BucketRef


class Bucket(db.Model):
    __tablename__ = "buckets"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    owner_email = db.Column(db.String(255), nullable=False, index=True)
    region = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @validates("owner_email")
    def _lower_email(self, key, value):
        # Emails are compared lowercased everywhere
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<Bucket {self.name} owner={self.owner_email}>"

    def to_ref(self) -> BucketRef:
        return BucketRef(name=self.name, owner_email=(self.owner_email or "").lower())
