from datetime import datetime, timezone
from extensions import db
from sqlalchemy.orm import validates
from sqlalchemy import UniqueConstraint


class FileOwnership(db.Model):
    """Uploader of a file, used for the "manage own files" checks."""
    __tablename__ = "file_ownership"

    id = db.Column(db.Integer, primary_key=True)
    bucket_name = db.Column(db.String(255), nullable=False)
    file_path = db.Column(db.String(1024), nullable=False)
    owner_email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("bucket_name", "file_path", name="uq_file_ownership_path"),
    )

    @validates("owner_email")
    def _lower_email(self, key, value):
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<FileOwnership {self.bucket_name}/{self.file_path} by {self.owner_email}>"

    @classmethod
    def owners_for(cls, bucket_name: str, paths) -> dict:
        """
        Map each known path to its uploader.

        Args:
            bucket_name: Bucket holding the files
            paths: File paths to look up

        Returns:
            Dict path -> owner email, paths without a record are absent
        """
        paths = list(paths)
        if not paths:
            return {}
        rows = cls.query.filter(
            cls.bucket_name == bucket_name,
            cls.file_path.in_(paths),
        ).all()
        return {row.file_path: row.owner_email.lower() for row in rows}

    @classmethod
    def record(cls, bucket_name: str, file_path: str, owner_email: str) -> "FileOwnership":
        """
        Remember who uploaded a file. An existing record is kept as is.

        Returns:
            The stored FileOwnership
        """
        existing = cls.query.filter_by(bucket_name=bucket_name, file_path=file_path).first()
        if existing:
            return existing

        ownership = cls(bucket_name=bucket_name, file_path=file_path, owner_email=owner_email)
        db.session.add(ownership)
        db.session.commit()
        return ownership

    @classmethod
    def forget(cls, bucket_name: str, file_path: str) -> bool:
        """Drop the record of a deleted file. Returns True if one existed."""
        count = cls.query.filter_by(bucket_name=bucket_name, file_path=file_path).delete()
        db.session.commit()
        return count > 0

    @classmethod
    def files_of(cls, bucket_name: str, owner_email: str) -> list:
        rows = cls.query.filter_by(bucket_name=bucket_name, owner_email=owner_email.strip().lower()) \
            .order_by(cls.file_path).all()
        return [row.file_path for row in rows]

    def to_dict(self):
        return {
            "bucketName": self.bucket_name,
            "filePath": self.file_path,
            "ownerEmail": self.owner_email,
        }
