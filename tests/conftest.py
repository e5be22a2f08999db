"""
Pytest configuration and fixtures for backend tests
"""
import itertools
import json
import pytest

from flask_jwt_extended import create_access_token

from app import create_app
from config import TestConfig
from extensions import db
from models.bucket import Bucket
from models.member import Member
from services.permission_model import Extra, StructuredPermission, UploadLevel, ViewLevel


OWNER_EMAIL = 'owner@example.com'
BUCKET_NAME = 'acme-files'


def all_permissions():
    """Every (view, upload, extras) combination, normalized or not"""
    extras = list(Extra)
    for view, upload in itertools.product(ViewLevel, UploadLevel):
        for size in range(len(extras) + 1):
            for chosen in itertools.combinations(extras, size):
                yield StructuredPermission(view, upload, frozenset(chosen))


@pytest.fixture
def app():
    """Create application for testing, in-memory database"""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def db_session(app):
    return db.session


@pytest.fixture
def bucket(db_session):
    """Bucket owned by OWNER_EMAIL"""
    bucket = Bucket(name=BUCKET_NAME, owner_email=OWNER_EMAIL)
    db_session.add(bucket)
    db_session.commit()
    return bucket


@pytest.fixture
def make_member(db_session, bucket):
    """Factory creating a member row from a legacy permission dict"""
    def _make(email, permissions, scope_type='entire', scope_folders=None, invited_by=OWNER_EMAIL):
        member = Member(
            email=email,
            bucket_name=bucket.name,
            permissions=json.dumps(permissions),
            scope_type=scope_type,
            scope_folders=json.dumps(scope_folders or []),
            invited_by=invited_by,
        )
        db_session.add(member)
        db_session.commit()
        return member
    return _make


@pytest.fixture
def auth_headers(app):
    """Factory returning authentication headers for an email"""
    def _headers(email):
        token = create_access_token(identity=email)
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture(scope='session')
def every_permission():
    return list(all_permissions())
