"""
Tests for share link creation and resolution
"""
import pytest
from datetime import datetime, timezone, timedelta

from services.errors import AccessError
from services.share_links import ShareLinkService

from conftest import OWNER_EMAIL, BUCKET_NAME

ALICE = 'alice@example.com'


@pytest.fixture
def service(app):
    return ShareLinkService()


class TestCreateShare:

    def test_owner_shares(self, service, bucket):
        share = service.create_share(OWNER_EMAIL, BUCKET_NAME, ['/docs/report.pdf', 'docs/'])
        assert share.item_paths == ['docs/report.pdf', 'docs']
        assert share.created_by == OWNER_EMAIL
        assert not share.is_expired()

    def test_member_with_share_extra(self, service, make_member):
        make_member(ALICE, {'viewOnly': True, 'generateLinks': True},
                    scope_type='specific', scope_folders=['projects'])
        share = service.create_share(ALICE, BUCKET_NAME, ['projects/plan.txt'], expires_in_hours=1)
        assert share.is_expired(datetime.now(timezone.utc) + timedelta(hours=2))

    def test_member_without_share_extra(self, service, make_member):
        make_member(ALICE, {'viewDownload': True})
        with pytest.raises(AccessError) as exc:
            service.create_share(ALICE, BUCKET_NAME, ['docs/a.txt'])
        assert exc.value.code == 'Forbidden'

    def test_item_outside_scope(self, service, make_member):
        make_member(ALICE, {'viewOnly': True, 'generateLinks': True},
                    scope_type='specific', scope_folders=['projects'])
        with pytest.raises(AccessError) as exc:
            service.create_share(ALICE, BUCKET_NAME, ['finance/q1.xlsx'])
        assert exc.value.code == 'ScopeViolation'
        assert 'finance/q1.xlsx' in exc.value.message

    def test_no_items(self, service, bucket):
        with pytest.raises(AccessError) as exc:
            service.create_share(OWNER_EMAIL, BUCKET_NAME, ['/', ''])
        assert exc.value.status_code == 400


class TestResolveShare:

    def test_resolve(self, service, bucket):
        share = service.create_share(OWNER_EMAIL, BUCKET_NAME, ['docs/a.txt'])
        assert service.resolve_share(share.id).item_paths == ['docs/a.txt']

    def test_expired(self, service, bucket, db_session):
        share = service.create_share(OWNER_EMAIL, BUCKET_NAME, ['docs/a.txt'])
        share.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        db_session.commit()
        with pytest.raises(AccessError) as exc:
            service.resolve_share(share.id)
        assert exc.value.status_code == 410

    def test_revoked_by_creator(self, service, make_member):
        make_member(ALICE, {'viewOnly': True, 'generateLinks': True})
        share = service.create_share(ALICE, BUCKET_NAME, ['docs/a.txt'])
        share_id = share.id
        service.revoke_share(ALICE, share_id)
        with pytest.raises(AccessError) as exc:
            service.resolve_share(share_id)
        assert exc.value.code == 'NotFound'

    def test_revoke_by_stranger(self, service, bucket):
        share = service.create_share(OWNER_EMAIL, BUCKET_NAME, ['docs/a.txt'])
        with pytest.raises(AccessError) as exc:
            service.revoke_share('mallory@example.com', share.id)
        assert exc.value.code == 'Forbidden'
