"""
Tests for the authorize() facade
"""
import pytest

from services.access_decision import (
    BucketRef,
    Decision,
    DenyReason,
    GrantRequest,
    MemberGrant,
    authorize,
    denial_message,
    ownership_of,
)
from services.format_bridge import LegacyPermission
from services.permission_model import Action, Ownership
from services.scope_resolver import ListingItem, Scope, ScopeType

OWNER = 'owner@example.com'
ALICE = 'alice@example.com'


@pytest.fixture
def bucket():
    return BucketRef(name='acme-files', owner_email=OWNER)


def grant(scope=None, **flags):
    return MemberGrant(ALICE, 'acme-files', LegacyPermission.from_dict(flags), scope or Scope.entire())


class TestDecision:

    def test_truthiness_and_status(self):
        assert Decision.allow()
        assert Decision.allow().status_code == 200
        denied = Decision.deny(DenyReason.EXPIRED, 'gone')
        assert not denied
        assert denied.status_code == 410
        assert denied.to_dict() == {'allowed': False, 'reason': 'Expired', 'msg': 'gone'}

    def test_denial_message(self):
        assert 'upload files' in denial_message(Action.UPLOAD)
        assert 'perform teleport' in denial_message('teleport')


class TestOwnership:

    def test_no_items(self):
        assert ownership_of(None, ALICE) is None
        assert ownership_of([], ALICE) is None

    def test_all_own(self):
        owners = {'a.txt': ALICE, 'b.txt': ALICE}
        assert ownership_of(['a.txt', 'b.txt'], ALICE, owners) == Ownership.OWN

    def test_any_other_or_unknown(self):
        assert ownership_of(['a.txt', 'b.txt'], ALICE, {'a.txt': ALICE, 'b.txt': OWNER}) == Ownership.OTHER
        assert ownership_of(['a.txt', 'c.txt'], ALICE, {'a.txt': ALICE}) == Ownership.OTHER

    def test_listing_items(self):
        assert ownership_of([ListingItem('a.txt', 'docs/a.txt')], ALICE, {'docs/a.txt': ALICE}) == Ownership.OWN


class TestAuthorize:

    def test_owner_always_allowed(self, bucket):
        assert authorize(OWNER, bucket, 'delete_folders', items=['anything'])
        assert authorize(OWNER, bucket, 'not_an_action')

    def test_missing_bucket(self):
        decision = authorize(ALICE, None, 'view_files')
        assert decision.reason == DenyReason.NOT_FOUND

    def test_non_member_forbidden(self, bucket):
        decision = authorize(ALICE, bucket, 'upload')
        assert decision.reason == DenyReason.FORBIDDEN
        assert 'UPLOAD' in decision.message

    def test_capability_missing(self, bucket):
        decision = authorize(ALICE, bucket, Action.DOWNLOAD, member=grant(viewOnly=True))
        assert not decision
        assert decision.reason == DenyReason.FORBIDDEN
        assert decision.message == denial_message(Action.DOWNLOAD)

    def test_capability_present(self, bucket):
        assert authorize(ALICE, bucket, Action.DOWNLOAD, member=grant(viewDownload=True))

    def test_scope_violation(self, bucket):
        member = grant(Scope(ScopeType.SPECIFIC, ('projects/2024',)), viewDownload=True)
        assert authorize(ALICE, bucket, 'download', items=['projects/2024/a.pdf'], member=member)
        decision = authorize(ALICE, bucket, 'download',
                             items=['projects/2024/a.pdf', 'finance/q1.xlsx'], member=member)
        assert decision.reason == DenyReason.SCOPE_VIOLATION
        assert 'finance/q1.xlsx' in decision.message

    def test_capability_checked_before_scope(self, bucket):
        member = grant(Scope(ScopeType.SPECIFIC, ('projects',)), viewOnly=True)
        decision = authorize(ALICE, bucket, 'download', items=['finance/x'], member=member)
        assert decision.reason == DenyReason.FORBIDDEN

    def test_delete_own_file(self, bucket):
        member = grant(uploadViewOwn=True)
        owners = {'docs/mine.txt': ALICE, 'docs/theirs.txt': OWNER}
        assert authorize(ALICE, bucket, 'delete_file', items=['docs/mine.txt'], member=member, owners=owners)
        decision = authorize(ALICE, bucket, 'delete_file', items=['docs/theirs.txt'],
                             member=member, owners=owners)
        assert decision.reason == DenyReason.FORBIDDEN

    def test_delete_without_ownership_record(self, bucket):
        decision = authorize(ALICE, bucket, 'rename_file', items=['docs/old.txt'],
                             member=grant(uploadViewOwn=True), owners={})
        assert decision.reason == DenyReason.FORBIDDEN

    def test_manage_all_deletes_anything(self, bucket):
        assert authorize(ALICE, bucket, 'delete_file', items=['docs/theirs.txt'],
                         member=grant(uploadViewAll=True), owners={'docs/theirs.txt': OWNER})


class TestAuthorizeInvite:

    @pytest.fixture
    def inviter(self):
        return grant(Scope(ScopeType.SPECIFIC, ('projects',)),
                     viewDownload=True, uploadViewOwn=True, inviteMembers=True)

    def test_subset_allowed(self, bucket, inviter):
        request = GrantRequest(LegacyPermission(view_download=True),
                               Scope(ScopeType.SPECIFIC, ('projects/2024',)))
        assert authorize(ALICE, bucket, 'invite_members', member=inviter, grant_request=request)

    def test_permission_escalation(self, bucket, inviter):
        request = GrantRequest(LegacyPermission(upload_view_all=True),
                               Scope(ScopeType.SPECIFIC, ('projects',)))
        decision = authorize(ALICE, bucket, 'invite_members', member=inviter, grant_request=request)
        assert decision.reason == DenyReason.ESCALATION_DENIED
        assert 'higher than your own' in decision.message

    def test_scope_escalation_entire(self, bucket, inviter):
        request = GrantRequest(LegacyPermission(view_only=True), Scope.entire())
        decision = authorize(ALICE, bucket, 'invite_members', member=inviter, grant_request=request)
        assert decision.reason == DenyReason.ESCALATION_DENIED
        assert 'entire bucket' in decision.message

    def test_scope_escalation_folders(self, bucket, inviter):
        request = GrantRequest(LegacyPermission(view_only=True),
                               Scope(ScopeType.SPECIFIC, ('projects/a', 'finance')))
        decision = authorize(ALICE, bucket, 'invite_members', member=inviter, grant_request=request)
        assert decision.reason == DenyReason.ESCALATION_DENIED
        assert decision.message.endswith('finance')

    def test_invite_capability_required(self, bucket):
        request = GrantRequest(LegacyPermission(view_only=True))
        decision = authorize(ALICE, bucket, 'invite_members', member=grant(viewOnly=True),
                             grant_request=request)
        assert decision.reason == DenyReason.FORBIDDEN

    def test_owner_bypasses_guard(self, bucket):
        request = GrantRequest(LegacyPermission(upload_view_all=True, invite_members=True))
        assert authorize(OWNER, bucket, 'invite_members', grant_request=request)
