"""
Tests for the legacy <-> structured permission mapping
"""
import pytest

from services.format_bridge import (
    LegacyPermission,
    correct_legacy_dependencies,
    from_legacy,
    to_legacy,
)
from services.permission_model import (
    Extra,
    StructuredPermission,
    UploadLevel,
    ViewLevel,
    create_permission,
)


def legacy(**flags):
    return LegacyPermission.from_dict(flags)


class TestLegacyPayload:
    """Reading and writing the flat ten-boolean record"""

    def test_missing_fields_are_false(self):
        assert legacy() == LegacyPermission()
        assert LegacyPermission.from_dict({'viewOnly': True}) == LegacyPermission(view_only=True)

    def test_wire_keys(self):
        data = LegacyPermission(upload_view_own=True, generate_links=True).to_dict()
        assert set(data) == {
            'viewOnly', 'viewDownload', 'uploadOnly', 'uploadViewOwn', 'uploadViewAll',
            'deleteFiles', 'deleteOwnFiles', 'generateLinks', 'createFolder', 'inviteMembers',
        }
        assert data['uploadViewOwn'] is True
        assert data['generateLinks'] is True
        assert data['viewOnly'] is False

    def test_truthy_values_coerced(self):
        assert LegacyPermission.from_dict({'inviteMembers': 1, 'viewOnly': ''}) == \
            LegacyPermission(invite_members=True)

    def test_unknown_keys_ignored(self):
        assert LegacyPermission.from_dict({'superUser': True}) == LegacyPermission()

    @pytest.mark.parametrize('raw', [None, '', 'not json', '[1, 2]', '"viewOnly"', b'{'])
    def test_malformed_json_is_no_permission(self, raw):
        assert LegacyPermission.from_json(raw) == LegacyPermission()

    def test_json_round_trip(self):
        record = LegacyPermission(view_download=True, create_folder=True)
        assert LegacyPermission.from_json(record.to_json()) == record


class TestFromLegacy:
    """Forward derivation"""

    def test_upload_view_own_with_links(self):
        result = from_legacy(legacy(uploadViewOwn=True, generateLinks=True))
        assert result == StructuredPermission(ViewLevel.VIEW_OWN, UploadLevel.MANAGE_OWN, {Extra.SHARE})
        assert Extra.DOWNLOAD not in result.extras

    def test_view_only(self):
        assert from_legacy(legacy(viewOnly=True)) == StructuredPermission(ViewLevel.VIEW_ALL)

    def test_view_download(self):
        assert from_legacy(legacy(viewDownload=True)) == \
            StructuredPermission(ViewLevel.VIEW_ALL, UploadLevel.NONE, {Extra.DOWNLOAD})

    def test_upload_view_all(self):
        assert from_legacy(legacy(uploadViewAll=True)) == \
            StructuredPermission(ViewLevel.VIEW_ALL, UploadLevel.MANAGE_ALL)

    def test_upload_view_all_wins_over_own(self):
        result = from_legacy(legacy(uploadViewAll=True, uploadViewOwn=True))
        assert result.view == ViewLevel.VIEW_ALL
        assert result.upload == UploadLevel.MANAGE_ALL

    def test_upload_only_without_view_collapses(self):
        # uploadOnly gives manage_own but no view level, normalize wipes it
        assert from_legacy(legacy(uploadOnly=True, createFolder=True)) == StructuredPermission()

    def test_upload_only_with_view(self):
        result = from_legacy(legacy(uploadOnly=True, viewOnly=True))
        assert result == StructuredPermission(ViewLevel.VIEW_ALL, UploadLevel.MANAGE_OWN)

    def test_delete_flags_imply_delete_folders(self):
        for flag in ('deleteFiles', 'deleteOwnFiles'):
            result = from_legacy(legacy(uploadViewOwn=True, **{flag: True}))
            assert Extra.DELETE_FOLDERS in result.extras

    def test_delete_folders_needs_upload(self):
        result = from_legacy(legacy(viewOnly=True, deleteFiles=True))
        assert Extra.DELETE_FOLDERS not in result.extras

    def test_invite_members(self):
        result = from_legacy(legacy(viewOnly=True, inviteMembers=True))
        assert result.extras == frozenset({Extra.INVITE_MEMBERS})

    def test_invite_members_without_view_is_dropped(self):
        assert from_legacy(legacy(inviteMembers=True)) == StructuredPermission()

    def test_all_false(self):
        assert from_legacy(LegacyPermission()) == StructuredPermission()


class TestToLegacy:
    """Reverse encoding"""

    def test_view_all_without_download(self):
        assert to_legacy(create_permission('view_all')) == LegacyPermission(view_only=True)

    def test_view_all_with_download(self):
        assert to_legacy(create_permission('view_all', extras=['download'])) == \
            LegacyPermission(view_download=True)

    def test_manage_own(self):
        assert to_legacy(create_permission('view_own', 'upload_manage_own')) == \
            LegacyPermission(upload_view_own=True, delete_own_files=True)

    def test_manage_all(self):
        assert to_legacy(create_permission('view_all', 'upload_manage_all')) == \
            LegacyPermission(view_only=True, upload_view_all=True, delete_files=True)

    def test_extras_one_to_one(self):
        p = create_permission('view_all', 'upload_manage_own',
                              ['share', 'create_folders', 'invite_members', 'delete_folders'])
        result = to_legacy(p)
        assert result.generate_links and result.create_folder and result.invite_members

    def test_view_own_download_is_lost(self):
        # view_own has no legacy download flag
        result = to_legacy(create_permission('view_own', 'upload_manage_own', ['download']))
        assert result == LegacyPermission(upload_view_own=True, delete_own_files=True)

    def test_no_permission(self):
        assert to_legacy(StructuredPermission()) == LegacyPermission()


class TestNonBijection:
    """The mapping loses information and must keep doing so"""

    def test_delete_flags_collapse(self):
        l1 = legacy(uploadViewAll=True, deleteFiles=True)
        l2 = legacy(uploadViewAll=True, deleteOwnFiles=True)
        assert l1 != l2
        assert from_legacy(l1) == from_legacy(l2)

    def test_round_trip_is_not_identity(self):
        original = legacy(uploadViewOwn=True, viewOnly=True, deleteFiles=True)
        assert to_legacy(from_legacy(original)) != original

    def test_delete_folders_has_no_legacy_field(self):
        p = create_permission('view_all', 'upload_manage_own', ['delete_folders'])
        assert to_legacy(p) == LegacyPermission(view_only=True, upload_view_own=True, delete_own_files=True)


class TestCorrectLegacyDependencies:

    def test_repairs_inconsistent_payload(self):
        corrected = correct_legacy_dependencies(legacy(uploadOnly=True, generateLinks=True))
        assert corrected == LegacyPermission()

    def test_consistent_payload_is_stable(self):
        record = LegacyPermission(upload_view_own=True, delete_own_files=True, generate_links=True)
        assert correct_legacy_dependencies(record) == record
        assert correct_legacy_dependencies(correct_legacy_dependencies(record)) == record
