# routes/permission_routes.py

from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import jwt_required
from services.access_decision import DenyReason, Decision, HTTP_STATUS
from services.format_bridge import LegacyPermission, correct_legacy_dependencies, from_legacy
from services.membership_service import MembershipService
from services.permission_gateway import PermissionGateway, clean_email
from services.permission_model import describe_permission
from services.scope_resolver import ListingItem, Scope, can_browse_folder, filter_listing
from utils.permission_middleware import (
    current_email,
    deny_response,
    grant_request_from_payload,
    items_from_payload,
    require_bucket_permission,
)

permission_bp = Blueprint('permission', __name__)

# ===================== UTILITAIRES =====================

def scope_from_payload(data):
    """Scope of a request body, 400 on an unknown scope type"""
    try:
        return Scope.from_columns(data.get("scopeType"), data.get("scopeFolders")), None
    except ValueError:
        return None, (jsonify({"msg": f"Invalid scope type: {data.get('scopeType')}"}), 400)


def listing_item_from_payload(raw):
    path = (raw.get("key") or raw.get("path") or raw.get("id") or raw.get("name") or "").rstrip("/")
    name = raw.get("name") or path.split("/")[-1]
    extra = {k: v for k, v in raw.items() if k not in ("name", "path", "type", "key")}
    return ListingItem(name=name, path=path, type=raw.get("type", "file"), extra=extra)

# ===================== VERIFICATIONS =====================

@permission_bp.route('/check', methods=['POST'])
@jwt_required()
def check_permission():
    """Verdict for one action, without performing it"""
    data = request.get_json(silent=True) or {}
    action = data.get("action")
    bucket_name = data.get("bucketName")
    if not action or not bucket_name:
        return jsonify({"msg": "action and bucketName are required"}), 400

    grant_request = None
    if action == "invite_members" and "permissions" in data:
        grant_request = grant_request_from_payload(data)
        if grant_request is None:
            return jsonify({"msg": f"Invalid scope type: {data.get('scopeType')}"}), 400

    decision = PermissionGateway().check(
        current_email(), bucket_name, action,
        items=items_from_payload(data),
        grant_request=grant_request,
    )
    return jsonify(decision.to_dict()), 200


@permission_bp.route('/correct', methods=['POST'])
@jwt_required()
def correct_permissions():
    """Repair a legacy permission payload and describe the result"""
    data = request.get_json(silent=True) or {}
    legacy = LegacyPermission.from_dict(data.get("permissions"))
    structured = from_legacy(legacy)
    return jsonify({
        "permissions": correct_legacy_dependencies(legacy).to_dict(),
        "structured": structured.to_dict(),
        "description": describe_permission(structured),
    }), 200

# ===================== LISTING =====================

@permission_bp.route('/listing', methods=['POST'])
@require_bucket_permission('view_files', items_param=None)
def scoped_listing():
    """
    Filter a storage listing down to the caller's folder scope.

    Body: bucketName, prefix (current folder, empty for the root), items
    (as returned by the storage layer: name, key, type).
    """
    data = request.get_json(silent=True) or {}
    prefix = (data.get("prefix") or "").strip("/")
    raw_items = [i for i in (data.get("items") or []) if isinstance(i, dict)]
    items = [listing_item_from_payload(raw) for raw in raw_items]

    gateway = PermissionGateway()
    bucket = gateway.get_bucket(g.bucket_name)
    email = current_email()
    if email == bucket.to_ref().owner_email:
        return jsonify({"items": [i.to_dict() for i in items]}), 200

    scope = gateway.get_member(email, g.bucket_name).scope
    if prefix and not can_browse_folder(scope, prefix):
        return deny_response(Decision.deny(
            DenyReason.SCOPE_VIOLATION, "You do not have permission to view this folder."))

    visible = filter_listing(scope, items, current_folder=prefix)
    return jsonify({"items": [i.to_dict() for i in visible]}), 200

# ===================== MEMBRES =====================

@permission_bp.route('/members', methods=['GET'])
@jwt_required()
def list_members():
    bucket_name = request.args.get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400
    members = MembershipService().list_members(current_email(), bucket_name)
    return jsonify({"members": [m.to_dict() for m in members]}), 200


@permission_bp.route('/members/<path:email>', methods=['GET'])
@jwt_required()
def get_member_permissions(email):
    email = clean_email(email)
    bucket_name = request.args.get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400

    gateway = PermissionGateway()
    bucket = gateway.get_bucket(bucket_name)
    member = gateway.get_member(email, bucket_name) if bucket else None
    if member is None:
        return jsonify({"msg": "Member not found", "reason": DenyReason.NOT_FOUND.value}), \
            HTTP_STATUS[DenyReason.NOT_FOUND]

    actor = current_email()
    if actor not in (bucket.to_ref().owner_email, member.email, member.invited_by):
        return jsonify({"msg": "You cannot view this member's permissions.",
                        "reason": DenyReason.FORBIDDEN.value}), HTTP_STATUS[DenyReason.FORBIDDEN]

    payload = member.to_dict()
    payload["description"] = describe_permission(from_legacy(member.legacy_permission))
    return jsonify(payload), 200


@permission_bp.route('/members/<path:email>', methods=['PUT'])
@jwt_required()
def update_member_permissions(email):
    email = clean_email(email)
    data = request.get_json(silent=True) or {}
    bucket_name = data.get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400
    scope, error = scope_from_payload(data)
    if error:
        return error

    member = MembershipService().update_member_permissions(
        current_email(), bucket_name, email,
        LegacyPermission.from_dict(data.get("permissions")), scope,
    )
    current_app.logger.info(f"Permissions updated for {email} on {bucket_name}")
    return jsonify(member.to_dict()), 200


@permission_bp.route('/members/<path:email>', methods=['DELETE'])
@jwt_required()
def remove_member(email):
    email = clean_email(email)
    bucket_name = request.args.get("bucketName") or (request.get_json(silent=True) or {}).get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400
    MembershipService().remove_member(current_email(), bucket_name, email)
    return jsonify({"msg": f"Member {email} removed"}), 200
