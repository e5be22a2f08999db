# routes/invitation_routes.py

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from services.format_bridge import LegacyPermission
from services.membership_service import MembershipService
from utils.permission_middleware import current_email
from .permission_routes import scope_from_payload

invitation_bp = Blueprint("invitation", __name__)


@invitation_bp.route("", methods=["POST"])
@jwt_required()
def send_invitation():
    data = request.get_json(silent=True) or {}
    bucket_name = data.get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400
    scope, error = scope_from_payload(data)
    if error:
        return error

    invitation = MembershipService().create_invitation(
        current_email(),
        bucket_name,
        data.get("email", ""),
        LegacyPermission.from_dict(data.get("permissions")),
        scope,
    )
    invite_link = f"{current_app.config['FRONTEND_URL']}/accept-invite/{invitation.id}"
    return jsonify({
        "msg": "Invitation created successfully",
        "invitation": invitation.to_dict(),
        "inviteLink": invite_link,
    }), 201


@invitation_bp.route("/<token>", methods=["GET"])
def get_invitation(token):
    invitation = MembershipService().get_invitation(token)
    return jsonify(invitation.to_dict()), 200


@invitation_bp.route("/<token>/accept", methods=["POST"])
def accept_invitation(token):
    member = MembershipService().accept_invitation(token)
    return jsonify({"msg": "Invitation accepted", "member": member.to_dict()}), 200
