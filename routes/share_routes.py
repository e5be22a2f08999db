# routes/share_routes.py

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from services.share_links import ShareLinkService
from utils.permission_middleware import current_email, items_from_payload

share_bp = Blueprint("share", __name__)


@share_bp.route("", methods=["POST"])
@jwt_required()
def create_share():
    data = request.get_json(silent=True) or {}
    bucket_name = data.get("bucketName")
    if not bucket_name:
        return jsonify({"msg": "bucketName is required"}), 400

    expires_in = data.get("expiresInHours")
    share = ShareLinkService().create_share(
        current_email(),
        bucket_name,
        items_from_payload(data),
        int(expires_in) if expires_in else None,
    )
    return jsonify(share.to_dict()), 201


@share_bp.route("/<share_id>", methods=["GET"])
def get_share(share_id):
    share = ShareLinkService().resolve_share(share_id)
    return jsonify(share.to_dict()), 200


@share_bp.route("/<share_id>", methods=["DELETE"])
@jwt_required()
def revoke_share(share_id):
    ShareLinkService().revoke_share(current_email(), share_id)
    return jsonify({"msg": "Share revoked"}), 200
