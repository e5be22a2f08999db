# routes/ownership_routes.py

from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import jwt_required
from models.file_ownership import FileOwnership
from services.access_decision import DenyReason, HTTP_STATUS
from services.permission_gateway import PermissionGateway, clean_item_path
from utils.permission_middleware import current_email, require_bucket_permission

ownership_bp = Blueprint("ownership", __name__)


def _file_path():
    data = request.get_json(silent=True) or {}
    return clean_item_path(data.get("filePath") or "")


@ownership_bp.route("", methods=["POST"])
@require_bucket_permission("upload", items_param="filePath")
def record_ownership():
    """Record the caller as uploader of ``filePath``, once the upload succeeded"""
    file_path = _file_path()
    if not file_path:
        return jsonify({"msg": "filePath is required"}), 400

    ownership = FileOwnership.record(g.bucket_name, file_path, current_email())
    current_app.logger.info(f"Ownership of {g.bucket_name}/{file_path}: {ownership.owner_email}")
    return jsonify({"msg": "Ownership recorded", "ownership": ownership.to_dict()}), 201


@ownership_bp.route("", methods=["DELETE"])
@require_bucket_permission("delete_file", items_param="filePath")
def forget_ownership():
    """Drop the record of a deleted file"""
    file_path = _file_path()
    if not file_path:
        return jsonify({"msg": "filePath is required"}), 400

    if not FileOwnership.forget(g.bucket_name, file_path):
        return jsonify({"msg": "Ownership record not found",
                        "reason": DenyReason.NOT_FOUND.value}), HTTP_STATUS[DenyReason.NOT_FOUND]
    return jsonify({"msg": "Ownership removed"}), 200


@ownership_bp.route("/<bucket_name>", methods=["GET"])
@jwt_required()
def list_owned_files(bucket_name):
    """Files of ``bucket_name`` uploaded by the caller"""
    gateway = PermissionGateway()
    bucket = gateway.get_bucket(bucket_name)
    if bucket is None:
        return jsonify({"msg": "Bucket not found",
                        "reason": DenyReason.NOT_FOUND.value}), HTTP_STATUS[DenyReason.NOT_FOUND]

    email = current_email()
    if email != bucket.to_ref().owner_email and gateway.get_member(email, bucket_name) is None:
        return jsonify({"msg": "You are not a member of this bucket.",
                        "reason": DenyReason.FORBIDDEN.value}), HTTP_STATUS[DenyReason.FORBIDDEN]

    return jsonify({"files": FileOwnership.files_of(bucket_name, email)}), 200
