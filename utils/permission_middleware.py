# utils/permission_middleware.py

from functools import wraps
from flask import current_app, g, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from services.access_decision import Decision, GrantRequest
from services.format_bridge import LegacyPermission, correct_legacy_dependencies
from services.permission_gateway import PermissionGateway, clean_email
from services.scope_resolver import Scope


def current_email() -> str:
    """Email of the authenticated user (JWT identity)."""
    return clean_email(str(get_jwt_identity()))


def items_from_payload(data, key="items"):
    """
    Read item keys from a request body.

    Items may be plain keys or objects with a "key" (or "path") entry, like
    the storage listing returns them.
    """
    raw = data.get(key) or []
    if isinstance(raw, (str, dict)):
        raw = [raw]
    keys = []
    for item in raw:
        if isinstance(item, dict):
            item = item.get("key") or item.get("path")
        if isinstance(item, str) and item:
            keys.append(item)
    return keys


def grant_request_from_payload(data):
    """Requested permission/scope of an invite body, repaired as it would be stored."""
    try:
        scope = Scope.from_columns(data.get("scopeType"), data.get("scopeFolders"))
    except ValueError:
        return None
    permission = correct_legacy_dependencies(LegacyPermission.from_dict(data.get("permissions")))
    return GrantRequest(permission, scope)


def deny_response(decision: Decision):
    return jsonify({"msg": decision.message, "reason": decision.reason.value}), decision.status_code


def require_bucket_permission(action, items_param="items"):
    """
    Décorateur vérifiant qu'un utilisateur peut effectuer ``action`` sur le
    bucket indiqué dans le corps JSON (``bucketName``).

    Le propriétaire du bucket a tous les droits. Pour un membre, la permission
    stockée et la portée (dossiers) sont vérifiées. La décision est exposée
    dans ``g.decision``.

    Args:
        action: nom de l'action (voir services.permission_model.Action)
        items_param: clé du corps JSON contenant les éléments concernés,
            None pour ne pas vérifier d'éléments
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            data = request.get_json(silent=True) or {}
            bucket_name = data.get("bucketName") or request.args.get("bucketName")
            if not bucket_name:
                return jsonify({"msg": "bucketName is required"}), 400

            decision = PermissionGateway().check(
                current_email(),
                bucket_name,
                action,
                items=items_from_payload(data, items_param) if items_param else None,
            )
            if not decision:
                current_app.logger.info(
                    f"{action} denied on {bucket_name}: {decision.reason.value}")
                return deny_response(decision)

            g.decision = decision
            g.bucket_name = bucket_name
            return f(*args, **kwargs)
        return decorated_function
    return decorator
