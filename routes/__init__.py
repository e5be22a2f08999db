# routes/__init__.py
from .permission_routes import permission_bp
from .invitation_routes import invitation_bp
from .share_routes import share_bp
from .ownership_routes import ownership_bp

def register_blueprints(app):
    app.register_blueprint(permission_bp, url_prefix="/permissions")
    app.register_blueprint(invitation_bp, url_prefix="/invitations")
    app.register_blueprint(share_bp, url_prefix="/shares")
    app.register_blueprint(ownership_bp, url_prefix="/files/ownership")
