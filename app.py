import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from extensions import db, migrate
from config import Config
from routes import register_blueprints
from services.errors import AccessError


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    CORS(app,
         origins=app.config.get("CORS_ORIGINS", []),
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         supports_credentials=True)

    # Init extensions
    db.init_app(app)
    JWTManager(app)
    migrate.init_app(app, db)

    # Register blueprints
    register_blueprints(app)

    @app.errorhandler(AccessError)
    def handle_access_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=5001)
