import logging

from flask import Flask
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError

from .api.responses import error_response
from .config import Config
from .extensions import db, jwt, migrate


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    CORS(app)

    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    register_jwt_handlers()
    register_error_handlers(app)
    register_blueprints(app)

    @app.get("/health")
    def health_check() -> tuple[dict[str, str], int]:
        return {"status": "ok"}, 200

    return app


def register_blueprints(app: Flask) -> None:
    from .api.v1.analytics_routes import analytics_bp
    from .api.v1.leaderboard_routes import leaderboard_bp
    from .api.v1.store_routes import store_bp

    app.register_blueprint(leaderboard_bp, url_prefix="/api/v1/admin/leaderboard")
    app.register_blueprint(analytics_bp, url_prefix="/api/v1/admin/analytics")
    app.register_blueprint(store_bp, url_prefix="/api/v1/stores")


def register_jwt_handlers() -> None:
    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return error_response("Unauthenticated", 401, reason=reason)

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return error_response("Invalid token", 401, reason=reason)

    @jwt.expired_token_loader
    def expired_token(_jwt_header, _jwt_payload):
        return error_response("Token has expired", 401)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SQLAlchemyError)
    def database_error(exc: SQLAlchemyError):
        app.logger.exception("Database error while serving request: %s", exc)
        db.session.rollback()
        return error_response("internal server error", 500)
