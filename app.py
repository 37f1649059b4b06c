import logging
import os

import click
from flask import Flask

from config import Config
from errors import register_error_handlers
from extensions import db, login_manager, migrate


def configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))


def init_db(app):
    """Create missing tables. Safe to run on every start."""
    with app.app_context():
        import models  # noqa: F401  (register tables on the metadata)
        db.create_all()
    app.logger.info("Database initialized")


def create_app(config_object=Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    configure_logging(app)

    if app.config["FILE_STORAGE_BACKEND"] == "local":
        os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Init db, migrate, login manager
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Import models and guard after db is set up
    import models  # noqa: F401
    import services.guard  # noqa: F401  (login_manager loaders)
    from services.file_store import create_file_store

    app.extensions["file_store"] = create_file_store(app.config)

    register_error_handlers(app)

    # Blueprints
    from blueprints.auth.routes import auth_bp
    app.register_blueprint(auth_bp, url_prefix="/api/admin/auth")

    from blueprints.register.routes import register_bp
    app.register_blueprint(register_bp, url_prefix="/api")

    from blueprints.admin.routes import admin_bp
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    @app.route("/health")
    def health():
        return {"status": "ok"}

    @app.cli.command("init-db")
    def init_db_command():
        """Create the registration and admin tables."""
        init_db(app)
        click.echo("Database initialized.")

    if app.config.get("AUTO_CREATE_TABLES"):
        init_db(app)

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
