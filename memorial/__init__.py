from flask import Flask
from flask_cors import CORS
import atexit
import os

from .config import load_settings, parse_admin_emails
from .media_utils import MAX_PHOTO_BYTES


def create_app(test_config: dict | None = None) -> Flask:
    """
    App factory.

    Settings come from the environment (see ``memorial.config``); tests pass
    ``test_config`` to override them.
    """
    app = Flask(__name__, instance_relative_config=False)

    settings = load_settings()
    app.config.from_mapping(
        **settings.to_flask_config(),
        # Room for multipart overhead; the 5MB photo cap is enforced per file.
        MAX_CONTENT_LENGTH=MAX_PHOTO_BYTES + 1024 * 1024,
        TESTING=False,
    )

    if test_config:
        app.config.update(test_config)
    app.config["ADMIN_EMAILS"] = parse_admin_emails(app.config.get("ADMIN_EMAILS"))
    os.makedirs(app.config["UPLOAD_DIR"], exist_ok=True)

    if not app.config["TESTING"]:
        from .logging_config import setup_logging
        setup_logging(app)

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)

    from . import db, rate_limit
    database = db.init_app(app)
    rate_limit.init_app(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .routes import api_bp, root_bp
    app.register_blueprint(api_bp)
    app.register_blueprint(root_bp)

    # Ensure tables exist for tests and first-run scenarios
    database.create_all()
    atexit.register(database.dispose)

    return app
