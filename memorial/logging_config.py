"""
Rotating-file and console logging for the app (plain-text records).
"""
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler


def setup_logging(app):
    """
    Configure logging to a rotating file and the console.
    Logs are written to ``LOG_DIR/app.log``.
    """
    log_dir = Path(app.config["LOG_DIR"])
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    log_file = log_dir / "app.log"

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler with rotation (10MB max, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # app.logger is the "memorial" logger, so module loggers propagate to it
    app.logger.setLevel(level)
    app.logger.addHandler(file_handler)
    app.logger.addHandler(console_handler)

    # Flask's HTTP access logs
    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.setLevel(level)
    werkzeug_logger.addHandler(file_handler)

    app.logger.info("Logging initialized. Log file: %s", log_file)

    return app.logger
