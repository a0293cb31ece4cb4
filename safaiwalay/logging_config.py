"""Application-wide logging: console always, rotating file when LOG_FILE is set."""
import logging
import logging.handlers
import os

HANDLER_NAME = "safaiwalay"


def setup_logging(app):
    log_level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    formatter = logging.Formatter(app.config["LOG_FORMAT"])

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Only replace our own handlers so repeated create_app() calls don't stack them.
    for handler in list(root_logger.handlers):
        if handler.get_name() and handler.get_name().startswith(HANDLER_NAME):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.set_name(f"{HANDLER_NAME}.console")
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.set_name(f"{HANDLER_NAME}.file")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    app.logger.debug("Logging initialized at %s", logging.getLevelName(log_level))
    return root_logger
