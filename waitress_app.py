"""Serve the puppy gallery with waitress.

    python waitress_app.py                  # 127.0.0.1:8080
    KENNEL_HOST=0.0.0.0 KENNEL_PORT=80 python waitress_app.py
"""
import logging
import os
import sys

from waitress import serve

import kennel_config
from main_app import create_app, kennel_log_handler

THREADS = 16


def configure_server_logging(log_dir=None):
    """Route the waitress library's own log lines to logs/waitress_app.log."""
    handler = kennel_log_handler(log_dir or kennel_config.LOG_DIR, "waitress_app.log",
                                 "%(asctime)s %(levelname)s %(message)s")
    server_logger = logging.getLogger("waitress")
    server_logger.setLevel(logging.INFO)
    server_logger.handlers.clear()
    server_logger.addHandler(handler)
    server_logger.propagate = False
    return server_logger


def main():
    app = create_app()
    logger = configure_server_logging()
    host = os.environ.get("KENNEL_HOST", "127.0.0.1")
    port = int(os.environ.get("KENNEL_PORT") or 8080)
    logger.info(f"Serving {app.config['DOGS_DIR']} gallery on {host}:{port}")
    try:
        serve(app, host=host, port=port, threads=THREADS)
    except OSError:
        logger.exception(f"Could not bind {host}:{port}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
