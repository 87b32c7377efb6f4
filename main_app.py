#!/usr/bin/env python3
"""
Flask web application for the puppy gallery.

 - Public gallery of the dam, the sire and the current litter
 - Admin page: upload photos, mark puppies sold, add puppies,
   sync the image folders into the database, reset to the seed data
 - Page-view logging with a small statistics page

Use create_app() to build the application; waitress_app.py serves it in
production.
"""

from flask import Flask, request
import os
import logging
import logging.handlers
from datetime import datetime
from zoneinfo import ZoneInfo

import kennel_config
from database import db, open_store

# ---------------------------------------------------------------------------
# LOGGING SETUP
# ---------------------------------------------------------------------------
LOG_FILE_NAME = "main_app.log"


class LocalTimeFormatter(logging.Formatter):
    """Formats log timestamps in the business time zone instead of server time."""

    def __init__(self, fmt=None, datefmt=None, tz_name=kennel_config.DISPLAY_TIMEZONE):
        super().__init__(fmt, datefmt)
        self.tz = ZoneInfo(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime("%Y-%m-%d %H:%M:%S %Z")


def kennel_log_handler(log_dir, file_name, fmt, tz_name=kennel_config.DISPLAY_TIMEZONE):
    """Daily-rotated file handler in log_dir, 14 days kept."""
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        os.path.join(log_dir, file_name), when="midnight", interval=1, backupCount=14, encoding="utf-8"
    )
    handler.suffix = "%Y-%m-%d.log"  # Keep .log extension in rotated files
    handler.setFormatter(LocalTimeFormatter(fmt, tz_name=tz_name))
    return handler


def configure_logging(log_dir, tz_name=kennel_config.DISPLAY_TIMEZONE):
    """Send root logging to main_app.log in log_dir."""
    handler = kennel_log_handler(log_dir, LOG_FILE_NAME, "%(asctime)s %(levelname)s %(name)s %(message)s", tz_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    # Remove any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    return handler


def _load_secret_key():
    """secret_key.txt (see generate_secret_key.py) wins over KENNEL_SECRET_KEY."""
    secret_key_file = os.path.join(kennel_config.BASE_DIR, "secret_key.txt")
    if os.path.exists(secret_key_file):
        with open(secret_key_file, "r") as f:
            logging.info("Secret key loaded from file")
            return f.read().strip()
    key = os.environ.get("KENNEL_SECRET_KEY")
    if key:
        logging.info("Secret key loaded from environment")
        return key.strip()
    logging.error("secret_key.txt not found! Run generate_secret_key.py first")
    raise RuntimeError("Secret key missing. Run generate_secret_key.py or set KENNEL_SECRET_KEY.")


# ---------------------------------------------------------------------------
# FLASK APP SETUP
# ---------------------------------------------------------------------------
def create_app(test_config=None):
    """Build the Flask app. test_config overrides any setting (used by tests)."""
    app = Flask(__name__)
    test_config = test_config or {}

    if not test_config.get("TESTING"):
        configure_logging(test_config.get("LOG_DIR", kennel_config.LOG_DIR),
                          test_config.get("DISPLAY_TIMEZONE", kennel_config.DISPLAY_TIMEZONE))
    logging.info("Application start")

    # Ensure the instance folder exists; both SQLite files live there
    os.makedirs(app.instance_path, exist_ok=True)
    kennel_db_path = os.path.join(app.instance_path, "puppies.db")
    visitors_db_path = os.path.join(app.instance_path, "visitors.db")

    app.config.update(
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{kennel_db_path}",
        SQLALCHEMY_BINDS={"visitors": f"sqlite:///{visitors_db_path}"},
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        DOGS_DIR=kennel_config.DOGS_DIR,
        DOGS_URL_PREFIX=kennel_config.DOGS_URL_PREFIX,
        DISPLAY_TIMEZONE=kennel_config.DISPLAY_TIMEZONE,
        MAX_CONTENT_LENGTH=kennel_config.MAX_UPLOAD_MB * 1024 * 1024,
        MAX_IMAGE_WIDTH=kennel_config.MAX_IMAGE_WIDTH,
        MAX_IMAGE_HEIGHT=kennel_config.MAX_IMAGE_HEIGHT,
        SEED_ON_STARTUP=kennel_config.SEED_ON_STARTUP,
        TRACK_PAGE_VISITS=kennel_config.TRACK_PAGE_VISITS,
        VISITOR_GEOLOOKUP=kennel_config.VISITOR_GEOLOOKUP,
    )
    app.config.update(test_config)
    app.config["DOGS_URL_PREFIX"] = "/" + app.config["DOGS_URL_PREFIX"].strip("/")
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = _load_secret_key()

    # Initialize the database with this app (don't create a new SQLAlchemy instance)
    db.init_app(app)

    from kennel import kennel_bp
    from kennel.routes import serve_dog_image
    from visitor_module import visitor_bp
    app.register_blueprint(kennel_bp)
    # Image files are served at the configured prefix, e.g. /dogs/gray/image1.jpg
    app.add_url_rule(app.config["DOGS_URL_PREFIX"] + "/<path:filename>",
                     endpoint="dog_image", view_func=serve_dog_image)
    app.register_blueprint(visitor_bp)
    logging.info("Kennel and visitor blueprints registered")

    # Create database tables if they don't exist
    with app.app_context():
        try:
            db.create_all()
            logging.info("Database tables created/verified")
            if app.config["SEED_ON_STARTUP"]:
                with open_store() as store:
                    store.seed_if_empty()
        except Exception:
            logging.exception("Failed to prepare database tables")

    register_hooks(app)
    return app


# ---------------------------------------------------------------------------
# VISITOR TRACKING MIDDLEWARE + BASIC ROUTES
# ---------------------------------------------------------------------------
# Only full page views are logged; API calls and image files are not.
TRACKED_ENDPOINTS = {
    "kennel_bp.gallery": "home",
    "kennel_bp.admin": "admin",
}


def register_hooks(app):
    from visitor_module.helpers import get_ip, record_visit

    @app.before_request
    def track_page_view():
        """Log a visit for gallery/admin page loads."""
        page = TRACKED_ENDPOINTS.get(request.endpoint)
        if page is None or request.method != "GET" or not app.config["TRACK_PAGE_VISITS"]:
            return
        try:
            visit = record_visit(
                get_ip(),
                user_agent=request.headers.get("User-Agent"),
                page_visited=page,
                geolookup=app.config["VISITOR_GEOLOOKUP"],
            )
            logging.info(f"Visit to {page} from {visit.ip_address}")
        except Exception as e:
            logging.error(f"Error tracking visitor: {e}", exc_info=True)
            db.session.rollback()

    @app.route("/health")
    def health():
        """
        Simple health check used by monitoring or load balancers.
        Returns JSON if the app is alive.
        """
        return {"status": "ok"}


# ---------------------------------------------------------------------------
# MAIN ENTRY POINT
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print("Development mode ONLY (use waitress_app.py in production).")
    create_app().run(host="127.0.0.1", port=5000, debug=False)
