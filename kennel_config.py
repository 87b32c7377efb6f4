# ---------------------------------------------------------------------------
# SITE CONFIGURATION
# ---------------------------------------------------------------------------
# Values are read from the environment. A .env file in the project root is
# loaded first if python-dotenv is installed, e.g.:
#   KENNEL_DOGS_DIR=D:\site\dogs
#   KENNEL_TIMEZONE=America/Denver
#   KENNEL_DOGS_URL_PREFIX=/media/dogs
import logging
import os

try:
    from dotenv import load_dotenv
    env_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), '.env')
    if os.path.exists(env_path):
        load_dotenv(env_path)
        logging.info(f"Loaded environment variables from {env_path}")
except ImportError:
    logging.warning("python-dotenv not installed. Using environment variables only.")


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        logging.warning(f"{name} is not a number, using {default}")
        return default


BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Folder holding one subfolder per dog: dam/, sire/, gray/, red/ ...
DOGS_DIR = os.environ.get("KENNEL_DOGS_DIR") or os.path.join(BASE_DIR, "dogs")

# URL the image folder is served under; new image paths start with it.
# The seed data always uses /dogs.
DOGS_URL_PREFIX = "/" + (os.environ.get("KENNEL_DOGS_URL_PREFIX") or "/dogs").strip().strip("/")

# Time zone used for log timestamps and the visitors page.
DISPLAY_TIMEZONE = os.environ.get("KENNEL_TIMEZONE", "America/Denver")

LOG_DIR = os.environ.get("KENNEL_LOG_DIR") or os.path.join(BASE_DIR, "logs")

MAX_UPLOAD_MB = _env_int("KENNEL_MAX_UPLOAD_MB", 20)
MAX_IMAGE_WIDTH = 1920
MAX_IMAGE_HEIGHT = 1920

# Install the seed dogs/puppies when the database is empty at startup.
SEED_ON_STARTUP = _env_bool("KENNEL_SEED_ON_STARTUP", True)

# Log a visit for every gallery/admin page view.
TRACK_PAGE_VISITS = _env_bool("KENNEL_TRACK_PAGE_VISITS", True)

# Look up city/country of first-time visitors (needs internet access).
VISITOR_GEOLOOKUP = _env_bool("KENNEL_VISITOR_GEOLOOKUP", False)
