from flask import Blueprint

# Blueprint for page-view logging and the visitor statistics page.
# The template_folder tells the blueprint where to find its template files.
visitor_bp = Blueprint("visitor_bp", __name__, template_folder="templates")

# Import the routes to register them with the blueprint
from . import routes  # noqa
