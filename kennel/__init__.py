from flask import Blueprint


# create blueprint with the name used in templates: 'kennel_bp'
kennel_bp = Blueprint('kennel_bp', __name__, template_folder='templates')

# ensure routes are imported so decorators run
from . import routes  # noqa
