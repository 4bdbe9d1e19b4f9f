from flask import Blueprint

detection = Blueprint("detection", __name__, url_prefix="/api/detection")

from . import routes as routes  # noqa: E402, F401
