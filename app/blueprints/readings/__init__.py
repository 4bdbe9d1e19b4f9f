from flask import Blueprint

readings = Blueprint("readings", __name__, url_prefix="/api/readings")

from . import routes as routes  # noqa: E402, F401
