from flask import Blueprint

bp = Blueprint("stats", __name__)

from fantaschedina.routes.stats import routes  # noqa: E402, F401
