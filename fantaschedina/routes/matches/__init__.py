from flask import Blueprint

bp = Blueprint("matches", __name__)

from fantaschedina.routes.matches import routes  # noqa: E402, F401
