from flask import Blueprint

bp = Blueprint("prizes", __name__)

from fantaschedina.routes.prizes import routes  # noqa: E402, F401
