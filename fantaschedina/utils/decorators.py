"""
Access control decorators for the JSON API
"""

import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

logger = logging.getLogger(__name__)


def admin_required(f):
    """Require an authenticated admin, answering 401/403 otherwise"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Non autenticato"}), 401

        if not current_user.is_admin:
            logger.warning(
                f"Non-admin user {current_user.username} denied {request.method} {request.path}"
            )
            return jsonify({"error": "Accesso riservato agli amministratori"}), 403

        return f(*args, **kwargs)

    return decorated_function
