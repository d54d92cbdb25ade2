import logging

from flask import jsonify
from flask_login import current_user, login_required, login_user, logout_user

from fantaschedina import db, limiter, login_manager
from fantaschedina.forms.auth import LoginForm, RegistrationForm
from fantaschedina.models import User
from fantaschedina.routes.auth import bp
from fantaschedina.socketio_handlers import broadcast_leaderboard_update
from fantaschedina.utils.cache_utils import invalidate_model_cache

logger = logging.getLogger(__name__)


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    user = User.verify_pin(form.username.data, form.pin.data)
    if not user:
        logger.warning(f"Failed login for team '{form.username.data}'")
        return jsonify({"error": "Nome squadra o PIN non validi"}), 401

    login_user(user, remember=form.remember_me.data)
    logger.info(f"User {user.username} logged in")
    return jsonify(user.to_dict())


@bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    # Form validators already checked for duplicates
    user = User.create(form.username.data, form.pin.data)
    login_user(user)

    invalidate_model_cache("user")
    broadcast_leaderboard_update("user_registered")

    logger.info(f"New team registered: {user.username}")
    return jsonify(user.to_dict()), 201


@bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logger.info(f"User {current_user.username} logged out")
    logout_user()
    return jsonify({"success": True})


@bp.route("/me")
@login_required
def me():
    return jsonify(current_user.to_dict())
