import logging

from flask import jsonify, request
from flask_login import current_user

from fantaschedina import db
from fantaschedina.forms.auth import AdminUserForm, EditUserForm
from fantaschedina.models import Prediction, User
from fantaschedina.routes.users import bp
from fantaschedina.socketio_handlers import broadcast_leaderboard_update
from fantaschedina.utils.cache_utils import invalidate_model_cache
from fantaschedina.utils.decorators import admin_required

logger = logging.getLogger(__name__)


@bp.route("")
@admin_required
def list_users():
    return jsonify([user.to_dict(include_pin=True) for user in User.get_all()])


@bp.route("", methods=["POST"])
@admin_required
def create_user():
    form = AdminUserForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    user = User.create(form.username.data, form.pin.data, is_admin=form.is_admin.data)

    invalidate_model_cache("user")
    broadcast_leaderboard_update("user_created")

    logger.info(f"Admin {current_user.username} created user {user.username}")
    return jsonify(user.to_dict(include_pin=True)), 201


@bp.route("/<int:user_id>", methods=["PATCH"])
@admin_required
def update_user(user_id):
    user = db.get_or_404(User, user_id)

    form = EditUserForm(original_username=user.username)
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    is_admin = form.is_admin.data if form.is_admin.raw_data else None
    if user.id == current_user.id and is_admin is False:
        return jsonify({"error": "Non puoi rimuovere i tuoi privilegi"}), 400

    user.update(
        username=form.username.data or None,
        pin=form.pin.data or None,
        is_admin=is_admin,
    )

    invalidate_model_cache("user")
    broadcast_leaderboard_update("user_updated")

    logger.info(f"Admin {current_user.username} updated user {user.username}")
    return jsonify(user.to_dict(include_pin=True))


@bp.route("/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    user = db.get_or_404(User, user_id)

    if user.id == current_user.id:
        return jsonify({"error": "Non puoi eliminare il tuo account"}), 400

    username = user.username
    user.delete()

    invalidate_model_cache("user")
    broadcast_leaderboard_update("user_deleted")

    logger.info(f"Admin {current_user.username} deleted user {username}")
    return jsonify({"success": True})


@bp.route("/predictions")
@admin_required
def users_predictions():
    """Every user with their predictions, optionally for one match day"""
    match_day = request.args.get("match_day", type=int)

    result = []
    for user in User.get_all():
        if match_day is not None:
            predictions = Prediction.get_user_predictions_for_match_day(
                user.id, match_day
            )
        else:
            predictions = Prediction.get_by_user(user.id)
        result.append(
            {
                "user": user.to_dict(),
                "predictions": [p.to_dict(include_match=True) for p in predictions],
            }
        )
    return jsonify(result)
