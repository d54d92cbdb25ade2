import logging

from flask import jsonify, request
from flask_login import current_user, login_required

from fantaschedina import db
from fantaschedina.forms.predictions import EditPredictionForm, PredictionForm
from fantaschedina.models import Match, Prediction, PredictionRejected
from fantaschedina.routes.predictions import bp
from fantaschedina.socketio_handlers import (
    broadcast_leaderboard_update,
    broadcast_prediction_update,
)
from fantaschedina.utils.cache_utils import invalidate_model_cache
from fantaschedina.utils.email_service import EmailService

logger = logging.getLogger(__name__)


def _get_owned_prediction(prediction_id):
    """Load a prediction the current user may change, or an error response"""
    prediction = db.get_or_404(Prediction, prediction_id)
    if prediction.user_id != current_user.id:
        return None, (jsonify({"error": "Non puoi modificare questo pronostico"}), 403)
    return prediction, None


def _notify_change(prediction, action):
    invalidate_model_cache("prediction")
    broadcast_prediction_update(prediction, action)
    broadcast_leaderboard_update(f"prediction_{action}")


@bp.route("")
@login_required
def list_predictions():
    return jsonify([p.to_dict() for p in Prediction.get_all()])


@bp.route("/user")
@login_required
def user_predictions():
    """Current user's predictions, optionally for one match day"""
    match_day = request.args.get("match_day", type=int)
    if match_day is not None:
        predictions = Prediction.get_user_predictions_for_match_day(
            current_user.id, match_day
        )
    else:
        predictions = Prediction.get_by_user(current_user.id)
    return jsonify([p.to_dict(include_match=True) for p in predictions])


@bp.route("/match/<int:match_id>")
@login_required
def match_predictions(match_id):
    db.get_or_404(Match, match_id)
    return jsonify([p.to_dict() for p in Prediction.get_by_match(match_id)])


@bp.route("/matchday/<int:match_day>")
@login_required
def match_day_predictions(match_day):
    return jsonify(
        [p.to_dict(include_match=True) for p in Prediction.get_by_match_day(match_day)]
    )


@bp.route("/<int:prediction_id>")
@login_required
def prediction_detail(prediction_id):
    prediction = db.get_or_404(Prediction, prediction_id)

    if prediction.user_id != current_user.id and not current_user.is_admin:
        return jsonify({"error": "Accesso negato"}), 403

    return jsonify(prediction.to_dict(include_match=True))


@bp.route("", methods=["POST"])
@login_required
def submit_prediction():
    """Create a prediction, or update the user's existing one for the match"""
    form = PredictionForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    match = db.session.get(Match, form.match_id.data)
    if match is None:
        return jsonify({"error": "Partita non trovata"}), 404

    try:
        prediction, created = Prediction.submit(
            current_user.id, match, form.prediction.data, form.credits.data
        )
    except PredictionRejected as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    db.session.commit()

    action = "created" if created else "updated"
    logger.info(
        f"User {current_user.username} {action} prediction {prediction.prediction} "
        f"on match {match.id}"
    )

    if created:
        EmailService().send_prediction_notification(prediction)

    _notify_change(prediction, action)
    return jsonify(prediction.to_dict(include_match=True)), 201 if created else 200


@bp.route("/<int:prediction_id>", methods=["PUT"])
@login_required
def update_prediction(prediction_id):
    prediction, error = _get_owned_prediction(prediction_id)
    if error:
        return error

    form = EditPredictionForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    try:
        prediction.update(outcome=form.prediction.data or None, credits=form.credits.data)
    except PredictionRejected as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    db.session.commit()

    _notify_change(prediction, "updated")
    return jsonify(prediction.to_dict(include_match=True))


@bp.route("/<int:prediction_id>", methods=["DELETE"])
@login_required
def delete_prediction(prediction_id):
    prediction, error = _get_owned_prediction(prediction_id)
    if error:
        return error

    try:
        prediction.delete()
    except PredictionRejected as e:
        return jsonify({"error": str(e)}), 400

    db.session.commit()

    _notify_change(prediction, "deleted")
    logger.info(f"User {current_user.username} deleted prediction {prediction_id}")
    return jsonify({"success": True})
