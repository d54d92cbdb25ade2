import logging

from flask import jsonify, request
from flask_login import current_user

from fantaschedina import db
from fantaschedina.forms.matches import EditMatchForm, MatchForm, ResultForm
from fantaschedina.models import Match
from fantaschedina.routes.matches import bp
from fantaschedina.socketio_handlers import broadcast_leaderboard_update
from fantaschedina.utils.cache_utils import invalidate_model_cache
from fantaschedina.utils.decorators import admin_required
from fantaschedina.utils.email_service import EmailService
from fantaschedina.utils.spreadsheet import MatchSpreadsheetParser

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls", ".csv")


@bp.route("")
def list_matches():
    """All matches ordered by date"""
    return jsonify([match.to_dict() for match in Match.get_all()])


@bp.route("/matchdays")
def match_days():
    """Known match days and the earliest one still open"""
    return jsonify(
        {
            "match_days": Match.get_match_days(),
            "current_match_day": Match.get_earliest_open_match_day(),
        }
    )


@bp.route("/matchday/<int:match_day>")
def matches_for_match_day(match_day):
    return jsonify([match.to_dict() for match in Match.get_by_match_day(match_day)])


@bp.route("/<int:match_id>")
def match_detail(match_id):
    match = db.get_or_404(Match, match_id)
    return jsonify(match.to_dict())


@bp.route("", methods=["POST"])
@admin_required
def create_match():
    form = MatchForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    match = Match.create(
        home_team=form.home_team.data,
        away_team=form.away_team.data,
        match_date=form.match_date.data,
        match_day=form.match_day.data,
        description=form.description.data,
    )
    db.session.commit()

    logger.info(f"Admin {current_user.username} created match {match.id}: {match}")
    return jsonify(match.to_dict()), 201


@bp.route("/<int:match_id>", methods=["PATCH"])
@admin_required
def update_match(match_id):
    match = db.get_or_404(Match, match_id)

    form = EditMatchForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    previous_match_day = match.match_day
    match.update(
        home_team=form.home_team.data or None,
        away_team=form.away_team.data or None,
        match_date=form.match_date.data,
        match_day=form.match_day.data,
        description=form.description.data if form.description.raw_data else None,
    )
    if match.home_team.lower() == match.away_team.lower():
        db.session.rollback()
        return jsonify({"error": "Le due squadre devono essere diverse"}), 400

    db.session.commit()

    invalidate_model_cache("match")
    if match.match_day != previous_match_day:
        broadcast_leaderboard_update("match_updated", match.match_day)

    logger.info(f"Admin {current_user.username} updated match {match.id}")
    return jsonify(match.to_dict())


@bp.route("/<int:match_id>", methods=["DELETE"])
@admin_required
def delete_match(match_id):
    match = db.get_or_404(Match, match_id)
    match_day = match.match_day

    match.delete()
    db.session.commit()

    invalidate_model_cache("match")
    broadcast_leaderboard_update("match_deleted", match_day)

    logger.info(f"Admin {current_user.username} deleted match {match_id}")
    return jsonify({"success": True})


@bp.route("/<int:match_id>/result", methods=["POST"])
@admin_required
def post_result(match_id):
    """Record the result and score every prediction on the match"""
    match = db.get_or_404(Match, match_id)

    form = ResultForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    match.set_result(form.result.data)
    db.session.commit()

    invalidate_model_cache("match")
    broadcast_leaderboard_update("result_posted", match.match_day)

    logger.info(
        f"Admin {current_user.username} posted result {match.result} for match {match.id}"
    )
    return jsonify(match.to_dict())


@bp.route("/upload", methods=["POST"])
@admin_required
def upload_matches():
    """Import matches from the first sheet of an uploaded spreadsheet"""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "Nessun file caricato"}), 400

    if not upload.filename.lower().endswith(SPREADSHEET_EXTENSIONS):
        return jsonify({"error": "Formato non supportato, usa un file Excel"}), 400

    email_service = EmailService()
    parsed = MatchSpreadsheetParser().parse(upload.read(), upload.filename)
    if not parsed["success"]:
        email_service.send_import_report(False, parsed["error"])
        return jsonify({"error": parsed["error"]}), 400

    matches = [Match.create(**match_data) for match_data in parsed["matches"]]
    db.session.commit()

    message = f"Importate {len(matches)} partite"
    email_service.send_import_report(True, message)

    logger.info(
        f"Admin {current_user.username} imported {len(matches)} matches from {upload.filename}"
    )
    return (
        jsonify({"message": message, "matches": [m.to_dict() for m in matches]}),
        201,
    )
