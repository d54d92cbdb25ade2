import base64
import logging

from flask import jsonify, request
from flask_login import current_user

from fantaschedina import db
from fantaschedina.forms.teams import EditTeamForm, TeamForm
from fantaschedina.models import Team
from fantaschedina.routes.teams import bp
from fantaschedina.utils.decorators import admin_required

logger = logging.getLogger(__name__)

ALLOWED_LOGO_TYPES = (
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/svg+xml",
    "image/webp",
)


def _name_taken(name, exclude_id=None):
    team = Team.get_by_name(name)
    return team is not None and team.id != exclude_id


@bp.route("")
def list_teams():
    return jsonify([team.to_dict() for team in Team.get_all()])


@bp.route("/<int:team_id>")
def team_detail(team_id):
    team = db.get_or_404(Team, team_id)
    return jsonify(team.to_dict())


@bp.route("", methods=["POST"])
@admin_required
def create_team():
    form = TeamForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    if _name_taken(form.name.data):
        return jsonify({"error": "Esiste già una squadra con questo nome"}), 400

    team = Team.create(
        name=form.name.data,
        manager_name=form.manager_name.data or None,
        credits=form.credits.data or 0,
        logo=form.logo.data or None,
    )
    db.session.commit()

    logger.info(f"Admin {current_user.username} created team {team.name}")
    return jsonify(team.to_dict()), 201


@bp.route("/<int:team_id>", methods=["PATCH"])
@admin_required
def update_team(team_id):
    team = db.get_or_404(Team, team_id)

    form = EditTeamForm()
    if not form.validate_on_submit():
        return jsonify({"error": form.first_error()}), 400

    if form.name.data and _name_taken(form.name.data, exclude_id=team.id):
        return jsonify({"error": "Esiste già una squadra con questo nome"}), 400

    team.update(
        name=form.name.data or None,
        manager_name=form.manager_name.data if form.manager_name.raw_data else None,
        credits=form.credits.data,
        logo=form.logo.data or None,
    )
    db.session.commit()

    logger.info(f"Admin {current_user.username} updated team {team.name}")
    return jsonify(team.to_dict())


@bp.route("/<int:team_id>", methods=["DELETE"])
@admin_required
def delete_team(team_id):
    team = db.get_or_404(Team, team_id)
    name = team.name

    team.delete()
    db.session.commit()

    logger.info(f"Admin {current_user.username} deleted team {name}")
    return jsonify({"success": True})


@bp.route("/logo", methods=["POST"])
@admin_required
def upload_logo():
    """
    Attach a logo to a team by name

    Accepts a multipart "logo" image or a ready "base64Logo" data URI.
    """
    team_name = (request.form.get("teamName") or "").strip()
    if not team_name:
        return jsonify({"error": "Nome squadra mancante"}), 400

    logo = (request.form.get("base64Logo") or "").strip()
    if not logo:
        upload = request.files.get("logo")
        if upload is None or not upload.filename:
            return jsonify({"error": "Nessun logo caricato"}), 400
        if upload.mimetype not in ALLOWED_LOGO_TYPES:
            return jsonify({"error": "Il logo deve essere un'immagine"}), 400

        encoded = base64.b64encode(upload.read()).decode("ascii")
        logo = f"data:{upload.mimetype};base64,{encoded}"
    elif not logo.startswith("data:image/"):
        return jsonify({"error": "Il logo deve essere un'immagine"}), 400

    team_found = Team.set_logo(team_name, logo)
    if team_found:
        db.session.commit()
        logger.info(f"Admin {current_user.username} updated logo for {team_name}")
    else:
        logger.warning(f"Logo uploaded for unknown team '{team_name}'")

    return jsonify({"success": True, "team_found": team_found})
