"""
Seed data for the league's teams

Used by `manage.py team import-defaults` and scripts/import_teams.py.
"""

import logging

from fantaschedina import db
from fantaschedina.models import Team

logger = logging.getLogger(__name__)

DEFAULT_TEAMS = [
    {
        "name": "US Lecce",
        "manager_name": "Paride Ficiente & Pio delle Sberle",
        "credits": 35,
        "logo": "/team-logos/us-lecce.png",
    },
    {
        "name": "AS PIZZIGHETTONE CALCIO 2K22",
        "manager_name": "Franluca & Granatiero",
        "credits": 33,
        "logo": "/team-logos/as-pizzighettone.png",
    },
    {
        "name": "BOCA JUNIORS",
        "manager_name": "DDR",
        "credits": 0,
        "logo": "/team-logos/boca-juniors.png",
    },
    {
        "name": "Club Deportivo Tenerife",
        "manager_name": "Pablo Gavira & Ninolr",
        "credits": 18,
        "logo": "/team-logos/tenerife.png",
    },
    {
        "name": "Fc Como",
        "manager_name": "Fabregas & Fabregas bis",
        "credits": 12,
        "logo": "/team-logos/como.png",
    },
    {
        "name": "LIVERPOOL FC",
        "manager_name": "Henry&Victor Gambero",
        "credits": 12,
        "logo": "/team-logos/liverpool.png",
    },
    {
        "name": "NOCERINA",
        "manager_name": "mikeRaf & RaffMike",
        "credits": 2,
        "logo": "/team-logos/nocerina.png",
    },
    {
        "name": "Newells Old Boys",
        "manager_name": "El Loco Bielsa & Magnato",
        "credits": 6,
        "logo": "/team-logos/newells.png",
    },
    {
        "name": "Real Madrid",
        "manager_name": "Micione",
        "credits": 26,
        "logo": "/team-logos/real-madrid.png",
    },
    {
        "name": "US PERGOLETTESE 1932",
        "manager_name": "I capelloni & pasqualeprudente7",
        "credits": 16,
        "logo": "/team-logos/pergolettese.png",
    },
]


def import_default_teams(teams=None):
    """
    Create the missing teams, leaving existing ones untouched

    Returns:
        (created, skipped) lists of team names
    """
    created = []
    skipped = []

    for team_data in teams or DEFAULT_TEAMS:
        if Team.get_by_name(team_data["name"]):
            skipped.append(team_data["name"])
            continue

        Team.create(**team_data)
        created.append(team_data["name"])

    db.session.commit()
    logger.info(f"Team import: {len(created)} created, {len(skipped)} already present")
    return created, skipped
