from wtforms import IntegerField
from wtforms.validators import (
    AnyOf,
    DataRequired,
    InputRequired,
    Length,
    NumberRange,
    Optional,
    ValidationError,
)

from fantaschedina.forms.base import ApiForm, IsoDateTimeField, TextField, strip_input
from fantaschedina.utils.scoring import VALID_OUTCOMES


class MatchForm(ApiForm):
    home_team = TextField(
        "Squadra di casa",
        validators=[
            DataRequired(message="La squadra di casa è obbligatoria"),
            Length(max=100),
        ],
        filters=[strip_input],
    )
    away_team = TextField(
        "Squadra in trasferta",
        validators=[
            DataRequired(message="La squadra in trasferta è obbligatoria"),
            Length(max=100),
        ],
        filters=[strip_input],
    )
    match_date = IsoDateTimeField(
        "Data partita",
        validators=[InputRequired(message="La data della partita è obbligatoria")],
    )
    match_day = IntegerField(
        "Giornata",
        validators=[
            InputRequired(message="La giornata è obbligatoria"),
            NumberRange(min=1, message="La giornata deve essere un numero positivo"),
        ],
    )
    description = TextField(
        "Descrizione",
        validators=[Optional(), Length(max=255)],
        filters=[strip_input],
    )

    def validate_away_team(self, away_team):
        if (
            away_team.data
            and self.home_team.data
            and away_team.data.strip().lower() == self.home_team.data.strip().lower()
        ):
            raise ValidationError("Le due squadre devono essere diverse")


class EditMatchForm(ApiForm):
    """Partial match update, absent fields are left as they are"""

    home_team = TextField(
        "Squadra di casa",
        validators=[Optional(), Length(max=100)],
        filters=[strip_input],
    )
    away_team = TextField(
        "Squadra in trasferta",
        validators=[Optional(), Length(max=100)],
        filters=[strip_input],
    )
    match_date = IsoDateTimeField("Data partita", validators=[Optional()])
    match_day = IntegerField(
        "Giornata",
        validators=[
            Optional(),
            NumberRange(min=1, message="La giornata deve essere un numero positivo"),
        ],
    )
    description = TextField(
        "Descrizione",
        validators=[Optional(), Length(max=255)],
        filters=[strip_input],
    )


class ResultForm(ApiForm):
    result = TextField(
        "Risultato",
        validators=[
            DataRequired(message="Risultato non valido"),
            AnyOf(VALID_OUTCOMES, message="Risultato non valido"),
        ],
    )
