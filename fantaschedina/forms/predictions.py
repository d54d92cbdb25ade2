from flask import current_app
from wtforms import IntegerField
from wtforms.validators import (
    AnyOf,
    DataRequired,
    InputRequired,
    Optional,
    ValidationError,
)

from fantaschedina.forms.base import ApiForm, TextField
from fantaschedina.utils.scoring import VALID_OUTCOMES

OUTCOME_MESSAGE = "Il pronostico deve essere 1, X o 2"


def validate_credits_range(field):
    low = current_app.config.get("PREDICTION_CREDITS_MIN", 1)
    high = current_app.config.get("PREDICTION_CREDITS_MAX", 10)
    if field.data is not None and not low <= field.data <= high:
        raise ValidationError(f"I crediti devono essere tra {low} e {high}")


class PredictionForm(ApiForm):
    match_id = IntegerField(
        "Partita", validators=[InputRequired(message="La partita è obbligatoria")]
    )
    prediction = TextField(
        "Pronostico",
        validators=[
            DataRequired(message=OUTCOME_MESSAGE),
            AnyOf(VALID_OUTCOMES, message=OUTCOME_MESSAGE),
        ],
    )
    credits = IntegerField("Crediti", validators=[Optional()])

    def validate_credits(self, credits):
        validate_credits_range(credits)


class EditPredictionForm(ApiForm):
    prediction = TextField(
        "Pronostico",
        validators=[Optional(), AnyOf(VALID_OUTCOMES, message=OUTCOME_MESSAGE)],
    )
    credits = IntegerField("Crediti", validators=[Optional()])

    def validate_credits(self, credits):
        validate_credits_range(credits)
