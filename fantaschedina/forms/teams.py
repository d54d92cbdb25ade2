from wtforms import IntegerField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from fantaschedina.forms.base import ApiForm, TextField, strip_input

CREDITS_MESSAGE = "I crediti non possono essere negativi"


class TeamForm(ApiForm):
    name = TextField(
        "Nome squadra",
        validators=[
            DataRequired(message="Il nome della squadra è obbligatorio"),
            Length(max=100),
        ],
        filters=[strip_input],
    )
    manager_name = TextField(
        "Allenatore", validators=[Optional(), Length(max=200)], filters=[strip_input]
    )
    credits = IntegerField(
        "Crediti", validators=[Optional(), NumberRange(min=0, message=CREDITS_MESSAGE)]
    )
    logo = TextField("Logo", validators=[Optional()])


class EditTeamForm(ApiForm):
    """Partial team update, absent fields are left as they are"""

    name = TextField(
        "Nome squadra", validators=[Optional(), Length(max=100)], filters=[strip_input]
    )
    manager_name = TextField(
        "Allenatore", validators=[Optional(), Length(max=200)], filters=[strip_input]
    )
    credits = IntegerField(
        "Crediti", validators=[Optional(), NumberRange(min=0, message=CREDITS_MESSAGE)]
    )
    logo = TextField("Logo", validators=[Optional()])
