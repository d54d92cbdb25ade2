from wtforms import BooleanField
from wtforms.validators import DataRequired, Length, Optional, Regexp, ValidationError

from fantaschedina.forms.base import ApiForm, TextField
from fantaschedina.models.user import User

USERNAME_LENGTH_MESSAGE = "Il nome della squadra deve avere almeno 3 caratteri"
PIN_LENGTH_MESSAGE = "Il PIN deve essere di 4 cifre"
PIN_DIGITS_MESSAGE = "Il PIN deve contenere solo numeri"
USERNAME_TAKEN_MESSAGE = "Il nome squadra è già in uso"


def username_validators(required=True):
    return [
        DataRequired(message=USERNAME_LENGTH_MESSAGE) if required else Optional(),
        Length(min=3, max=80, message=USERNAME_LENGTH_MESSAGE),
    ]


def pin_validators(required=True):
    return [
        DataRequired(message=PIN_LENGTH_MESSAGE) if required else Optional(),
        Length(min=4, max=4, message=PIN_LENGTH_MESSAGE),
        Regexp(r"^\d+$", message=PIN_DIGITS_MESSAGE),
    ]


class LoginForm(ApiForm):
    username = TextField(
        "Nome squadra",
        validators=[DataRequired(message="Nome squadra o PIN non validi")],
    )
    pin = TextField(
        "PIN", validators=[DataRequired(message="Nome squadra o PIN non validi")]
    )
    remember_me = BooleanField("Ricordami")


class RegistrationForm(ApiForm):
    username = TextField("Nome squadra", validators=username_validators())
    pin = TextField("PIN", validators=pin_validators())

    def validate_username(self, username):
        if User.get_by_username(username.data):
            raise ValidationError(USERNAME_TAKEN_MESSAGE)


class AdminUserForm(ApiForm):
    """Admin user creation"""

    username = TextField("Nome squadra", validators=username_validators())
    pin = TextField("PIN", validators=pin_validators())
    is_admin = BooleanField("Amministratore")

    def validate_username(self, username):
        if User.get_by_username(username.data):
            raise ValidationError(USERNAME_TAKEN_MESSAGE)


class EditUserForm(ApiForm):
    """Partial admin update, absent fields are left as they are"""

    username = TextField("Nome squadra", validators=username_validators(False))
    pin = TextField("PIN", validators=pin_validators(False))
    is_admin = BooleanField("Amministratore")

    def __init__(self, original_username, *args, **kwargs):
        super(EditUserForm, self).__init__(*args, **kwargs)
        self.original_username = original_username

    def validate_username(self, username):
        if username.data and username.data.strip() != self.original_username:
            if User.get_by_username(username.data):
                raise ValidationError(USERNAME_TAKEN_MESSAGE)
