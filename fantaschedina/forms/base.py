from datetime import datetime

from flask_wtf import FlaskForm
from wtforms import Field, StringField
from wtforms.widgets import TextInput

from fantaschedina.utils.timezone_utils import convert_to_utc


def strip_input(text):
    """Trim surrounding whitespace, the client escapes on render"""
    if not text:
        return text
    return text.strip()


class ApiForm(FlaskForm):
    """Base form for JSON request bodies"""

    class Meta:
        # JSON API with SameSite session cookies, no per-form token
        csrf = False

    def first_error(self, default="Dati non validi"):
        """First validation message, for {"error": ...} responses"""
        for errors in self.errors.values():
            if errors:
                return errors[0]
        return default


class TextField(StringField):
    """String field that also accepts JSON numbers, e.g. a PIN sent as 1234"""

    def process_formdata(self, valuelist):
        if valuelist and valuelist[0] is not None:
            self.data = str(valuelist[0])
        elif self.data is None:
            self.data = ""


class IsoDateTimeField(Field):
    """
    ISO 8601 datetime field.

    Aware values are converted to UTC, naive values are read in the
    application timezone. The parsed value is always naive UTC.
    """

    widget = TextInput()

    def _value(self):
        if self.raw_data:
            return " ".join(str(v) for v in self.raw_data)
        return self.data.isoformat() if self.data else ""

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] in (None, ""):
            self.data = None
            return

        value = str(valuelist[0]).strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            self.data = None
            raise ValueError(self.gettext("Data della partita non valida"))

        self.data = convert_to_utc(parsed).replace(tzinfo=None)
