"""
Email Service for FantaSchedina

Admin notifications:
- New prediction received
- Match spreadsheet import report

Sending is skipped (and reported as False) when SMTP is not configured.
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

from fantaschedina.utils.timezone_utils import format_match_time, get_utc_time

logger = logging.getLogger(__name__)


class EmailService:
    """Handles all email sending functionality"""

    def __init__(self):
        self.smtp_server = current_app.config.get("MAIL_SERVER") or "localhost"
        self.smtp_port = current_app.config.get("MAIL_PORT", 587)
        self.smtp_username = current_app.config.get("MAIL_USERNAME")
        self.smtp_password = current_app.config.get("MAIL_PASSWORD")
        self.from_email = current_app.config.get(
            "FROM_EMAIL"
        ) or current_app.config.get("MAIL_USERNAME", "noreply@fantaschedina.com")
        self.from_name = current_app.config.get("FROM_NAME", "FantaSchedina")
        self.admin_email = current_app.config.get("ADMIN_EMAIL")
        self.use_tls = current_app.config.get("MAIL_USE_TLS", True)

    @property
    def is_configured(self):
        return bool(self.smtp_username and self.smtp_password and self.admin_email)

    def _create_message(self, to_email, subject, body_text, body_html=None):
        """Create email message"""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        # Add text part
        msg.attach(MIMEText(body_text, "plain"))

        # Add HTML part if provided
        if body_html:
            msg.attach(MIMEText(body_html, "html"))

        return msg

    def _send_email(self, message):
        """Send email message"""
        if not self.is_configured:
            logger.warning("SMTP credentials not configured. Email not sent.")
            return False

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_email, [message["To"]], message.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {message['To']}: {str(e)}")
            return False

        logger.info(f"Email sent successfully to {message['To']}")
        return True

    def send_prediction_notification(self, prediction):
        """Tell the admin about a new prediction"""
        username = prediction.user.username if prediction.user else "?"
        match = prediction.match
        match_label = (
            f"{match.home_team} - {match.away_team} (giornata {match.match_day})"
            if match
            else f"partita {prediction.match_id}"
        )
        when = format_match_time(prediction.created_at or get_utc_time())

        subject = f"Nuovo pronostico {self.from_name}"
        body_text = (
            f"Nuovo pronostico di {username}: {prediction.prediction} "
            f"su {match_label}, {prediction.credits} crediti ({when})"
        )
        body_html = f"""
        <html>
        <body>
            <h2>Nuovo pronostico ricevuto</h2>
            <p><strong>Squadra:</strong> {html.escape(username)}</p>
            <p><strong>Partita:</strong> {html.escape(match_label)}</p>
            <p><strong>Pronostico:</strong> {prediction.prediction}</p>
            <p><strong>Crediti:</strong> {prediction.credits}</p>
            <p><strong>Orario:</strong> {when}</p>
        </body>
        </html>
        """

        message = self._create_message(self.admin_email, subject, body_text, body_html)
        return self._send_email(message)

    def send_import_report(self, success, report):
        """Send the outcome of a match spreadsheet import to the admin"""
        subject = (
            "Importazione partite completata"
            if success
            else "Importazione partite non riuscita"
        )
        when = format_match_time(get_utc_time())

        body_text = f"{report}\n\nOrario: {when}"
        body_html = f"""
        <html>
        <body>
            <h2>{subject}</h2>
            <p>{html.escape(report)}</p>
            <p><strong>Orario:</strong> {when}</p>
        </body>
        </html>
        """

        message = self._create_message(self.admin_email, subject, body_text, body_html)
        return self._send_email(message)
