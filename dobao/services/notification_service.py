import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, Optional, Tuple

from dobao.core.config import settings
from dobao.core.logger import logger
from dobao.core.config_loader import load_venue_config
from dobao.models.db_models import Booking, SLOT_LABELS

# SMTP Configuration
SMTP_SERVER = settings.SMTP_SERVER
SMTP_PORT = settings.SMTP_PORT
SMTP_USERNAME = settings.SMTP_USERNAME
SMTP_PASSWORD = settings.SMTP_PASSWORD

DEFAULT_TEMPLATES = {
    "owner_subject": "Nueva solicitud de reserva: {date}",
    "owner_template": "Nueva reserva: {name}, {date} {slot}",
    "confirmation_subject": "Reserva Confirmada - {venue_name}",
    "confirmation_template": "Tu reserva para el {date} ha sido confirmada.",
}


def send_email(subject: str, body: str, to_email: Optional[str] = None,
               config: Optional[Dict[str, Any]] = None) -> bool:
    """
    Sends a plain-text email over SMTP with STARTTLS.
    `to_email` defaults to the venue owner. Pass `config` when the caller
    already holds the venue config.
    Returns: True if sent, False when disabled, misconfigured or failed.
    """
    config = config if config is not None else load_venue_config()

    if not config.get("notifications", {}).get("email_enabled", False):
        logger.info("ℹ️ Email notifications are disabled in config.")
        return False

    recipient = to_email or config.get("owner_email")
    if not recipient:
        logger.error("❌ No recipient email found (owner_email missing in config).")
        return False

    if not SMTP_USERNAME or not SMTP_PASSWORD:
        logger.error("❌ SMTP credentials missing in settings.")
        return False

    msg = MIMEMultipart()
    msg['From'] = SMTP_USERNAME
    msg['To'] = recipient
    msg['Subject'] = subject
    msg.attach(MIMEText(body, 'plain', 'utf-8'))

    try:
        server = smtplib.SMTP(SMTP_SERVER, SMTP_PORT)
        server.starttls()
        server.login(SMTP_USERNAME, SMTP_PASSWORD)
        server.sendmail(SMTP_USERNAME, recipient, msg.as_string())
        server.quit()
    except Exception as e:
        logger.error(f"❌ Email to {recipient} failed: {e}")
        return False

    logger.info(f"✅ Email sent to {recipient} with subject: '{subject}'")
    return True


def _render(booking: Booking, config: Dict[str, Any], kind: str) -> Optional[Tuple[str, str]]:
    """Fills the `<kind>_subject` / `<kind>_template` pair from the venue config."""
    templates = config.get("notifications", {})
    values = {
        "name": booking.customer_name,
        "email": booking.email,
        "phone": booking.phone,
        "date": booking.date.strftime("%d/%m/%Y"),
        "slot": SLOT_LABELS.get(booking.slot, booking.slot.value),
        "guests": booking.guests,
        "purpose": booking.purpose,
        "venue_name": config.get("venue_name", "Dobao Gourmet"),
    }
    subject_key, body_key = f"{kind}_subject", f"{kind}_template"
    try:
        subject = templates.get(subject_key, DEFAULT_TEMPLATES[subject_key]).format(**values)
        body = templates.get(body_key, DEFAULT_TEMPLATES[body_key]).format(**values)
    except (KeyError, IndexError) as e:
        logger.error(f"❌ Bad placeholder in {kind} email template: {e}")
        return None
    return subject, body


def notify_new_request(booking: Booking) -> bool:
    """Tells the owner a booking request is waiting for review."""
    config = load_venue_config()
    rendered = _render(booking, config, "owner")
    if rendered is None:
        return False
    subject, body = rendered
    return send_email(subject, body, config=config)


def notify_confirmation(booking: Booking) -> bool:
    """Sends the customer the 'reservation validated' email."""
    if not booking.email:
        logger.warning(f"⚠️ Booking {booking.id} has no email, confirmation skipped.")
        return False

    config = load_venue_config()
    rendered = _render(booking, config, "confirmation")
    if rendered is None:
        return False
    subject, body = rendered
    return send_email(subject, body, booking.email, config=config)
