import html
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formataddr

from sqlalchemy.orm import Session

from config import EMAIL_BRAND, SMTP_TIMEOUT_SECONDS, URGENT_DAYS_THRESHOLD
from models.email_settings import EmailSettings

logger = logging.getLogger("medremind.email")


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    user: str
    password: str
    secure: bool = True
    from_address: str | None = None

    @property
    def sender(self) -> str:
        return self.from_address or self.user


@dataclass(frozen=True)
class LowStockMedInfo:
    name: str
    dosage: str
    remaining_quantity: int
    days_remaining: int
    predicted_exhaust_date: str
    daily_usage: int


def config_from_settings(settings: EmailSettings) -> SmtpConfig:
    return SmtpConfig(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_pass,
        secure=bool(settings.smtp_secure),
        from_address=settings.smtp_from or None,
    )


def get_email_settings(db: Session, user_id: int) -> EmailSettings | None:
    return db.query(EmailSettings).filter(EmailSettings.user_id == user_id).first()


def get_user_smtp_config(db: Session, user_id: int) -> SmtpConfig | None:
    settings = get_email_settings(db, user_id)
    if not settings or not settings.is_enabled:
        logger.warning("No SMTP configured or disabled for user %s", user_id)
        return None
    return config_from_settings(settings)


# ─── Templates ──────────────────────────────────────────────

_CELL = "padding:12px 16px; border-bottom:1px solid #f0e6d0; font-size:16px; color:#555;"
_HEAD = "padding:12px 16px; text-align:left; font-size:14px; color:#888; border-bottom:2px solid #c9a84c;"


def _days_cell(days_remaining: int) -> str:
    color = "#dc2626" if days_remaining <= URGENT_DAYS_THRESHOLD else "#ea580c"
    label = "Out of stock" if days_remaining <= 0 else f"{days_remaining} day(s)"
    return f'<td style="{_CELL} font-weight:bold; color:{color};">{label}</td>'


def build_low_stock_email_html(
    recipient_name: str,
    user_name: str,
    medications: list[LowStockMedInfo],
) -> str:
    rows = "".join(
        "<tr>"
        f'<td style="{_CELL} color:#1a2744;"><strong>{html.escape(med.name)}</strong></td>'
        f'<td style="{_CELL}">{html.escape(med.dosage)}</td>'
        f'<td style="{_CELL}">{med.remaining_quantity} left</td>'
        f'<td style="{_CELL}">{med.daily_usage} per day</td>'
        f"{_days_cell(med.days_remaining)}"
        f'<td style="{_CELL}">{html.escape(med.predicted_exhaust_date)}</td>'
        "</tr>"
        for med in medications
    )
    headers = "".join(
        f'<th style="{_HEAD}">{label}</th>'
        for label in ("Medication", "Dosage", "Remaining", "Daily usage", "Days left", "Runs out")
    )
    recipient = html.escape(recipient_name)
    owner = html.escape(user_name)
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"></head>
<body style="margin:0; padding:0; background-color:#faf6f0; font-family:sans-serif;">
  <div style="max-width:640px; margin:0 auto; padding:24px;">
    <div style="background:#1a2744; border-radius:16px 16px 0 0; padding:32px; text-align:center;">
      <h1 style="color:#c9a84c; font-size:28px; margin:0 0 8px 0;">{EMAIL_BRAND}</h1>
      <p style="color:#e8dcc8; font-size:16px; margin:0;">Medication supply alert</p>
    </div>
    <div style="background:#ffffff; padding:32px; border:1px solid #e8dcc8;">
      <p style="font-size:18px; color:#1a2744;">Hello <strong>{recipient}</strong>,</p>
      <p style="font-size:16px; color:#555; line-height:1.8;">
        The following medications of <strong>{owner}</strong> are running out or have run out.
        Please help restock them:
      </p>
      <table style="width:100%; border-collapse:collapse; border:1px solid #e8dcc8;">
        <thead><tr style="background:#faf6f0;">{headers}</tr></thead>
        <tbody>{rows}</tbody>
      </table>
      <p style="font-size:16px; color:#ea580c; margin-top:24px;">
        Please help <strong>{owner}</strong> refill the medications above so no dose is missed.
      </p>
      <p style="font-size:14px; color:#999;">This email was sent automatically by {EMAIL_BRAND}.</p>
    </div>
  </div>
</body>
</html>"""


def build_test_email_html() -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"></head>
<body style="margin:0; padding:0; background-color:#faf6f0; font-family:sans-serif;">
  <div style="max-width:480px; margin:40px auto; padding:32px; background:#fff; border-radius:16px; text-align:center;">
    <h2 style="color:#1a2744;">Email settings work</h2>
    <p style="color:#555; font-size:16px; line-height:1.6;">
      {EMAIL_BRAND} email notifications are configured.<br/>
      Family contacts will be emailed when a medication is about to run out.
    </p>
  </div>
</body>
</html>"""


def low_stock_subject(user_name: str, medications: list[LowStockMedInfo]) -> str:
    urgent = [m for m in medications if m.days_remaining <= URGENT_DAYS_THRESHOLD]
    if urgent:
        return f"Urgent: {len(urgent)} of {user_name}'s medications are about to run out"
    return f"Reminder: {len(medications)} of {user_name}'s medications need a refill"


# ─── Sending ────────────────────────────────────────────────

def _send_email(config: SmtpConfig, recipient_email: str, subject: str, body_html: str) -> None:
    msg = MIMEText(body_html, "html", "utf-8")
    msg["Subject"] = subject
    msg["From"] = formataddr((EMAIL_BRAND, config.sender))
    msg["To"] = recipient_email

    if config.secure:
        with smtplib.SMTP_SSL(config.host, config.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            server.login(config.user, config.password)
            server.send_message(msg)
        return
    with smtplib.SMTP(config.host, config.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls()
            server.ehlo()
        server.login(config.user, config.password)
        server.send_message(msg)


def send_low_stock_email(
    db: Session,
    user_id: int,
    recipient_name: str,
    recipient_email: str,
    user_name: str,
    medications: list[LowStockMedInfo],
) -> bool:
    config = get_user_smtp_config(db, user_id)
    if not config:
        return False
    body = build_low_stock_email_html(recipient_name, user_name, medications)
    try:
        _send_email(config, recipient_email, low_stock_subject(user_name, medications), body)
    except Exception:
        logger.exception("Low-stock email to %s failed", recipient_email)
        return False
    logger.info("Sent low-stock alert to %s", recipient_email)
    return True


def send_test_email_with_config(config: SmtpConfig, to_email: str) -> bool:
    try:
        _send_email(config, to_email, f"{EMAIL_BRAND}: email settings test", build_test_email_html())
        return True
    except Exception:
        logger.exception("Test email to %s failed", to_email)
        return False


def send_test_email_from_db(db: Session, user_id: int, to_email: str) -> bool:
    config = get_user_smtp_config(db, user_id)
    if not config:
        return False
    return send_test_email_with_config(config, to_email)
