import json
import logging
from dataclasses import dataclass
from datetime import datetime

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy.orm import Session

from config import FIREBASE_SERVICE_ACCOUNT, LOW_STOCK_DAYS_THRESHOLD
from models.family_contact import FamilyContact
from models.medication import Medication
from models.notification import Notification, NotificationType
from models.user import User
from services import mailer
from services.stock import StockPrediction, low_stock_medications
from time_utils import as_utc, to_local, utcnow

logger = logging.getLogger("medremind.notifications")


@dataclass
class CheckResult:
    notifications_sent: int = 0
    emails_sent: int = 0
    low_stock_count: int = 0


def init_firebase() -> bool:
    """Initialise the Firebase Admin app once; returns False when no credentials are configured."""
    if firebase_admin._apps:
        return True
    if not FIREBASE_SERVICE_ACCOUNT:
        logger.warning("FIREBASE_SERVICE_ACCOUNT not set; push messages disabled")
        return False
    account = parse_service_account(FIREBASE_SERVICE_ACCOUNT)
    if account is None:
        logger.error("FIREBASE_SERVICE_ACCOUNT is not valid JSON; push messages disabled")
        return False
    try:
        firebase_admin.initialize_app(credentials.Certificate(account))
    except ValueError:
        logger.exception("Firebase service account rejected; push messages disabled")
        return False
    logger.info("Firebase Admin SDK initialized")
    return True


def parse_service_account(raw: str) -> dict | None:
    """Decode the service-account JSON, tolerating surrounding quotes and escaped newlines in the key."""
    for candidate in (raw, raw.strip().strip("'").strip('"')):
        try:
            account = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if not isinstance(account, dict):
            return None
        if "\\n" in account.get("private_key", ""):
            account["private_key"] = account["private_key"].replace("\\n", "\n")
        return account
    return None


def create_notification(
    db: Session,
    user_id: int,
    type_: NotificationType,
    title: str,
    content: str,
    medication_id: int | None = None,
    contact_id: int | None = None,
    sent_at: datetime | None = None,
) -> Notification:
    notif = Notification(
        user_id=user_id,
        contact_id=contact_id,
        medication_id=medication_id,
        type=type_,
        title=title,
        content=content,
        sent_at=as_utc(sent_at or utcnow()),
    )
    db.add(notif)
    return notif


def send_push_if_available(user: User | None, title: str, body: str) -> bool:
    if not user or not user.push_token:
        return False
    return send_push_to_token(user.push_token, title, body, user.id)


def send_push_to_token(push_token: str | None, title: str, body: str, user_id: int | None = None) -> bool:
    if not push_token:
        return False
    if not firebase_admin._apps:
        logger.debug("Push skipped: Firebase Admin is not initialized")
        return False
    try:
        msg = messaging.Message(
            token=push_token,
            notification=messaging.Notification(title=title, body=body),
            android=messaging.AndroidConfig(
                notification=messaging.AndroidNotification(channel_id="medremind_alerts"),
            ),
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(require_interaction=True),
            ),
        )
        messaging.send(msg)
        return True
    except Exception:
        # Push failures never break the calling flow.
        logger.exception("Push send failed for user %s", user_id if user_id else "n/a")
        return False


# ─── Low-stock copy ─────────────────────────────────────────

def _display_name(user: User) -> str:
    return (user.name or "").strip() or "User"


def _exhaust_date_text(prediction: StockPrediction) -> str:
    if prediction.predicted_exhaust_date is None:
        return "-"
    return to_local(prediction.predicted_exhaust_date).strftime("%Y-%m-%d")


def low_stock_notification_type(prediction: StockPrediction) -> NotificationType:
    return NotificationType.out_of_stock if prediction.out_of_stock else NotificationType.low_stock


def user_low_stock_copy(med: Medication, prediction: StockPrediction) -> tuple[str, str]:
    if prediction.out_of_stock:
        return (
            f"{med.name} has run out",
            f"Your medication \"{med.name}\" has run out. Please refill it soon.",
        )
    return (
        f"{med.name} is running low",
        f"Your medication \"{med.name}\" will last about {prediction.days_remaining} more day(s) "
        f"({med.remaining_quantity} left, {med.dosage} per dose) and is expected to run out on "
        f"{_exhaust_date_text(prediction)}. Please plan a refill.",
    )


def contact_low_stock_copy(user: User, med: Medication, prediction: StockPrediction) -> tuple[str, str]:
    owner = _display_name(user)
    if prediction.out_of_stock:
        return (
            f"{owner}'s medication \"{med.name}\" has run out",
            f"{owner}'s medication \"{med.name}\" ({med.dosage}) has run out. Please help buy a refill.",
        )
    return (
        f"{owner}'s medication \"{med.name}\" is running low",
        f"{owner}'s medication \"{med.name}\" ({med.dosage}) will last about "
        f"{prediction.days_remaining} more day(s), {med.remaining_quantity} left, expected to run out on "
        f"{_exhaust_date_text(prediction)}. Please help refill it in time.",
    )


def _med_info(med: Medication, prediction: StockPrediction) -> mailer.LowStockMedInfo:
    return mailer.LowStockMedInfo(
        name=med.name,
        dosage=med.dosage,
        remaining_quantity=med.remaining_quantity,
        days_remaining=prediction.days_remaining,
        predicted_exhaust_date=_exhaust_date_text(prediction),
        daily_usage=prediction.daily_usage,
    )


def low_stock_contacts(db: Session, user_id: int) -> list[FamilyContact]:
    return (
        db.query(FamilyContact)
        .filter(
            FamilyContact.user_id == user_id,
            FamilyContact.is_active.is_(True),
            FamilyContact.notify_on_low_stock.is_(True),
        )
        .order_by(FamilyContact.created_at.desc(), FamilyContact.id.desc())
        .all()
    )


def check_and_notify(
    db: Session,
    user: User,
    threshold: int = LOW_STOCK_DAYS_THRESHOLD,
    now: datetime | None = None,
) -> CheckResult:
    """
    Fan out low-stock alerts for one user.

    One in-app notification per low-stock medication for the user, plus one per
    opted-in family contact; then one aggregated email per opted-in contact.
    Email and push failures are logged and counted out, never raised.
    """
    now = now or utcnow()
    low = low_stock_medications(db, user.id, threshold, now)
    contacts = low_stock_contacts(db, user.id)
    result = CheckResult(low_stock_count=len(low))

    for med, prediction in low:
        type_ = low_stock_notification_type(prediction)
        title, content = user_low_stock_copy(med, prediction)
        create_notification(db, user.id, type_, title, content, medication_id=med.id, sent_at=now)
        send_push_if_available(user, title, content)
        result.notifications_sent += 1

        for contact in contacts:
            title, content = contact_low_stock_copy(user, med, prediction)
            create_notification(
                db,
                user.id,
                type_,
                title,
                content,
                medication_id=med.id,
                contact_id=contact.id,
                sent_at=now,
            )
            result.notifications_sent += 1

    if result.notifications_sent:
        db.commit()

    if low and contacts:
        infos = [_med_info(med, prediction) for med, prediction in low]
        for contact in contacts:
            try:
                sent = mailer.send_low_stock_email(
                    db,
                    user.id,
                    recipient_name=contact.contact_name,
                    recipient_email=contact.contact_email,
                    user_name=_display_name(user),
                    medications=infos,
                )
            except Exception:
                logger.exception("Low-stock email for contact %s failed", contact.id)
                sent = False
            if sent:
                result.emails_sent += 1

    logger.info(
        "Low-stock check for user %s: %d low, %d notifications, %d emails",
        user.id,
        result.low_stock_count,
        result.notifications_sent,
        result.emails_sent,
    )
    return result
