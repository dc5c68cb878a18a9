from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user
from models.email_settings import EmailSettings
from models.notification import Notification, NotificationType
from models.user import User
from schemas.medication import SuccessOut
from schemas.notification import (
    CheckAndNotifyOut,
    NotificationOut,
    SendTestEmailIn,
    SmtpConfigIn,
    SmtpStatusOut,
    SmtpTestIn,
)
from services.mailer import (
    SmtpConfig,
    get_email_settings,
    send_test_email_from_db,
    send_test_email_with_config,
)
from services.notifications import check_and_notify, create_notification, send_push_if_available

router = APIRouter(prefix="/notifications", tags=["Notifications"])

EMAIL_FAILED_DETAIL = "Sending the email failed, please check the SMTP settings"


@router.get("/", response_model=list[NotificationOut])
def list_notifications(
    limit: int = Query(default=50, ge=1, le=300),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List notifications for the current user, newest first."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


@router.put("/read-all", response_model=SuccessOut)
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark all notifications as read."""
    db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.is_read.is_(False),
    ).update({"is_read": True})
    db.commit()
    return SuccessOut()


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a notification as read."""
    notif = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
        .first()
    )
    if not notif:
        raise HTTPException(status_code=404, detail="Notification not found")
    notif.is_read = True
    db.commit()
    db.refresh(notif)
    return notif


@router.post("/check-and-notify", response_model=CheckAndNotifyOut)
def run_low_stock_check(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Notify the user and opted-in family contacts about low-stock medications."""
    result = check_and_notify(db, current_user)
    return CheckAndNotifyOut(
        notifications_sent=result.notifications_sent,
        emails_sent=result.emails_sent,
        low_stock_count=result.low_stock_count,
    )


@router.post("/test-delivery")
def test_delivery(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    title = "Test reminder"
    body = "If you can see this, reminders will reach you."
    create_notification(db, current_user.id, NotificationType.reminder, title, body)
    db.commit()
    return {
        "push_token_present": bool(current_user.push_token),
        "push_sent": send_push_if_available(current_user, title, body),
    }


# ─── SMTP settings ──────────────────────────────────────────

@router.get("/smtp-status", response_model=SmtpStatusOut)
def smtp_status(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    settings = get_email_settings(db, current_user.id)
    if not settings:
        return SmtpStatusOut(configured=False)
    return SmtpStatusOut(
        configured=True,
        is_enabled=settings.is_enabled,
        host=f"{settings.smtp_host}:{settings.smtp_port}",
        sender=settings.smtp_from or settings.smtp_user,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_secure=settings.smtp_secure,
        smtp_from=settings.smtp_from,
    )


@router.put("/smtp-config", response_model=SuccessOut)
def save_smtp_config(
    data: SmtpConfigIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    settings = get_email_settings(db, current_user.id)
    if not settings:
        settings = EmailSettings(user_id=current_user.id)
        db.add(settings)
    for key, value in data.model_dump().items():
        setattr(settings, key, value)
    db.commit()
    return SuccessOut()


@router.delete("/smtp-config", response_model=SuccessOut)
def delete_smtp_config(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    db.query(EmailSettings).filter(EmailSettings.user_id == current_user.id).delete()
    db.commit()
    return SuccessOut()


@router.post("/smtp-config/test", response_model=SuccessOut)
def test_smtp_config(
    data: SmtpTestIn,
    current_user: User = Depends(get_current_user),
):
    """Try an unsaved SMTP configuration by sending a test email."""
    config = SmtpConfig(
        host=data.smtp_host,
        port=data.smtp_port,
        user=data.smtp_user,
        password=data.smtp_pass,
        secure=data.smtp_secure,
        from_address=data.smtp_from or None,
    )
    if not send_test_email_with_config(config, data.test_email):
        raise HTTPException(status_code=400, detail=EMAIL_FAILED_DETAIL)
    return SuccessOut()


@router.post("/send-test-email", response_model=SuccessOut)
def send_test_email(
    data: SendTestEmailIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not send_test_email_from_db(db, current_user.id, data.email):
        raise HTTPException(status_code=400, detail=EMAIL_FAILED_DETAIL)
    return SuccessOut()
