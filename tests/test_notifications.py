"""Low-stock fan-out and email delivery."""
import smtplib

import pytest

from conftest import NOW, make_contact, make_medication, make_user
from models.email_settings import EmailSettings
from models.notification import Notification, NotificationType
from services import mailer
from services.notifications import check_and_notify, init_firebase, parse_service_account


@pytest.fixture
def sent_emails(monkeypatch):
    calls = []

    def fake_send(db, user_id, recipient_name, recipient_email, user_name, medications):
        calls.append({"to": recipient_email, "user_name": user_name, "meds": [m.name for m in medications]})
        return True

    monkeypatch.setattr(mailer, "send_low_stock_email", fake_send)
    return calls


def test_fan_out_counts_and_one_email_per_contact(db, sent_emails):
    user = make_user(db)
    make_medication(db, user, name="Aspirin", remaining_quantity=6)
    make_medication(db, user, name="Insulin", remaining_quantity=2)
    make_medication(db, user, name="Vitamin C", remaining_quantity=300)
    make_contact(db, user, contact_name="Bob", contact_email="bob@example.com")
    make_contact(db, user, contact_name="Carol", contact_email="carol@example.com")
    make_contact(db, user, contact_name="Dave", contact_email="dave@example.com", notify_on_low_stock=False)

    result = check_and_notify(db, user, now=NOW)

    assert result.low_stock_count == 2
    assert result.notifications_sent == 2 * (1 + 2)
    assert result.emails_sent == 2
    assert sorted(c["to"] for c in sent_emails) == ["bob@example.com", "carol@example.com"]
    assert all(sorted(c["meds"]) == ["Aspirin", "Insulin"] for c in sent_emails)

    rows = db.query(Notification).all()
    assert len(rows) == 6
    assert sum(1 for n in rows if n.contact_id is None) == 2


def test_out_of_stock_type_and_copy(db, sent_emails):
    user = make_user(db, name="Grandma")
    make_medication(db, user, name="Insulin", remaining_quantity=2)  # 3 per day -> 0 days
    make_contact(db, user)

    check_and_notify(db, user, now=NOW)

    rows = db.query(Notification).order_by(Notification.id).all()
    assert {n.type for n in rows} == {NotificationType.out_of_stock}
    assert rows[0].title == "Insulin has run out"
    assert rows[1].title.startswith("Grandma's medication")


def test_no_contacts_means_no_email(db, sent_emails):
    user = make_user(db)
    make_medication(db, user, remaining_quantity=6)

    result = check_and_notify(db, user, now=NOW)

    assert result.notifications_sent == 1
    assert result.emails_sent == 0
    assert sent_emails == []


def test_nothing_low_creates_nothing(db, sent_emails):
    user = make_user(db)
    make_medication(db, user, remaining_quantity=300)
    make_contact(db, user)

    result = check_and_notify(db, user, now=NOW)

    assert (result.notifications_sent, result.emails_sent, result.low_stock_count) == (0, 0, 0)
    assert sent_emails == []


def test_user_gets_one_push_per_low_stock_medication(db, sent_emails, monkeypatch):
    pushes = []

    def fake_push(push_token, title, body, user_id=None):
        pushes.append((push_token, title))
        return True

    monkeypatch.setattr("services.notifications.send_push_to_token", fake_push)
    user = make_user(db, push_token="device-1")
    make_medication(db, user, name="Aspirin", remaining_quantity=6)
    make_medication(db, user, name="Insulin", remaining_quantity=2)
    make_contact(db, user)

    check_and_notify(db, user, now=NOW)

    assert sorted(pushes) == [("device-1", "Aspirin is running low"), ("device-1", "Insulin has run out")]


def test_push_failure_does_not_stop_fan_out(db, sent_emails, monkeypatch):
    def broken_push(*args, **kwargs):
        return False

    monkeypatch.setattr("services.notifications.send_push_to_token", broken_push)
    user = make_user(db, push_token="device-1")
    make_medication(db, user, remaining_quantity=6)

    assert check_and_notify(db, user, now=NOW).notifications_sent == 1


def test_email_failure_is_swallowed_per_contact(db, monkeypatch):
    user = make_user(db)
    make_medication(db, user, remaining_quantity=6)
    make_contact(db, user, contact_email="broken@example.com")
    make_contact(db, user, contact_email="fine@example.com")

    def flaky_send(db, user_id, recipient_name, recipient_email, user_name, medications):
        if recipient_email == "broken@example.com":
            raise smtplib.SMTPException("boom")
        return True

    monkeypatch.setattr(mailer, "send_low_stock_email", flaky_send)

    result = check_and_notify(db, user, now=NOW)

    assert result.emails_sent == 1
    assert result.notifications_sent == 3


# ─── mailer ─────────────────────────────────────────────────

def _save_settings(db, user, **kwargs):
    settings = EmailSettings(
        user_id=user.id,
        smtp_host="smtp.example.com",
        smtp_port=kwargs.pop("smtp_port", 465),
        smtp_user="alerts@example.com",
        smtp_pass="secret",
        smtp_secure=kwargs.pop("smtp_secure", True),
        is_enabled=kwargs.pop("is_enabled", True),
        **kwargs,
    )
    db.add(settings)
    db.commit()
    return settings


def _info(name, days):
    return mailer.LowStockMedInfo(name, "1 tablet", days * 2, days, "2026-10-25", 2)


def test_low_stock_email_requires_enabled_settings(db):
    user = make_user(db)
    assert not mailer.send_low_stock_email(db, user.id, "Bob", "bob@example.com", "Alice", [_info("Aspirin", 5)])

    _save_settings(db, user, is_enabled=False)
    assert not mailer.send_low_stock_email(db, user.id, "Bob", "bob@example.com", "Alice", [_info("Aspirin", 5)])


def test_low_stock_email_sent_over_ssl(db, fake_smtp):
    user = make_user(db)
    _save_settings(db, user)

    ok = mailer.send_low_stock_email(
        db, user.id, "Bob", "bob@example.com", "Alice", [_info("Aspirin", 2), _info("Insulin", 6)]
    )

    assert ok
    assert fake_smtp.calls == ["login"]
    msg = fake_smtp.sent[0]
    assert msg["To"] == "bob@example.com"
    assert msg["Subject"].startswith("Urgent: 1 of Alice's")


def test_plain_smtp_upgrades_with_starttls(db, fake_smtp):
    user = make_user(db)
    _save_settings(db, user, smtp_secure=False, smtp_port=587, smtp_from="pharmacy@example.com")

    assert mailer.send_test_email_from_db(db, user.id, "me@example.com")

    assert fake_smtp.calls == ["ehlo", "starttls", "ehlo", "login"]
    msg = fake_smtp.sent[0]
    assert "pharmacy@example.com" in msg["From"]
    assert msg["To"] == "me@example.com"


def test_smtp_error_returns_false(db, monkeypatch):
    user = make_user(db)
    _save_settings(db, user)

    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "unavailable")

    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", refuse)

    assert not mailer.send_low_stock_email(db, user.id, "Bob", "bob@example.com", "Alice", [_info("Aspirin", 5)])


def test_subject_and_html_content():
    meds = [_info("Aspirin <forte>", 5), _info("Insulin", 0)]
    assert mailer.low_stock_subject("Alice", [_info("Aspirin", 5)]).startswith("Reminder: 1 of Alice's")

    html = mailer.build_low_stock_email_html("Bob", "Alice", meds)
    assert "Aspirin &lt;forte&gt;" in html
    assert "Out of stock" in html
    assert "5 day(s)" in html


# ─── push setup ─────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw",
    [
        '{"type": "service_account", "private_key": "line1\\\\nline2"}',
        '\'{"type": "service_account", "private_key": "line1\\\\nline2"}\'',
    ],
)
def test_parse_service_account_unwraps_quotes_and_key_newlines(raw):
    account = parse_service_account(raw)
    assert account["type"] == "service_account"
    assert account["private_key"] == "line1\nline2"


@pytest.mark.parametrize("raw", ["not json", "[1, 2]"])
def test_parse_service_account_rejects_garbage(raw):
    assert parse_service_account(raw) is None


def test_init_firebase_disabled_on_bad_credentials(monkeypatch):
    monkeypatch.setattr("services.notifications.FIREBASE_SERVICE_ACCOUNT", "not json")
    assert init_firebase() is False
