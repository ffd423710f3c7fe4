from datetime import datetime
from types import SimpleNamespace

from src.domain.state_machine import BookingStatus
from src.infrastructure.notifications import email as email_module
from src.infrastructure.notifications.email import SmtpEmailSender, SmtpSettings, render_template
from src.infrastructure.notifications.notifier import EmailNotifier


def _context():
    return {
        "booking": SimpleNamespace(
            id="b1",
            event_date=datetime(2026, 12, 5),
            location="Addis Ababa",
            status=BookingStatus.CONFIRMED,
        ),
        "service": SimpleNamespace(name="Full Day Photography"),
        "client_user": SimpleNamespace(first_name="Hanna", last_name="Girma"),
        "vendor_user": SimpleNamespace(first_name="Selam"),
    }


def test_payment_email_shows_amount_and_booking_link():
    html = render_template(
        "payment_completed_vendor.html",
        payment=SimpleNamespace(id="p1", amount=15000),
        currency="ETB",
        **_context(),
    )

    assert "Hello Selam," in html
    assert "ETB 15,000.00" in html
    assert "December 05, 2026" in html
    assert "Hanna Girma" in html
    assert "/dashboard/bookings/b1/show" in html


def test_new_booking_email_shows_location_and_status():
    html = render_template("new_booking_vendor.html", **_context())

    assert "New Booking Received" in html
    assert "Addis Ababa" in html
    assert "CONFIRMED" in html


def test_templates_escape_user_input():
    context = _context()
    context["client_user"] = SimpleNamespace(first_name="<script>", last_name="x")
    html = render_template("new_booking_vendor.html", **context)
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


class FakeSMTP:
    instances = []

    def __init__(self, host, port, context=None, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None
        self.sent = []
        self.started_tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, message):
        self.sent.append(message)


def _settings(secure: bool) -> SmtpSettings:
    return SmtpSettings(
        host="smtp.test",
        port=465 if secure else 587,
        secure=secure,
        username="mailer",
        password="secret",
        from_address="noreply@example.com",
    )


def test_secure_sender_uses_ssl_and_logs_in(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP_SSL", FakeSMTP)

    message_id = SmtpEmailSender(_settings(secure=True)).send("vendor@example.com", "Hi", "<p>x</p>")

    server = FakeSMTP.instances[0]
    assert server.port == 465
    assert server.logged_in == ("mailer", "secret")
    assert server.sent[0]["To"] == "vendor@example.com"
    assert server.sent[0]["Message-ID"] == message_id


def test_plain_sender_upgrades_with_starttls(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)

    SmtpEmailSender(_settings(secure=False)).send("vendor@example.com", "Hi", "<p>x</p>")

    assert FakeSMTP.instances[0].started_tls


class RecordingSender:
    def __init__(self):
        self.messages = []

    def send(self, to, subject, html):
        self.messages.append((to, subject, html))
        return "<id@test>"


def test_email_notifier_sends_both_vendor_emails(db_session, marketplace):
    sender = RecordingSender()
    notifier = EmailNotifier(db_session, sender)
    payment = SimpleNamespace(id="p1", amount=1500.0)

    notifier.send_payment_completion_to_vendor(payment, marketplace["booking"], marketplace["vendor"])
    notifier.send_new_booking_to_vendor(marketplace["booking"], marketplace["vendor"])

    assert [(to, subject) for to, subject, _ in sender.messages] == [
        ("vendor@example.com", "Payment Received for Booking"),
        ("vendor@example.com", "New Booking Received"),
    ]
    assert "ETB 1,500.00" in sender.messages[0][2]
