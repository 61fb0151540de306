from datetime import datetime, timezone

import pytest
import requests

from farmtofork.clients.mailer import (
    SUBJECT_NEW_FARMER_REQUEST,
    SUBJECT_REQUEST_APPROVED,
    SUBJECT_REQUEST_REJECTED,
    Mailer,
    build_admin_notification,
    build_status_email,
)
from farmtofork.core.exceptions import ExternalServiceError, ValidationError

REQUEST = {
    "email": "claire@example.fr",
    "farm_name": "Ferme <b>des</b> Collines",
    "location": "Vourles",
    "phone": "0612345678",
    "website": "https://collines.fr",
    "description": "Maraîchage & vergers",
    "first_name": "Claire",
    "last_name": "Martin",
}


def test_admin_notification_escapes_user_values():
    message = build_admin_notification(REQUEST, datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
    html = message["html"]
    assert message["subject"].startswith(SUBJECT_NEW_FARMER_REQUEST)
    assert "<b>des</b>" not in html
    assert "Ferme &lt;b&gt;des&lt;/b&gt; Collines" in html
    assert "Maraîchage &amp; vergers" in html
    assert "15/01/2025 10:00" in html
    assert 'href="https://collines.fr"' in html


def test_admin_notification_placeholders_and_unsafe_website():
    message = build_admin_notification({**REQUEST, "phone": "", "website": "javascript:alert(1)"})
    assert "Non renseigné" in message["html"]
    assert "javascript:" not in message["html"]


def test_admin_notification_requires_core_fields():
    with pytest.raises(ValidationError):
        build_admin_notification({**REQUEST, "location": "  "})


def test_status_emails():
    approved = build_status_email(REQUEST, "approved")
    assert approved["subject"] == SUBJECT_REQUEST_APPROVED
    assert "Bonjour <strong>Claire</strong>" in approved["html"]

    rejected = build_status_email({**REQUEST, "first_name": None}, "rejected", "Zone <hors> couverture")
    assert rejected["subject"] == SUBJECT_REQUEST_REJECTED
    assert "Producteur" in rejected["html"]
    assert "Zone &lt;hors&gt; couverture" in rejected["html"]

    with pytest.raises(ValidationError):
        build_status_email(REQUEST, "pending")


def test_disabled_mailer_does_not_send(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("network must not be used")

    monkeypatch.setattr(requests, "post", fail)
    assert Mailer(api_key="", admin_emails=["a@b.fr"]).send(["a@b.fr"], "s", "<p></p>") is False
    assert Mailer(api_key="key", admin_emails=[]).send_admin_notification(REQUEST) is False


def test_delivery_failure_raises_external_service_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.exceptions.ConnectionError("down")

    monkeypatch.setattr(requests, "post", boom)
    with pytest.raises(ExternalServiceError):
        Mailer(api_key="key").send(["a@b.fr"], "s", "<p></p>")
