from conftest import NEWCOMER_ID, auth

from farmtofork.clients.mailer import (
    SUBJECT_NEW_FARMER_REQUEST,
    SUBJECT_REQUEST_APPROVED,
    SUBJECT_REQUEST_REJECTED,
)
from farmtofork.core.exceptions import ExternalServiceError

APPLICATION = {
    "email": "Claire@Example.FR",
    "farm_name": "Ferme des Collines",
    "location": "Vourles (69)",
    "phone": "06 12 34 56 78",
    "website": "collines.fr",
    "description": "Maraîchage biologique et vergers familiaux.",
    "products": "Pommes, poires, légumes de saison",
    "first_name": "Claire",
}


def apply(client, user_id=NEWCOMER_ID, **overrides):
    return client.post("/api/v1/farmer-requests", json={**APPLICATION, **overrides}, headers=auth(user_id))


def test_apply_notifies_admins(client, mailer):
    res = apply(client)
    assert res.status_code == 201
    data = res.get_json()["data"]
    assert data["request_id"]
    assert data["admin_notified"] is True

    assert len(mailer.sent) == 1
    message = mailer.sent[0]
    assert message["to"] == ["admin@farmtofork.test"]
    assert message["subject"].startswith(SUBJECT_NEW_FARMER_REQUEST)
    assert "Claire" in message["html"]


def test_one_pending_request_per_user(client):
    assert apply(client).status_code == 201
    res = apply(client)
    assert res.status_code == 409
    assert res.get_json()["error"]["code"] == "CONFLICT"


def test_farmers_cannot_apply(client, farmer):
    assert apply(client, user_id=farmer).status_code == 409


def test_application_validation(client):
    assert apply(client, description="Trop cour").status_code == 400
    assert apply(client, farm_name="F").status_code == 400
    assert apply(client, email="not-an-email").status_code == 400
    assert apply(client, location="   ").status_code == 400

    missing_phone = {k: v for k, v in APPLICATION.items() if k != "phone"}
    res = client.post("/api/v1/farmer-requests", json=missing_phone, headers=auth(NEWCOMER_ID))
    assert res.status_code == 400

    res = apply(client, userId="user_someoneelse0000000000000001")
    assert res.status_code == 400


def test_mail_failure_does_not_block_the_application(client, mailer, monkeypatch):
    def down(*args, **kwargs):
        raise ExternalServiceError("resend", internal_message="timeout")

    monkeypatch.setattr(mailer, "send", down)
    res = apply(client)
    assert res.status_code == 201
    assert res.get_json()["data"]["admin_notified"] is False


def test_list_requests_is_admin_only(client, customer, admin):
    apply(client)

    assert client.get("/api/v1/farmer-requests", headers=auth(customer)).status_code == 403

    data = client.get("/api/v1/farmer-requests?status=pending", headers=auth(admin)).get_json()["data"]
    assert data["count"] == 1
    request = data["requests"][0]
    assert request["email"] == "claire@example.fr"
    assert request["website"] == "https://collines.fr"
    assert request["first_name"] == "Claire"

    assert client.get("/api/v1/farmer-requests?status=approved", headers=auth(admin)).get_json()["data"]["count"] == 0
    assert client.get("/api/v1/farmer-requests?status=maybe", headers=auth(admin)).status_code == 400


def test_approve_request(client, clerk, mailer, admin):
    clerk.add_user(NEWCOMER_ID, email="claire@example.fr")
    request_id = apply(client).get_json()["data"]["request_id"]

    res = client.post(
        f"/api/v1/farmer-requests/{request_id}/validate",
        json={"status": "approved"},
        headers=auth(admin),
    )
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["status"] == "approved"
    assert data["role"] == "farmer"
    assert data["listing_id"]
    assert data["email_sent"] is True

    assert clerk.users[NEWCOMER_ID]["public_metadata"]["role"] == "farmer"
    assert clerk.users[NEWCOMER_ID]["public_metadata"]["roleUpdatedBy"] == admin

    me = client.get("/api/v1/profiles/me", headers=auth(NEWCOMER_ID)).get_json()["data"]
    assert me["role"] == "farmer"
    assert me["farm_id"] == data["listing_id"]

    listing = client.get(f"/api/v1/listings/{data['listing_id']}", headers=auth(NEWCOMER_ID)).get_json()["data"]
    assert listing["active"] is False
    assert listing["name"] == "Ferme des Collines"
    assert listing["phone_number"] == "+33612345678"
    assert listing["address"] == "Vourles (69)"

    assert mailer.sent[-1]["to"] == ["claire@example.fr"]
    assert mailer.sent[-1]["subject"] == SUBJECT_REQUEST_APPROVED
    assert "Bonjour <strong>Claire</strong>" in mailer.sent[-1]["html"]

    # reviewed requests are final
    again = client.post(
        f"/api/v1/farmer-requests/{request_id}/validate",
        json={"status": "rejected"},
        headers=auth(admin),
    )
    assert again.status_code == 400


def test_reject_request(client, clerk, mailer, admin):
    clerk.add_user(NEWCOMER_ID, email="claire@example.fr")
    request_id = apply(client).get_json()["data"]["request_id"]

    res = client.post(
        f"/api/v1/farmer-requests/{request_id}/validate",
        json={"status": "REJECTED", "reason": "Zone non couverte"},
        headers=auth(admin),
    )
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["role"] == "user"
    assert data["listing_id"] is None

    stored = client.get("/api/v1/farmer-requests?status=rejected", headers=auth(admin)).get_json()["data"]
    assert stored["requests"][0]["rejection_reason"] == "Zone non couverte"
    assert stored["requests"][0]["reviewed_by"] == admin

    assert mailer.sent[-1]["subject"] == SUBJECT_REQUEST_REJECTED
    assert "Zone non couverte" in mailer.sent[-1]["html"]


def test_validate_rules(client, clerk, customer, admin):
    clerk.add_user(NEWCOMER_ID, email="claire@example.fr")
    request_id = apply(client).get_json()["data"]["request_id"]
    url = f"/api/v1/farmer-requests/{request_id}/validate"

    assert client.post(url, json={"status": "approved"}, headers=auth(customer)).status_code == 403
    assert client.post(url, json={"status": "pending"}, headers=auth(admin)).status_code == 400
    assert client.post(url, json={"status": "approved", "role": "owner"}, headers=auth(admin)).status_code == 400
    assert client.post(
        url, json={"status": "approved", "userId": "user_someoneelse0000000000000001"}, headers=auth(admin)
    ).status_code == 400
    assert client.post(
        "/api/v1/farmer-requests/999/validate", json={"status": "approved"}, headers=auth(admin)
    ).status_code == 404
