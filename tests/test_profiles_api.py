from conftest import ADMIN_ID, CUSTOMER_ID, NEWCOMER_ID, auth


def test_missing_user_header_is_unauthorized(client):
    res = client.get("/api/v1/profiles/me")
    assert res.status_code == 401
    body = res.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert "timestamp" in body


def test_malformed_user_header(client):
    res = client.get("/api/v1/profiles/me", headers=auth("42"))
    assert res.status_code == 400


def test_create_farmer_profile_links_an_empty_listing(client, clerk):
    clerk.add_user(NEWCOMER_ID, email="new@example.fr", first_name="Lou")

    res = client.post(
        "/api/v1/profiles",
        json={"userId": NEWCOMER_ID, "role": "farmer"},
        headers=auth(NEWCOMER_ID),
    )
    assert res.status_code == 201
    data = res.get_json()["data"]
    assert data["listing_id"]

    me = client.get("/api/v1/profiles/me", headers=auth(NEWCOMER_ID)).get_json()["data"]
    assert me["role"] == "farmer"
    assert me["email"] == "new@example.fr"
    assert me["first_name"] == "Lou"
    assert me["farm_id"] == data["listing_id"]

    listings = client.get("/api/v1/profiles/me/listings", headers=auth(NEWCOMER_ID)).get_json()["data"]
    assert listings["count"] == 1
    assert listings["listings"][0]["active"] is False


def test_create_profile_rules(client, clerk, customer):
    clerk.add_user(NEWCOMER_ID, email="new@example.fr")

    # someone else's profile
    res = client.post("/api/v1/profiles", json={"userId": NEWCOMER_ID, "role": "user"}, headers=auth(CUSTOMER_ID))
    assert res.status_code == 403

    # self-promotion to admin
    res = client.post("/api/v1/profiles", json={"userId": NEWCOMER_ID, "role": "admin"}, headers=auth(NEWCOMER_ID))
    assert res.status_code == 403

    # duplicate
    res = client.post("/api/v1/profiles", json={"userId": CUSTOMER_ID, "role": "user"}, headers=auth(CUSTOMER_ID))
    assert res.status_code == 409

    # unknown role
    res = client.post("/api/v1/profiles", json={"userId": NEWCOMER_ID, "role": "owner"}, headers=auth(NEWCOMER_ID))
    assert res.status_code == 400
    assert res.get_json()["error"]["details"]["field_errors"][0]["field"] == "role"


def test_create_profile_needs_a_clerk_email(client, clerk):
    clerk.add_user(NEWCOMER_ID, email=None)
    res = client.post("/api/v1/profiles", json={"userId": NEWCOMER_ID, "role": "user"}, headers=auth(NEWCOMER_ID))
    assert res.status_code == 400


def test_sync_profile_from_clerk(client, clerk):
    clerk.add_user(NEWCOMER_ID, email="sync@example.fr", role="farmer", last_name="Dupont")

    res = client.post("/api/v1/profiles/me/sync", json={"createListing": True}, headers=auth(NEWCOMER_ID))
    assert res.status_code == 200
    profile = res.get_json()["data"]
    assert profile["role"] == "farmer"
    assert profile["last_name"] == "Dupont"
    assert profile["farm_id"] is not None

    # invalid Clerk role falls back to user; farm link is kept
    clerk.users[NEWCOMER_ID]["public_metadata"]["role"] = "owner"
    again = client.post("/api/v1/profiles/me/sync", headers=auth(NEWCOMER_ID)).get_json()["data"]
    assert again["role"] == "user"
    assert again["farm_id"] == profile["farm_id"]


def test_update_my_profile_normalises_phone(client, customer):
    res = client.patch("/api/v1/profiles/me", json={"phone": "06 12 34 56 78"}, headers=auth(customer))
    assert res.status_code == 200
    assert res.get_json()["data"]["phone"] == "+33612345678"

    res = client.patch("/api/v1/profiles/me", json={"phone": "12"}, headers=auth(customer))
    assert res.status_code == 400


def test_check_user_role(client, customer, admin):
    res = client.get(f"/api/v1/users/{customer}/role", headers=auth(customer))
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["role"] == "user"
    assert data["has_role"] is True
    assert data["is_valid_role"] is True

    assert client.get(f"/api/v1/users/{admin}/role", headers=auth(customer)).status_code == 403
    assert client.get(f"/api/v1/users/{customer}/role", headers=auth(admin)).status_code == 200


def test_check_role_fallbacks(client, clerk, admin):
    clerk.add_user(NEWCOMER_ID)
    data = client.get(f"/api/v1/users/{NEWCOMER_ID}/role", headers=auth(admin)).get_json()["data"]
    assert data["email"] == "unknown"
    assert data["role"] == "undefined"
    assert data["has_role"] is False


def test_user_can_become_farmer(client, clerk, customer, caplog):
    caplog.set_level("INFO", logger="farmtofork.audit")
    res = client.post(
        "/api/v1/users/role",
        json={"userId": customer, "role": "Farmer", "reason": "Ouverture de la ferme"},
        headers=auth(customer),
    )
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["previous_role"] == "user"
    assert data["role"] == "farmer"
    assert data["changed"] is True

    metadata = clerk.users[customer]["public_metadata"]
    assert metadata["role"] == "farmer"
    assert metadata["roleUpdatedBy"] == customer
    assert metadata["roleChangeReason"] == "Ouverture de la ferme"

    me = client.get("/api/v1/profiles/me", headers=auth(customer)).get_json()["data"]
    assert me["role"] == "farmer"
    assert "action=role_change" in caplog.text


def test_role_change_refusals(client, customer, admin):
    res = client.post("/api/v1/users/role", json={"userId": customer, "role": "admin"}, headers=auth(customer))
    assert res.status_code == 403
    assert res.get_json()["error"]["message"] == "You cannot promote yourself to administrator"

    res = client.post("/api/v1/users/role", json={"userId": admin, "role": "user"}, headers=auth(customer))
    assert res.status_code == 403

    res = client.post("/api/v1/users/role", json={"userId": "user_short", "role": "user"}, headers=auth(admin))
    assert res.status_code == 400

    res = client.post(
        "/api/v1/users/role",
        json={"userId": customer, "role": "farmer", "reason": "x" * 501},
        headers=auth(admin),
    )
    assert res.status_code == 400


def test_setting_the_same_role_is_a_no_op(client, clerk, customer, admin):
    res = client.post("/api/v1/users/role", json={"userId": customer, "role": "user"}, headers=auth(admin))
    assert res.status_code == 200
    assert res.get_json()["data"]["changed"] is False
    assert not any(call[0] == "PATCH" for call in clerk.calls)


def test_list_users_is_admin_only(client, customer, admin):
    assert client.get("/api/v1/users", headers=auth(customer)).status_code == 403

    res = client.get("/api/v1/users?limit=1&offset=0", headers=auth(admin))
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert len(data["profiles"]) == 1
    assert data["pagination"] == {"total": 2, "page": 0, "limit": 1, "has_more": True}

    admins = client.get("/api/v1/users?role=admin", headers=auth(ADMIN_ID)).get_json()["data"]
    assert [p["user_id"] for p in admins["profiles"]] == [ADMIN_ID]

    res = client.get("/api/v1/users?role=owner", headers=auth(admin))
    assert res.status_code == 400
    assert res.get_json()["error"]["details"]["field_errors"][0]["field"] == "role"


def test_success_envelope_carries_request_id(client, customer):
    res = client.get("/api/v1/profiles/me", headers=auth(customer))
    body = res.get_json()
    assert body["success"] is True
    assert body["request_id"] == res.headers["X-Request-Id"]


def test_farmer_keeping_their_role_is_a_no_op(client, clerk, farmer):
    res = client.post("/api/v1/users/role", json={"userId": farmer, "role": "farmer"}, headers=auth(farmer))
    assert res.status_code == 200
    body = res.get_json()
    assert body["message"] == "Role unchanged"
    assert body["data"]["changed"] is False
    assert body["data"]["previous_role"] == "farmer"
    assert not any(call[0] == "PATCH" for call in clerk.calls)


def test_missing_clerk_role_counts_as_user(client, clerk):
    clerk.add_user(NEWCOMER_ID, email="new@example.fr")
    res = client.post("/api/v1/users/role", json={"userId": NEWCOMER_ID, "role": "user"}, headers=auth(NEWCOMER_ID))
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["changed"] is False
    assert data["previous_role"] == "user"
    assert clerk.users[NEWCOMER_ID]["public_metadata"] == {}
