from conftest import OTHER_FARMER_ID, auth

FULL_LISTING = {
    "name": "Ferme des Saules",
    "email": "Contact@Saules.fr",
    "description": "Volailles élevées en plein air et œufs frais.",
    "phone_number": "06 12 34 56 78",
    "website": "saules.fr",
    "product_type": ["Œufs", "Viande"],
    "production_method": ["Agriculture durable"],
    "purchase_mode": ["Vente directe à la ferme"],
    "certifications": ["Label Rouge"],
    "images": ["https://img.example.fr/saules/1.jpg"],
}


def test_public_list_hides_drafts(client, make_listing):
    make_listing(name="Publiée")
    make_listing(name="Brouillon", active=False)

    data = client.get("/api/v1/listings").get_json()["data"]
    assert data["count"] == 1
    assert data["listings"][0]["name"] == "Publiée"
    assert "pagination" not in data


def test_include_inactive_is_admin_only(client, make_listing, customer, admin):
    make_listing()
    make_listing(active=False)

    assert client.get("/api/v1/listings?include_inactive=true").status_code == 403
    assert client.get("/api/v1/listings?include_inactive=true", headers=auth(customer)).status_code == 403

    data = client.get("/api/v1/listings?include_inactive=true", headers=auth(admin)).get_json()["data"]
    assert data["count"] == 2


def test_offset_pagination(client, make_listing):
    first, second, third = (make_listing(name=f"Ferme {i}") for i in range(3))

    data = client.get("/api/v1/listings?limit=2&offset=0&sort_by=id&sort_order=asc").get_json()["data"]
    assert [item["id"] for item in data["listings"]] == [first, second]
    assert data["pagination"] == {"total": 3, "page": 0, "limit": 2, "has_more": True}

    data = client.get("/api/v1/listings?limit=2&offset=2&sort_by=id&sort_order=asc").get_json()["data"]
    assert [item["id"] for item in data["listings"]] == [third]
    assert data["pagination"]["page"] == 1
    assert data["pagination"]["has_more"] is False

    # offset without a limit pages by the default size and reports no pagination
    data = client.get("/api/v1/listings?offset=1&sort_by=id&sort_order=asc").get_json()["data"]
    assert [item["id"] for item in data["listings"]] == [second, third]
    assert "pagination" not in data


def test_list_parameter_validation(client):
    assert client.get("/api/v1/listings?limit=0").status_code == 400
    assert client.get("/api/v1/listings?limit=101").status_code == 400
    assert client.get("/api/v1/listings?offset=-1").status_code == 400
    assert client.get("/api/v1/listings?sort_by=name").status_code == 400
    assert client.get("/api/v1/listings?sort_order=up").status_code == 400


def test_explore_filters_bounds_and_share_url(client, make_listing):
    inside = make_listing(
        name="Vergers",
        product_type=["Fruits"],
        images=["https://img.example.fr/v/1.png", "https://img.example.fr/v/2.png"],
    )
    make_listing(name="Élevage", product_type=["Viande"])
    make_listing(name="Paris", product_type=["Fruits"], lat=48.85, lng=2.35)
    make_listing(name="Brouillon", product_type=["Fruits"], active=False)

    res = client.get(
        "/api/v1/listings/explore?product_type=Fruits&bounds=45.5,4.6,46.0,5.1&lat=45.75&lng=4.85&zoom=9"
    )
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert [item["id"] for item in data["listings"]] == [inside]
    assert data["listings"][0]["image_url"] == "https://img.example.fr/v/1.png"
    assert data["active_filter_count"] == 1
    assert data["filters"]["product_type"] == ["Fruits"]
    assert data["bounds"] == {"ne": {"lat": 46.0, "lng": 5.1}, "sw": {"lat": 45.5, "lng": 4.6}}
    assert data["explore_url"] == "/explore?lat=45.75&lng=4.85&zoom=9&product_type=Fruits"


def test_explore_without_filters(client, make_listing):
    make_listing()
    make_listing(lat=None, lng=None)
    data = client.get("/api/v1/listings/explore").get_json()["data"]
    assert data["count"] == 2
    assert data["active_filter_count"] == 0
    assert data["bounds"] is None
    assert data["explore_url"] == "/explore"


def test_explore_rejects_bad_bounds(client):
    assert client.get("/api/v1/listings/explore?bounds=1,2,3").status_code == 400
    assert client.get("/api/v1/listings/explore?sw_lat=46&sw_lng=4&ne_lat=45&ne_lng=5").status_code == 400
    assert client.get("/api/v1/listings/explore?lat=95&lng=4").status_code == 400


def test_draft_listing_is_private(client, make_listing, farmer, customer, admin):
    listing_id = make_listing(user_id=farmer, active=False)

    assert client.get(f"/api/v1/listings/{listing_id}").status_code == 404
    assert client.get(f"/api/v1/listings/{listing_id}", headers=auth(customer)).status_code == 404
    assert client.get(f"/api/v1/listings/{listing_id}", headers=auth(farmer)).status_code == 200
    assert client.get(f"/api/v1/listings/{listing_id}", headers=auth(admin)).status_code == 200


def test_listing_detail_shows_published_products(client, make_listing, make_product, farmer):
    listing_id = make_listing(user_id=farmer)
    make_product(listing_id, name="Carottes")
    make_product(listing_id, name="Secret", is_published=False)

    public = client.get(f"/api/v1/listings/{listing_id}").get_json()["data"]
    assert [p["name"] for p in public["products"]] == ["Carottes"]
    assert public["review_count"] == 0
    assert public["is_favorite"] is False

    owner = client.get(f"/api/v1/listings/{listing_id}", headers=auth(farmer)).get_json()["data"]
    assert sorted(p["name"] for p in owner["products"]) == ["Carottes", "Secret"]


def test_only_farmers_create_listings(client, customer):
    res = client.post("/api/v1/listings", json={"name": "Ma ferme", "email": "a@b.fr"}, headers=auth(customer))
    assert res.status_code == 403


def test_create_draft_listing(client, farmer):
    res = client.post(
        "/api/v1/listings",
        json={"name": " Ferme ", "email": "Hello@Ferme.FR", "phone_number": "0612345678", "website": "ferme.fr"},
        headers=auth(farmer),
    )
    assert res.status_code == 201
    listing = res.get_json()["data"]
    assert listing["active"] is False
    assert listing["published_at"] is None
    assert listing["name"] == "Ferme"
    assert listing["email"] == "hello@ferme.fr"
    assert listing["phone_number"] == "+33612345678"
    assert listing["website"] == "https://ferme.fr"

    me = client.get("/api/v1/profiles/me", headers=auth(farmer)).get_json()["data"]
    assert me["farm_id"] == listing["id"]


def test_draft_still_needs_name_and_email(client, farmer):
    res = client.post("/api/v1/listings", json={"description": "Juste un texte"}, headers=auth(farmer))
    assert res.status_code == 400
    fields = {e["field"] for e in res.get_json()["error"]["details"]["field_errors"]}
    assert {"name", "email"} <= fields


def test_publish_requires_the_full_form(client, farmer):
    res = client.post(
        "/api/v1/listings",
        json={"name": "Ferme", "email": "a@b.fr", "publish": True},
        headers=auth(farmer),
    )
    assert res.status_code == 400
    fields = {e["field"] for e in res.get_json()["error"]["details"]["field_errors"]}
    assert {"description", "product_type", "production_method", "purchase_mode"} <= fields


def test_publish_listing(client, farmer):
    res = client.post("/api/v1/listings", json={**FULL_LISTING, "publish": True}, headers=auth(farmer))
    assert res.status_code == 201
    listing = res.get_json()["data"]
    assert listing["active"] is True
    assert listing["published_at"] is not None
    assert [image["url"] for image in listing["images"]] == FULL_LISTING["images"]


def test_listing_form_validation(client, farmer):
    cases = [
        {"product_type": ["Céréales"]},
        {"certifications": ["Label AB", "Label Rouge", "AOC/AOP", "IGP", "Demeter", "Demeter"]},
        {"images": ["https://img.example.fr/a.jpg"] * 2},
        {"images": [f"https://img.example.fr/{i}.jpg" for i in range(4)]},
        {"images": ["https://img.example.fr/doc.pdf"]},
        {"phone_number": "12"},
        {"description": "x" * 1001},
        {"name": "A"},
    ]
    for overrides in cases:
        res = client.post("/api/v1/listings", json={**FULL_LISTING, **overrides}, headers=auth(farmer))
        assert res.status_code == 400, overrides


def test_update_listing_keeps_publication(client, make_listing, farmer):
    listing_id = make_listing(user_id=farmer, images=["https://img.example.fr/old.jpg"])

    res = client.patch(
        f"/api/v1/listings/{listing_id}",
        json={"description": "Nouvelle description de la ferme", "images": ["https://img.example.fr/new.jpg"]},
        headers=auth(farmer),
    )
    assert res.status_code == 200
    listing = res.get_json()["data"]
    assert listing["active"] is True
    assert listing["description"] == "Nouvelle description de la ferme"
    assert [image["url"] for image in listing["images"]] == ["https://img.example.fr/new.jpg"]
    assert listing["modified_at"] is not None


def test_publishing_a_draft_sets_published_at(client, make_listing, farmer):
    listing_id = make_listing(user_id=farmer, active=False)

    draft = client.patch(f"/api/v1/listings/{listing_id}", json={"name": "Ferme B"}, headers=auth(farmer))
    assert draft.get_json()["data"]["active"] is False

    res = client.patch(f"/api/v1/listings/{listing_id}", json={**FULL_LISTING, "publish": True}, headers=auth(farmer))
    assert res.status_code == 200
    listing = res.get_json()["data"]
    assert listing["active"] is True
    assert listing["published_at"] is not None


def test_only_owner_or_admin_edits(client, make_listing, make_profile, farmer, admin):
    make_profile(OTHER_FARMER_ID, "farmer")
    listing_id = make_listing(user_id=farmer)

    res = client.patch(f"/api/v1/listings/{listing_id}", json={"name": "Volée"}, headers=auth(OTHER_FARMER_ID))
    assert res.status_code == 403
    assert client.delete(f"/api/v1/listings/{listing_id}", headers=auth(OTHER_FARMER_ID)).status_code == 403

    res = client.patch(f"/api/v1/listings/{listing_id}", json={"name": "Corrigée"}, headers=auth(admin))
    assert res.status_code == 200


def test_delete_listing_unlinks_profile(client, make_listing, make_profile):
    listing_id = make_listing(user_id=OTHER_FARMER_ID)
    make_profile(OTHER_FARMER_ID, "farmer", farm_id=listing_id)

    assert client.delete(f"/api/v1/listings/{listing_id}", headers=auth(OTHER_FARMER_ID)).status_code == 200
    assert client.get(f"/api/v1/listings/{listing_id}").status_code == 404

    me = client.get("/api/v1/profiles/me", headers=auth(OTHER_FARMER_ID)).get_json()["data"]
    assert me["farm_id"] is None


def test_listing_images(client, make_listing, farmer):
    listing_id = make_listing(user_id=farmer)
    url = f"/api/v1/listings/{listing_id}/images"

    assert client.post(url, json={"url": "https://img.example.fr/a.txt"}, headers=auth(farmer)).status_code == 400

    ids = []
    for i in range(3):
        res = client.post(url, json={"url": f"https://img.example.fr/{i}.jpg"}, headers=auth(farmer))
        assert res.status_code == 201
        ids.append(res.get_json()["data"]["id"])

    res = client.post(url, json={"url": "https://img.example.fr/4.jpg"}, headers=auth(farmer))
    assert res.status_code == 400

    assert client.delete(f"{url}/{ids[0]}", headers=auth(farmer)).status_code == 200
    assert client.delete(f"{url}/{ids[0]}", headers=auth(farmer)).status_code == 404

    listing = client.get(f"/api/v1/listings/{listing_id}").get_json()["data"]
    assert len(listing["images"]) == 2


def test_unknown_listing(client):
    res = client.get("/api/v1/listings/999")
    assert res.status_code == 404
    assert res.get_json()["error"]["code"] == "NOT_FOUND"
