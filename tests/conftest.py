import copy
from typing import Any, Dict, List

import pytest

from farmtofork import create_app
from farmtofork.clients.clerk import ClerkClient
from farmtofork.clients.mailer import Mailer
from farmtofork.core.exceptions import NotFoundError
from farmtofork.db import session_scope
from farmtofork.models import Listing, ListingImage, Product, Profile

ADMIN_ID = "user_admin0000000000000000000001"
FARMER_ID = "user_farmer000000000000000000001"
OTHER_FARMER_ID = "user_farmer000000000000000000002"
CUSTOMER_ID = "user_customer0000000000000000001"
NEWCOMER_ID = "user_newcomer0000000000000000001"


class FakeClerk(ClerkClient):
    """Clerk client answering from an in-memory user table."""

    def __init__(self):
        super().__init__(secret_key="sk_test", api_url="https://clerk.test")
        self.users: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []

    def add_user(self, user_id, email=None, role=None, first_name=None, last_name=None):
        addresses = []
        if email:
            addresses.append({"id": f"idn_{user_id}", "email_address": email})
        self.users[user_id] = {
            "id": user_id,
            "primary_email_address_id": f"idn_{user_id}" if email else None,
            "email_addresses": addresses,
            "first_name": first_name,
            "last_name": last_name,
            "public_metadata": {"role": role} if role else {},
        }

    def _request(self, method, path, **kwargs):
        self.calls.append((method, path, kwargs.get("json")))
        parts = path.strip("/").split("/")
        user = self.users.get(parts[1]) if len(parts) > 1 else None
        if user is None:
            raise NotFoundError("Clerk user")
        if method == "PATCH" and parts[-1] == "metadata":
            user["public_metadata"].update(kwargs["json"]["public_metadata"])
        return copy.deepcopy(user)


class FakeMailer(Mailer):
    """Mailer that records messages instead of calling Resend."""

    def __init__(self):
        super().__init__(api_key="re_test", admin_emails=["admin@farmtofork.test"])
        self.sent: List[Dict[str, Any]] = []

    def send(self, to, subject, html):
        self.sent.append({"to": list(to), "subject": subject, "html": html})
        return True


@pytest.fixture()
def clerk():
    return FakeClerk()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def app(clerk, mailer):
    flask_app = create_app({
        "TESTING": True,
        "DATABASE_URL": "sqlite://",
        "CREATE_TABLES": True,
    })
    container = flask_app.extensions["container"]
    container.register_singleton(ClerkClient, clerk)
    container.register_singleton(Mailer, mailer)
    yield flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


def auth(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture()
def make_profile(app, clerk):
    def _make(user_id, role="user", email=None, farm_id=None):
        email = email or f"{user_id[5:17]}@example.fr"
        clerk.add_user(user_id, email=email, role=role)
        with session_scope() as session:
            profile = Profile(user_id=user_id, email=email, role=role, farm_id=farm_id)
            session.add(profile)
            session.flush()
            return profile.id
    return _make


@pytest.fixture()
def make_listing(app):
    def _make(user_id=FARMER_ID, active=True, images=(), **fields):
        values = {
            "name": "Ferme du Val",
            "email": "val@example.fr",
            "description": "Légumes de saison cultivés en plein champ.",
            "product_type": ["Légumes"],
            "production_method": ["Agriculture biologique"],
            "purchase_mode": ["Marché local"],
            "lat": 45.75,
            "lng": 4.85,
        }
        values.update(fields)
        with session_scope() as session:
            listing = Listing(user_id=user_id, active=active, **values)
            listing.images = [ListingImage(url=url) for url in images]
            session.add(listing)
            session.flush()
            return listing.id
    return _make


@pytest.fixture()
def make_product(app):
    def _make(listing_id, **fields):
        values = {
            "name": "Carottes",
            "category": "Légumes",
            "unit": "kg",
            "price_cents": 250,
            "quantity": 100,
            "is_published": True,
            "active": True,
        }
        values.update(fields)
        with session_scope() as session:
            product = Product(listing_id=listing_id, **values)
            session.add(product)
            session.flush()
            return product.id
    return _make


@pytest.fixture()
def admin(make_profile):
    make_profile(ADMIN_ID, "admin", email="admin@farmtofork.test")
    return ADMIN_ID


@pytest.fixture()
def farmer(make_profile):
    make_profile(FARMER_ID, "farmer", email="farmer@example.fr")
    return FARMER_ID


@pytest.fixture()
def customer(make_profile):
    make_profile(CUSTOMER_ID, "user", email="customer@example.fr")
    return CUSTOMER_ID
