"""
Seed script -- populates the database with demo farms for development.

Run with:
    python -m farmtofork.seed

Farms are matched on their owner's Clerk id, so running the script twice
does not duplicate them. Tables are created if they do not exist yet.
"""

import logging

from farmtofork.db import create_all, init_engine, session_scope
from farmtofork.models import Listing, ListingImage, Product, Profile
from farmtofork.repositories import ProfileRepository
from farmtofork.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

DEMO_FARMS = [
    {
        "owner": {"user_id": "user_seedfarmer0000000000000001", "email": "ferme.collines@example.fr",
                  "first_name": "Claire", "last_name": "Martin"},
        "listing": {
            "name": "Ferme des Collines",
            "farm_name": "Ferme des Collines",
            "address": "12 chemin des Vignes, 69390 Vourles",
            "lat": 45.6579,
            "lng": 4.7739,
            "description": "Maraîchage biologique et vergers au sud de Lyon.",
            "phone_number": "+33478000001",
            "product_type": ["Fruits", "Légumes"],
            "production_method": ["Agriculture biologique"],
            "purchase_mode": ["Vente directe à la ferme", "Marché local"],
            "certifications": ["Label AB"],
            "availability": ["Saisonnière"],
            "additional_services": ["Visite de la ferme"],
        },
        "images": ["https://images.example.fr/collines/vergers.jpg"],
        "products": [
            {"name": "Pommes Golden", "category": "Fruits", "unit": "kg", "price_cents": 320,
             "quantity": 150, "labels": ["Bio"]},
            {"name": "Panier de légumes", "category": "Légumes", "unit": "panier", "price_cents": 1800,
             "quantity": 30, "labels": ["Bio", "Saison"]},
        ],
    },
    {
        "owner": {"user_id": "user_seedfarmer0000000000000002", "email": "chevrerie.plateau@example.fr",
                  "first_name": "Julien", "last_name": "Bernard"},
        "listing": {
            "name": "Chèvrerie du Plateau",
            "farm_name": "Chèvrerie du Plateau",
            "address": "Lieu-dit Le Plateau, 42140 Chazelles-sur-Lyon",
            "lat": 45.6378,
            "lng": 4.3870,
            "description": "Fromages de chèvre fermiers affinés sur place.",
            "phone_number": "+33477000002",
            "product_type": ["Produits laitiers"],
            "production_method": ["Agriculture durable"],
            "purchase_mode": ["Vente directe à la ferme", "Click & Collect"],
            "certifications": ["AOC/AOP"],
            "availability": ["Toute l'année"],
            "additional_services": ["Dégustation"],
        },
        "images": ["https://images.example.fr/plateau/chevres.webp"],
        "products": [
            {"name": "Crottin frais", "category": "Produits laitiers", "unit": "pièce", "price_cents": 250,
             "quantity": 80, "labels": ["Lait cru"]},
            {"name": "Tomme de chèvre", "category": "Produits laitiers", "unit": "kg", "price_cents": 2400,
             "quantity": 0, "stock_status": "out_of_stock"},
        ],
    },
]


def seed() -> None:
    now = DateUtils.now_utc()
    with session_scope() as session:
        profiles = ProfileRepository(session)
        for farm in DEMO_FARMS:
            owner = farm["owner"]
            if profiles.find_by_user_id(owner["user_id"]) is not None:
                logger.info(f"  [=] {farm['listing']['name']} already seeded")
                continue

            listing = Listing(
                user_id=owner["user_id"],
                email=owner["email"],
                active=True,
                published_at=now,
                modified_at=now,
                **farm["listing"],
            )
            listing.images = [ListingImage(url=url) for url in farm["images"]]
            listing.products = [
                Product(is_published=True, active=True, **product) for product in farm["products"]
            ]
            session.add(listing)
            session.flush()

            profiles.add(Profile(role="farmer", farm_id=listing.id, **owner))
            logger.info(f"  [+] {listing.name} (listing {listing.id}, {len(farm['products'])} products)")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    logger.info("Seeding database...")
    init_engine()
    create_all()
    seed()
    logger.info("Seed completed successfully.")
