# Vocabularies offered by the listing form. Stored values are these labels.

PRODUCT_TYPES = (
    "Fruits",
    "Légumes",
    "Produits laitiers",
    "Viande",
    "Œufs",
    "Produits transformés",
)

PRODUCTION_METHODS = (
    "Agriculture conventionnelle",
    "Agriculture biologique",
    "Agriculture durable",
    "Agriculture raisonnée",
)

PURCHASE_MODES = (
    "Vente directe à la ferme",
    "Marché local",
    "Livraison à domicile",
    "Point de vente collectif",
    "Click & Collect",
)

CERTIFICATIONS = (
    "Label AB",
    "Label Rouge",
    "AOC/AOP",
    "IGP",
    "Demeter",
)

AVAILABILITY_OPTIONS = (
    "Saisonnière",
    "Toute l'année",
    "Pré-commande",
    "Sur abonnement",
    "Événements spéciaux",
)

ADDITIONAL_SERVICES = (
    "Visite de la ferme",
    "Ateliers de cuisine",
    "Dégustation",
    "Activités pour enfants",
    "Événements pour professionnels",
)

MAX_LISTING_IMAGES = 3

STOCK_STATUSES = ("in_stock", "low_stock", "out_of_stock")

ORDER_STATUSES = ("pending", "confirmed", "ready", "delivered", "cancelled")
PAYMENT_STATUSES = ("unpaid", "paid", "refunded")
DELIVERY_MODES = ("pickup", "delivery")

# Allowed order status transitions; delivered and cancelled are final.
ORDER_TRANSITIONS = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("ready", "cancelled"),
    "ready": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}

FARMER_REQUEST_STATUSES = ("pending", "approved", "rejected")
