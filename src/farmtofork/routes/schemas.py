from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    post_load,
    validate,
    validates,
    validates_schema,
)

from farmtofork.core.constants import (
    ADDITIONAL_SERVICES,
    AVAILABILITY_OPTIONS,
    CERTIFICATIONS,
    DELIVERY_MODES,
    FARMER_REQUEST_STATUSES,
    MAX_LISTING_IMAGES,
    ORDER_STATUSES,
    PRODUCT_TYPES,
    PRODUCTION_METHODS,
    PURCHASE_MODES,
    STOCK_STATUSES,
)
from farmtofork.utils.roles import VALID_ROLES, is_clerk_user_id, is_strict_clerk_user_id
from farmtofork.utils.validators import ValidationUtils


def _choices(options, max_items, min_items=0, **kwargs):
    return fields.List(
        fields.Str(validate=validate.OneOf(options)),
        validate=validate.Length(min=min_items, max=max_items),
        **kwargs,
    )


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


class _BodySchema(Schema):
    class Meta:
        unknown = EXCLUDE


# ---------------------------------------------------------------------- #
# Profiles & roles                                                         #
# ---------------------------------------------------------------------- #

class CreateProfileSchema(_BodySchema):
    user_id = fields.Str(required=True, data_key="userId")
    role = fields.Str(required=True, validate=validate.OneOf(VALID_ROLES))

    @validates("user_id")
    def validate_user_id(self, value, **kwargs):
        if not is_clerk_user_id(value):
            raise ValidationError("userId must be a Clerk user id")


class SyncProfileSchema(_BodySchema):
    create_listing = fields.Bool(load_default=False, data_key="createListing")


class UpdateProfileSchema(_BodySchema):
    first_name = fields.Str(allow_none=True, validate=validate.Length(max=100))
    last_name = fields.Str(allow_none=True, validate=validate.Length(max=100))
    phone = fields.Str(allow_none=True)
    avatar_url = fields.Str(allow_none=True)

    @validates("phone")
    def validate_phone(self, value, **kwargs):
        if value and ValidationUtils.to_e164_fr(value) is None:
            raise ValidationError("Invalid phone number (French format expected)")

    @validates("avatar_url")
    def validate_avatar(self, value, **kwargs):
        if value and not ValidationUtils.validate_url(value):
            raise ValidationError("Invalid URL")

    @post_load
    def normalize(self, data, **kwargs):
        if data.get("phone"):
            data["phone"] = ValidationUtils.to_e164_fr(data["phone"])
        for key in ("first_name", "last_name"):
            if key in data and data[key] is not None:
                data[key] = ValidationUtils.sanitize_text(data[key])
        return data


class UpdateRoleSchema(_BodySchema):
    user_id = fields.Str(required=True, data_key="userId")
    role = fields.Str(required=True)
    reason = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))

    @validates("user_id")
    def validate_user_id(self, value, **kwargs):
        if not is_strict_clerk_user_id(value.strip()):
            raise ValidationError("Invalid user id format")

    @validates("role")
    def validate_role(self, value, **kwargs):
        if _lower(value) not in VALID_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(VALID_ROLES)}")

    @post_load
    def normalize(self, data, **kwargs):
        data["user_id"] = data["user_id"].strip()
        data["role"] = _lower(data["role"])
        if data.get("reason") is not None:
            data["reason"] = data["reason"].strip() or None
        return data


# ---------------------------------------------------------------------- #
# Listings                                                                 #
# ---------------------------------------------------------------------- #

class ListingDraftSchema(_BodySchema):
    """Listing form saved as a draft: only what is filled in is checked."""

    name = fields.Str(required=True, validate=validate.Length(min=2, max=100))
    farm_name = fields.Str(allow_none=True, validate=validate.Length(max=100))
    address = fields.Str(allow_none=True, validate=validate.Length(max=300))
    lat = fields.Float(allow_none=True, validate=validate.Range(min=-90, max=90))
    lng = fields.Float(allow_none=True, validate=validate.Range(min=-180, max=180))
    description = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    email = fields.Email(required=True)
    phone_number = fields.Str(allow_none=True)
    website = fields.Str(allow_none=True)
    product_type = _choices(PRODUCT_TYPES, 6)
    production_method = _choices(PRODUCTION_METHODS, 4)
    purchase_mode = _choices(PURCHASE_MODES, 5)
    certifications = _choices(CERTIFICATIONS, 5)
    availability = _choices(AVAILABILITY_OPTIONS, 5)
    additional_services = _choices(ADDITIONAL_SERVICES, 5)
    # Product names picked in the form; products are managed through their own endpoints.
    products = fields.List(fields.Str(), validate=validate.Length(max=50))
    images = fields.List(fields.Str(), validate=validate.Length(max=MAX_LISTING_IMAGES))
    publish = fields.Bool(load_default=False)

    @validates("phone_number")
    def validate_phone(self, value, **kwargs):
        if value and ValidationUtils.to_e164_fr(value) is None:
            raise ValidationError("Invalid phone number (French format expected)")

    @validates("website")
    def validate_website(self, value, **kwargs):
        if value and value.strip() and ValidationUtils.normalize_url(value) is None:
            raise ValidationError("Invalid URL")

    @validates("images")
    def validate_images(self, value, **kwargs):
        bad = [url for url in value if not ValidationUtils.is_image_url(url)]
        if bad:
            raise ValidationError("Image URLs must end with .jpg, .png, .gif, .webp or .avif")
        if len(set(value)) != len(value):
            raise ValidationError("Images must be unique")

    @post_load
    def normalize(self, data, **kwargs):
        if "name" in data:
            data["name"] = data["name"].strip()
        if "email" in data:
            data["email"] = data["email"].strip().lower()
        if "phone_number" in data:
            data["phone_number"] = ValidationUtils.to_e164_fr(data["phone_number"]) or None
        if "website" in data:
            data["website"] = ValidationUtils.normalize_url(data["website"])
        if data.get("description") is not None:
            data["description"] = ValidationUtils.sanitize_text(data["description"])
        data.pop("products", None)
        return data


class ListingPublishSchema(ListingDraftSchema):
    """Full listing form; required to publish."""

    description = fields.Str(required=True, validate=validate.Length(min=10, max=1000))
    product_type = _choices(PRODUCT_TYPES, 6, min_items=1, required=True)
    production_method = _choices(PRODUCTION_METHODS, 4, min_items=1, required=True)
    purchase_mode = _choices(PURCHASE_MODES, 5, min_items=1, required=True)


class ListingImageSchema(_BodySchema):
    url = fields.Str(required=True)

    @validates("url")
    def validate_url(self, value, **kwargs):
        if not ValidationUtils.is_image_url(value):
            raise ValidationError("Image URLs must end with .jpg, .png, .gif, .webp or .avif")


class ReviewSchema(_BodySchema):
    rating = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=5))
    comment = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=1000))

    @post_load
    def normalize(self, data, **kwargs):
        if data.get("comment") is not None:
            data["comment"] = ValidationUtils.sanitize_text(data["comment"]) or None
        return data


# ---------------------------------------------------------------------- #
# Products                                                                 #
# ---------------------------------------------------------------------- #

class ProductSchema(_BodySchema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    category = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    type = fields.Str(allow_none=True, validate=validate.Length(max=100))
    labels = fields.List(fields.Str(validate=validate.Length(max=50)), validate=validate.Length(max=10))
    description = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    price_cents = fields.Int(required=True, strict=True, validate=validate.Range(min=0))
    unit = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    quantity = fields.Int(strict=True, load_default=0, validate=validate.Range(min=0))
    stock_status = fields.Str(load_default="in_stock", validate=validate.OneOf(STOCK_STATUSES))
    delivery_options = fields.Str(allow_none=True, validate=validate.Length(max=500))
    image_url = fields.Str(allow_none=True)
    is_published = fields.Bool(load_default=False)
    active = fields.Bool(load_default=True)

    @validates("image_url")
    def validate_image_url(self, value, **kwargs):
        if value and not ValidationUtils.validate_url(value):
            raise ValidationError("Invalid URL")


# ---------------------------------------------------------------------- #
# Farmer requests                                                          #
# ---------------------------------------------------------------------- #

class FarmerApplicationSchema(_BodySchema):
    user_id = fields.Str(load_default=None, allow_none=True, data_key="userId")
    email = fields.Email(required=True)
    farm_name = fields.Str(required=True, validate=validate.Length(min=2, max=200))
    location = fields.Str(required=True, validate=validate.Length(min=1, max=300))
    phone = fields.Str(required=True, validate=validate.Length(min=1, max=30))
    website = fields.Str(load_default=None, allow_none=True)
    description = fields.Str(required=True, validate=validate.Length(min=10, max=2000))
    products = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=1000))
    first_name = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=100))
    last_name = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=100))

    @post_load
    def normalize(self, data, **kwargs):
        for key in ("farm_name", "location", "phone", "description"):
            data[key] = ValidationUtils.sanitize_text(data[key])
        data["email"] = data["email"].strip().lower()
        if data.get("website"):
            data["website"] = ValidationUtils.normalize_url(data["website"])
        for key in ("first_name", "last_name"):
            if data.get(key) is not None:
                data[key] = ValidationUtils.sanitize_text(data[key]) or None
        return data

    @validates_schema
    def validate_required_text(self, data, **kwargs):
        blank = [
            key for key in ("farm_name", "location", "phone", "description")
            if key in data and not data[key].strip()
        ]
        if blank:
            raise ValidationError({key: ["Field may not be blank."] for key in blank})


class ValidateFarmerRequestSchema(_BodySchema):
    status = fields.Str(required=True)
    role = fields.Str(load_default=None, allow_none=True)
    reason = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))
    user_id = fields.Str(load_default=None, allow_none=True, data_key="userId")

    @validates("status")
    def validate_status(self, value, **kwargs):
        if _lower(value) not in ("approved", "rejected"):
            raise ValidationError("Status must be one of: approved, rejected")

    @validates("role")
    def validate_role(self, value, **kwargs):
        if value is not None and _lower(value) not in VALID_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(VALID_ROLES)}")

    @validates("user_id")
    def validate_user_id(self, value, **kwargs):
        if value is not None and not is_strict_clerk_user_id(value):
            raise ValidationError("Invalid user id format")

    @post_load
    def normalize(self, data, **kwargs):
        data["status"] = _lower(data["status"])
        if data.get("role") is not None:
            data["role"] = _lower(data["role"])
        if data.get("reason") is not None:
            data["reason"] = data["reason"].strip() or None
        return data


class FarmerRequestQuerySchema(_BodySchema):
    status = fields.Str(load_default=None, validate=validate.OneOf(FARMER_REQUEST_STATUSES))


# ---------------------------------------------------------------------- #
# Orders                                                                   #
# ---------------------------------------------------------------------- #

class DeliveryAddressSchema(_BodySchema):
    street = fields.Str(required=True, validate=validate.Length(min=1))
    city = fields.Str(required=True, validate=validate.Length(min=1))
    postal_code = fields.Str(required=True, validate=validate.Length(min=1), data_key="postalCode")
    country = fields.Str(required=True, validate=validate.Length(min=1))
    additional_info = fields.Str(load_default=None, allow_none=True, data_key="additionalInfo")


class OrderItemSchema(_BodySchema):
    product_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1), data_key="productId")
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=1000))


class CreateOrderSchema(_BodySchema):
    farm_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1), data_key="farmId")
    items = fields.List(
        fields.Nested(OrderItemSchema),
        required=True,
        validate=validate.Length(min=1, max=50),
    )
    delivery_mode = fields.Str(required=True, validate=validate.OneOf(DELIVERY_MODES), data_key="deliveryMode")
    delivery_day = fields.Str(required=True, validate=validate.Length(min=1, max=100), data_key="deliveryDay")
    delivery_address = fields.Nested(DeliveryAddressSchema, load_default=None, allow_none=True, data_key="deliveryAddress")
    customer_notes = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500), data_key="customerNotes")

    @validates_schema
    def validate_unique_products(self, data, **kwargs):
        ids = [item["product_id"] for item in data.get("items") or []]
        if len(ids) != len(set(ids)):
            raise ValidationError({"items": ["Each product may appear only once"]})


class UpdateOrderStatusSchema(_BodySchema):
    status = fields.Str(required=True, validate=validate.OneOf(ORDER_STATUSES))
    farmer_notes = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500), data_key="farmerNotes")
    cancelled_reason = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500), data_key="cancelledReason")
