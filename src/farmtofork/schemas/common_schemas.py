from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

from farmtofork.utils.formatting_utils import FormattingUtils


class ORMModel(BaseModel):
    """Base for response models built from SQLAlchemy rows"""
    model_config = ConfigDict(from_attributes=True)


class PaginationResponse(BaseModel):
    """Offset pagination metadata for list responses"""
    total: int = Field(ge=0, description="Number of matching rows")
    page: int = Field(ge=0, description="Zero-based page index (offset // limit)")
    limit: int = Field(ge=1, description="Page size")
    has_more: bool = Field(description="Whether rows exist past this page")

    @classmethod
    def build(cls, total: int, limit: int, offset: int) -> "PaginationResponse":
        return cls(
            total=total,
            page=offset // limit,
            limit=limit,
            has_more=offset + limit < total,
        )


class MoneyField(BaseModel):
    """Standardized money representation"""
    cents: int = Field(description="Amount in cents")
    currency: str = Field(default="EUR", description="Currency code")

    @field_validator('cents')
    @classmethod
    def validate_cents(cls, v: int) -> int:
        if v < 0:
            raise ValueError('Amount cannot be negative')
        return v

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if len(v) != 3:
            raise ValueError('Currency must be 3-character code')
        return v.upper()

    def to_display_string(self) -> str:
        return FormattingUtils.format_money(self.cents, self.currency)

    @model_serializer
    def serialize(self) -> dict:
        return {
            "cents": self.cents,
            "currency": self.currency,
            "formatted": self.to_display_string(),
        }


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
