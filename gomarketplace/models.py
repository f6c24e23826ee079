"""
Pydantic Models - Catalog product descriptor.

The catalog API delivers products as JSON; the cart only accepts them
after they pass through this schema.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Product(BaseModel):
    """Product as listed in the catalog (no quantity)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(min_length=1)
    title: str
    image_url: str = Field(alias="imageUrl")
    price: Decimal = Field(ge=0, allow_inf_nan=False)

    @field_validator("price", mode="before")
    @classmethod
    def _float_price_via_str(cls, value):
        # 10.1 must become Decimal("10.1"), not its binary expansion
        if isinstance(value, float):
            return str(value)
        return value
