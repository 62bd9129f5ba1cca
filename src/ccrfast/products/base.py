"""Common base of product term sheets.

Products are immutable, validated descriptions of contract terms. They carry
no market data; pricers combine them with curves and surfaces.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ccrfast.core.time import parse_tenor
from ccrfast.exceptions import DateTimeError


class Product(BaseModel):
    """Base class for all products.

    Attributes:
        description: Free text label used in logs and errors
        currency: ISO currency code of the product's cash flows
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    description: str = Field("", description="Label used in logs and errors")
    currency: str = Field("USD", description="ISO currency code")

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate currency code is 3 uppercase letters."""
        if len(v) != 3 or not v.isupper():
            raise ValueError(f"Currency code must be 3 uppercase letters, got '{v}'")
        return v

    @property
    def maturity_date(self) -> date:
        """Last date on which the product can have value."""
        raise NotImplementedError(f"{type(self).__name__} does not define a maturity")


def check_tenor(v: str) -> str:
    """Pydantic helper: reject malformed tenor strings."""
    try:
        parse_tenor(v)
    except DateTimeError as e:
        raise ValueError(str(e)) from e
    return v.upper()
