"""Credit products: single-name CDS, CDS indices and synthetic CDO tranches."""

from __future__ import annotations

from datetime import date

from pydantic import Field, field_validator, model_validator

from ccrfast.core.types import (
    BusinessDayConvention,
    Calendar,
    CreditProductType,
    DayCountConvention,
)
from ccrfast.products.base import Product, check_tenor
from ccrfast.utilities.conventions import year_fraction
from ccrfast.utilities.schedules import generate_periods


class CreditProduct(Product):
    """Premium schedule shared by credit products."""

    effective: date
    maturity: date
    premium: float = Field(..., description="Running spread, decimal per annum")
    tenor: str = "3M"
    day_count: DayCountConvention = DayCountConvention.A360
    business_day_convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    calendar: Calendar = Calendar.NO_CALENDAR
    fee: float = Field(0.0, description="Upfront fee as a fraction of notional")
    fee_settle: date | None = Field(None, description="Payment date of the upfront fee")

    @field_validator("tenor")
    @classmethod
    def validate_tenor(cls, v: str) -> str:
        """Tenor must parse as N followed by D/W/M/Q/H/Y."""
        return check_tenor(v)

    @model_validator(mode="after")
    def validate_dates(self) -> CreditProduct:
        """Maturity must follow the effective date."""
        if self.maturity <= self.effective:
            raise ValueError(f"Maturity {self.maturity} must be after effective {self.effective}")
        return self

    @property
    def maturity_date(self) -> date:
        return self.maturity

    def premium_periods(self) -> tuple[tuple[date, date, date, float], ...]:
        """(start, end, pay_date, accrual) for every premium period."""
        return tuple(
            (p.start, p.end, p.pay_date, year_fraction(p.start, p.end, self.day_count))
            for p in generate_periods(
                self.effective,
                self.maturity,
                self.tenor,
                self.business_day_convention,
                self.calendar,
            )
        )


class CDS(CreditProduct):
    """Single-name credit default swap (or credit linked note when funded)."""

    cds_type: CreditProductType = CreditProductType.UNFUNDED


class CDX(CreditProduct):
    """Credit default swap index.

    Attributes:
        weights: Notional weight of each constituent; equal weights when omitted
        annex_date: Names defaulted on or before this date are no longer in the index
    """

    cdx_type: CreditProductType = CreditProductType.UNFUNDED
    weights: tuple[float, ...] | None = None
    annex_date: date | None = None

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: tuple[float, ...] | None) -> tuple[float, ...] | None:
        """Weights must be non-negative."""
        if v is not None and any(w < 0.0 for w in v):
            raise ValueError("Index weights must be non-negative")
        return v

    def name_weights(self, count: int) -> tuple[float, ...]:
        """Weights of ``count`` names (1/count each if none were given)."""
        if self.weights is None:
            return tuple(1.0 / count for _ in range(count))
        if len(self.weights) != count:
            raise ValueError(f"Index has {len(self.weights)} weights for {count} names")
        return self.weights

    def single_name(self) -> CDS:
        """The CDS on one constituent with the index terms."""
        return CDS(
            effective=self.effective,
            maturity=self.maturity,
            premium=self.premium,
            tenor=self.tenor,
            day_count=self.day_count,
            business_day_convention=self.business_day_convention,
            calendar=self.calendar,
            cds_type=self.cdx_type,
            currency=self.currency,
            description=self.description,
        )


class SyntheticCDO(CreditProduct):
    """Unfunded synthetic CDO tranche.

    Attributes:
        attachment: Lower loss bound as a fraction of the basket
        detachment: Upper loss bound as a fraction of the basket
    """

    attachment: float = Field(..., ge=0.0, le=1.0)
    detachment: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_tranche(self) -> SyntheticCDO:
        """Attachment must be below detachment."""
        if self.attachment >= self.detachment:
            raise ValueError(
                f"Attachment {self.attachment} must be below detachment {self.detachment}"
            )
        return self

    @property
    def width(self) -> float:
        return self.detachment - self.attachment

    def base_tranche(self, detachment: float) -> SyntheticCDO:
        """Equity tranche [0, detachment] with otherwise identical terms."""
        return self.model_copy(update={"attachment": 0.0, "detachment": detachment})
