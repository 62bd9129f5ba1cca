"""Engine configuration.

The engine reads a flat set of named boolean options. They are collected in
an immutable :class:`EngineConfig` that is handed explicitly to
``build_fast_pricer``; nothing in the engine consults global settings.

Example:
    >>> config = EngineConfig.from_options({"DiscountAccrued": True})
    >>> config.discount_accrued
    True
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ccrfast.exceptions import ConfigurationError

ENV_PREFIX = "CCRFAST_"

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off", "")


def parse_bool(value: Any) -> bool:
    """Interpret a configuration value as a boolean.

    Args:
        value: bool, int 0/1 or one of the usual string spellings

    Returns:
        The boolean value

    Raises:
        ConfigurationError: If the value has no boolean reading
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigurationError("Cannot interpret value as boolean", context={"value": value})


class EngineConfig(BaseModel):
    """Recognized options of the fast revaluation engine.

    Attributes:
        discount_accrued: Discount the accrued part of the current period from
            its pay date instead of taking it undiscounted
        include_settle_payments: Default for counting payments that fall
            exactly on the valuation date (overridable per call)
        fix_convexity_volatility: Freeze the convexity volatility of
            in-arrears coupons at build time
        forward_volatility_term_structure: Build forward volatility curves for
            options instead of using the flat implied volatility
        payment_schedule_from_settle: Generate generic payment schedules from
            the pricer's settle date rather than its as-of date
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    discount_accrued: bool = Field(default=False, alias="DiscountAccrued")
    include_settle_payments: bool = Field(default=False, alias="IncludeSettlePayments")
    fix_convexity_volatility: bool = Field(default=True, alias="FixConvexityVolatility")
    forward_volatility_term_structure: bool = Field(
        default=False, alias="ForwardVolatilityTermStructure"
    )
    payment_schedule_from_settle: bool = Field(default=False, alias="PaymentScheduleFromSettle")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return parse_bool(value)

    @classmethod
    def recognized_options(cls) -> list[str]:
        """Return option names accepted by :meth:`from_options` (aliases first)."""
        aliases = [field.alias for field in cls.model_fields.values() if field.alias]
        return aliases + list(cls.model_fields)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> EngineConfig:
        """Build a configuration from a mapping of option names to values.

        Args:
            options: Field names or their CamelCase aliases

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If an option is unknown or has an invalid value
        """
        recognized = cls.recognized_options()
        unknown = [name for name in options if name not in recognized]
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration option(s): {', '.join(unknown)}",
                context={"recognized": recognized},
            )
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration value", context={"errors": e.errors()}
            ) from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a configuration from ``CCRFAST_<OPTION>`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Configuration with every unset option at its default
        """
        env = os.environ if environ is None else environ
        options = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in env:
                options[name] = env[key]
        return cls.from_options(options)

    def with_options(self, **overrides: Any) -> EngineConfig:
        """Return a copy with some options replaced."""
        return type(self).from_options({**self.model_dump(), **overrides})


DEFAULT_CONFIG = EngineConfig()
