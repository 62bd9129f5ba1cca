"""Tests for engine configuration."""

import pytest
from pydantic import ValidationError

from ccrfast.config import DEFAULT_CONFIG, EngineConfig, parse_bool
from ccrfast.exceptions import ConfigurationError


class TestParseBool:
    """Test boolean option parsing."""

    @pytest.mark.parametrize("value", [True, 1, "true", "Yes", " ON ", "1"])
    def test_true_values(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, "false", "no", "off", ""])
    def test_false_values(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["maybe", 2, None, 0.5])
    def test_invalid_values(self, value):
        with pytest.raises(ConfigurationError, match="boolean"):
            parse_bool(value)


class TestEngineConfig:
    """Test configuration construction."""

    def test_defaults(self):
        """Convexity volatilities are frozen by default; everything else is off."""
        assert DEFAULT_CONFIG.discount_accrued is False
        assert DEFAULT_CONFIG.include_settle_payments is False
        assert DEFAULT_CONFIG.fix_convexity_volatility is True
        assert DEFAULT_CONFIG.forward_volatility_term_structure is False
        assert DEFAULT_CONFIG.payment_schedule_from_settle is False

    def test_from_options_aliases(self):
        """CamelCase option names are accepted."""
        config = EngineConfig.from_options(
            {"DiscountAccrued": "true", "ForwardVolatilityTermStructure": 1}
        )
        assert config.discount_accrued is True
        assert config.forward_volatility_term_structure is True

    def test_from_options_field_names(self):
        """Field names are accepted too."""
        config = EngineConfig.from_options({"include_settle_payments": True})
        assert config.include_settle_payments is True

    def test_unknown_option(self):
        """Unknown options are reported with the recognized names."""
        with pytest.raises(ConfigurationError, match="DiscountAcrued") as exc_info:
            EngineConfig.from_options({"DiscountAcrued": True})
        assert "DiscountAccrued" in exc_info.value.context["recognized"]

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_options({"DiscountAccrued": "sometimes"})

    def test_frozen(self):
        """Configurations are immutable."""
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.discount_accrued = True

    def test_from_env(self):
        """Options are read from prefixed environment variables."""
        environ = {
            "CCRFAST_DISCOUNT_ACCRUED": "yes",
            "CCRFAST_FIX_CONVEXITY_VOLATILITY": "0",
            "PATH": "/usr/bin",
        }
        config = EngineConfig.from_env(environ)
        assert config.discount_accrued is True
        assert config.fix_convexity_volatility is False
        assert config.include_settle_payments is False

    def test_from_env_invalid(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env({"CCRFAST_DISCOUNT_ACCRUED": "perhaps"})

    def test_with_options(self):
        """Overrides return a new configuration."""
        config = DEFAULT_CONFIG.with_options(discount_accrued=True)
        assert config.discount_accrued is True
        assert DEFAULT_CONFIG.discount_accrued is False

    def test_recognized_options(self):
        names = EngineConfig.recognized_options()
        assert "IncludeSettlePayments" in names
        assert "include_settle_payments" in names
