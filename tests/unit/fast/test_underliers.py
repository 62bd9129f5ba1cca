"""Tests for option underliers."""

from datetime import date

import jax.numpy as jnp
import pytest

from ccrfast.core.types import DistributionType
from ccrfast.fast import (
    UNDERLIER_BUILDERS,
    CreditSpreadUnderlier,
    ForwardAssetPrice,
    ForwardBondPrice,
    ForwardFxRate,
    ForwardVolatility,
    SwapRateUnderlier,
    build_fast_pricer,
    register_underlier,
)
from ccrfast.fast.underliers import underlier_builder
from ccrfast.market import GridVolatilitySurface
from ccrfast.pricers import (
    BondOptionPricer,
    CdsOptionPricer,
    StockOptionPricer,
    SwaptionPricer,
)
from ccrfast.pricers.options import option_price
from ccrfast.products import CDS, Bond, BondOption, CdsOption, StockOption, Swaption, SwapLeg

AS_OF = date(2024, 1, 15)
EXPIRY = date(2025, 1, 15)
SWAP_END = date(2030, 1, 15)


@pytest.fixture
def swaption_pricer(discount_curve) -> SwaptionPricer:
    swaption = Swaption(
        expiry=EXPIRY,
        strike=0.03,
        fixed_leg=SwapLeg(effective=EXPIRY, maturity=SWAP_END, coupon=0.03, tenor="6M"),
        floating_leg=SwapLeg(effective=EXPIRY, maturity=SWAP_END, floating=True, tenor="3M"),
    )
    return SwaptionPricer(swaption, AS_OF, AS_OF, discount_curve, 0.2)


@pytest.fixture
def cds_option_pricer(discount_curve, survival_curve) -> CdsOptionPricer:
    cds = CDS(effective=EXPIRY, maturity=date(2029, 12, 20), premium=0.01)
    option = CdsOption(expiry=EXPIRY, strike=0.012, cds=cds, knockout=False)
    return CdsOptionPricer(option, AS_OF, AS_OF, discount_curve, survival_curve, 0.4)


class TestSwapRate:
    """Test the forward swap rate underlier."""

    def test_matches_full_pricer(self, swaption_pricer):
        underlier = SwapRateUnderlier(swaption_pricer)
        level, annuity = underlier.value(AS_OF)
        forward, numeraire = swaption_pricer.forward_and_numeraire()
        assert level == pytest.approx(forward, rel=1e-12)
        assert annuity == pytest.approx(numeraire, rel=1e-12)

    def test_dates_and_maturity(self, swaption_pricer):
        underlier = SwapRateUnderlier(swaption_pricer)
        assert underlier.maturity == SWAP_END
        dates = underlier.dates()
        assert list(dates) == sorted(set(dates))
        assert date(2025, 4, 15) in dates
        assert dates[-1] == SWAP_END

    def test_no_annuity_after_last_payment(self, swaption_pricer):
        underlier = SwapRateUnderlier(swaption_pricer)
        assert underlier.value(date(2030, 2, 1)) == (0.0, 0.0)


class TestForwardFxRate:
    """Test the forward FX rate underlier."""

    def test_forward_to_delivery(self, fx_option_pricer, fx_curve, discount_curve):
        underlier = ForwardFxRate(fx_option_pricer)
        delivery = date(2024, 7, 17)
        assert underlier.maturity == delivery
        level, numeraire = underlier.value(date(2024, 3, 1))
        assert level == pytest.approx(fx_curve.interpolate(delivery))
        expected = discount_curve.discount_factor(delivery, date(2024, 3, 1))
        assert numeraire == pytest.approx(expected)

    def test_spot_after_delivery(self, fx_option_pricer):
        underlier = ForwardFxRate(fx_option_pricer)
        assert underlier.value(date(2024, 7, 17)) == (1.10, 1.0)
        assert underlier.spot(AS_OF) == 1.10


class TestForwardAssetPrice:
    """Test the forward asset price underlier."""

    def test_forward_and_spot(self, stock_option_pricer, price_curve):
        underlier = ForwardAssetPrice(stock_option_pricer)
        level, _ = underlier.value(AS_OF)
        assert level == pytest.approx(price_curve.interpolate(EXPIRY))
        assert underlier.spot(AS_OF) == pytest.approx(100.0)
        assert underlier.value(date(2025, 2, 1))[1] == 1.0


class TestCreditSpread:
    """Test the forward CDS spread underlier."""

    def test_matches_full_pricer(self, cds_option_pricer):
        underlier = CreditSpreadUnderlier(cds_option_pricer)
        level, annuity = underlier.value(AS_OF)
        forward, numeraire = cds_option_pricer.forward_and_numeraire()
        assert level == pytest.approx(forward, rel=1e-12)
        assert annuity == pytest.approx(numeraire, rel=1e-12)
        assert underlier.front_end_protection
        assert underlier.maturity == date(2029, 12, 20)
        assert underlier.dates() == underlier.cashflow.pay_dates


class TestForwardBondPrice:
    """Test the forward bond price underlier."""

    @pytest.fixture
    def bond_option_pricer(self, discount_curve) -> BondOptionPricer:
        bond = Bond(effective=AS_OF, maturity=date(2029, 1, 15), coupon=0.04)
        option = BondOption(expiry=EXPIRY, strike=1.0, bond=bond)
        return BondOptionPricer(option, AS_OF, AS_OF, discount_curve, 0.05)

    def test_matches_full_pricer(self, bond_option_pricer):
        underlier = ForwardBondPrice(bond_option_pricer)
        level, numeraire = underlier.value(AS_OF)
        forward, discounting = bond_option_pricer.forward_and_numeraire()
        assert level == pytest.approx(forward, rel=1e-12)
        assert numeraire == pytest.approx(discounting, rel=1e-12)
        assert numeraire == pytest.approx(
            bond_option_pricer.discount_curve.discount_factor(EXPIRY, AS_OF), rel=1e-12
        )

    def test_delivered_bond_after_expiry(self, bond_option_pricer, discount_curve):
        underlier = ForwardBondPrice(bond_option_pricer)
        dt = date(2026, 3, 2)
        level, numeraire = underlier.value(dt)
        remaining = sum(
            event.domestic_amount() * discount_curve.interpolate(event.pay_date)
            for event in bond_option_pricer.bond_events
            if event.pay_date > dt
        )
        face = bond_option_pricer.product.bond.notional
        assert numeraire == 1.0
        assert level == pytest.approx(remaining / discount_curve.interpolate(dt) / face)

    def test_dates_and_maturity(self, bond_option_pricer):
        underlier = ForwardBondPrice(bond_option_pricer)
        assert underlier.maturity == date(2029, 1, 15)
        assert underlier.dates() == tuple(e.pay_date for e in bond_option_pricer.bond_events)
        assert all(dt >= EXPIRY for dt in underlier.dates())
        assert underlier_builder(bond_option_pricer) is ForwardBondPrice


class TestVolatility:
    """Test the forward volatility held by an underlier."""

    def test_flat_until_built(self, stock_option_pricer):
        underlier = ForwardAssetPrice(stock_option_pricer)
        assert underlier.forward_volatility is None
        assert underlier.volatility(date(2024, 6, 3)) == pytest.approx(0.2)
        assert underlier.forward_volatility.curve is None

    def test_term_structure(self, discount_curve, price_curve):
        surface = GridVolatilitySurface(
            as_of=AS_OF,
            expiry_times=jnp.array([0.1, 1.0]),
            strikes=jnp.array([50.0, 150.0]),
            volatilities=jnp.array([[0.2, 0.2], [0.4, 0.4]]),
        )
        option = StockOption(expiry=EXPIRY, strike=100.0)
        pricer = StockOptionPricer(option, AS_OF, AS_OF, discount_curve, price_curve, surface)
        underlier = ForwardAssetPrice(pricer)
        built = underlier.build_volatility(EXPIRY, term_structure=True)
        expected = ForwardVolatility.build(AS_OF, EXPIRY, pricer.volatility_at, enabled=True)
        assert underlier.forward_volatility is built
        assert underlier.volatility(AS_OF) == pytest.approx(pricer.volatility_at(EXPIRY))
        later = date(2024, 9, 2)
        assert underlier.volatility(later) == pytest.approx(expected.at(later), rel=1e-12)
        assert underlier.volatility(later) > underlier.volatility(AS_OF)

    def test_option_fast_pricer_prices_with_underlier_volatility(self, stock_option_pricer):
        fast = build_fast_pricer(stock_option_pricer)
        fast.underlier.forward_volatility = ForwardVolatility(0.3, AS_OF)
        settle = date(2024, 6, 3)
        level, numeraire = fast.underlier.value(settle)
        option = stock_option_pricer.product
        expected = numeraire * option_price(
            DistributionType.LOGNORMAL,
            option.option_type,
            stock_option_pricer.time_between(settle, EXPIRY),
            level,
            option.strike,
            0.3,
        )
        assert fast.unexercised_value(settle, level, numeraire) == pytest.approx(expected)


class TestRegistry:
    """Test underlier registration."""

    def test_builtin_builders(self, swaption_pricer, stock_option_pricer, cds_option_pricer):
        assert underlier_builder(swaption_pricer) is SwapRateUnderlier
        assert underlier_builder(stock_option_pricer) is ForwardAssetPrice
        assert underlier_builder(cds_option_pricer) is CreditSpreadUnderlier
        assert underlier_builder(object()) is None

    def test_register_underlier(self, swaption_pricer):
        class _ShiftedSwaptionPricer(SwaptionPricer):
            pass

        try:
            register_underlier(_ShiftedSwaptionPricer, ForwardFxRate)
            shifted = _ShiftedSwaptionPricer(
                swaption_pricer.product, AS_OF, AS_OF, swaption_pricer.discount_curve, 0.2
            )
            assert underlier_builder(shifted) is ForwardFxRate
        finally:
            UNDERLIER_BUILDERS.pop(_ShiftedSwaptionPricer, None)

    def test_register_invalid(self):
        with pytest.raises(TypeError, match="must be a class"):
            register_underlier("SwaptionPricer", SwapRateUnderlier)
        with pytest.raises(TypeError, match="must be callable"):
            register_underlier(SwaptionPricer, None)
