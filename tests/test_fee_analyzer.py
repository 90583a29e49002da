"""
Unit tests for fee cost analysis.

Tests tier thresholds, fixed-point rendering and argument validation.
"""

import pytest

from chain_explainer.core.errors import InvalidArgumentError
from chain_explainer.core.fee_analyzer import analyze_fee, analyze_fee_for
from chain_explainer.models.canonical import CostTier
from chain_explainer.models.networks import OPTIMIZATION_HINT, FeeTiers


class TestTiers:
    """Tests for low / average / high classification with default tiers."""

    def test_average(self):
        """Test 5000 micro-units at 6 decimals is average."""
        result = analyze_fee(5000, 6, 0.45)
        assert result.tier == CostTier.AVERAGE
        assert result.optimization is None

    def test_high_has_optimization(self):
        """Test 50000 micro-units is high and carries an optimization hint."""
        result = analyze_fee(50000, 6, 0.45)
        assert result.tier == CostTier.HIGH
        assert result.optimization == OPTIMIZATION_HINT

    def test_low_omits_optimization(self):
        """Test 500 micro-units is low and has no optimization field."""
        result = analyze_fee(500, 6, 0.45)
        assert result.tier == CostTier.LOW
        assert "optimization" not in result.to_dict()

    def test_boundaries_are_inclusive(self):
        """Test cost equal to a threshold falls into that tier."""
        assert analyze_fee(1000, 6, 0.45).tier == CostTier.LOW
        assert analyze_fee(1001, 6, 0.45).tier == CostTier.AVERAGE
        assert analyze_fee(9000, 6, 0.45).tier == CostTier.HIGH

    def test_custom_tiers(self):
        """Test tiers are configurable."""
        tiers = FeeTiers(low=0.0001, high=0.0009)
        assert analyze_fee(500, 6, 0.45, tiers).tier == CostTier.AVERAGE
        assert analyze_fee(900, 6, 0.45, tiers).tier == CostTier.HIGH

    def test_invalid_tiers(self):
        """Test tiers with high below low are rejected."""
        with pytest.raises(InvalidArgumentError):
            FeeTiers(low=0.5, high=0.1)


class TestRendering:
    """Tests for native and USD cost strings."""

    def test_native_has_exact_decimals(self):
        """Test native cost has exactly ``decimals`` fractional digits."""
        assert analyze_fee(5000, 6, 0.45).cost_in_native == "0.005000"
        assert analyze_fee(0, 6, 0.45).cost_in_native == "0.000000"
        assert analyze_fee(123456789, 8, 60000).cost_in_native == "1.23456789"

    def test_usd_four_digits_half_up(self):
        """Test USD cost is rounded half-up to four digits."""
        assert analyze_fee(5000, 6, 0.45).cost_in_usd == "0.0023"
        assert analyze_fee(50000, 6, 0.45).cost_in_usd == "0.0225"

    def test_no_scientific_notation(self):
        """Test tiny costs render in plain fixed-point form."""
        result = analyze_fee(1, 18, 1.0)
        assert result.cost_in_native == "0.000000000000000001"
        assert result.cost_in_usd == "0.0000"
        assert "E" not in result.cost_in_native

    def test_zero_decimals(self):
        """Test a zero-decimal unit renders as an integer."""
        assert analyze_fee(42, 0, 1.0).cost_in_native == "42"


class TestValidation:
    """Tests for argument validation."""

    @pytest.mark.parametrize("fee,decimals", [
        (-1, 6),
        (5000, -1),
        (1.5, 6),
        (True, 6),
        ("5000", 6),
    ])
    def test_invalid_arguments(self, fee, decimals):
        """Test negative or non-integer arguments raise."""
        with pytest.raises(InvalidArgumentError):
            analyze_fee(fee, decimals, 0.45)


class TestNetworkFees:
    """Tests for descriptor-driven analysis."""

    def test_bitcoin_descriptor(self, registry):
        """Test Bitcoin fees use 8 decimals, the BTC price and Bitcoin tiers."""
        result = analyze_fee_for(1000, registry.bitcoin)
        assert result.cost_in_native == "0.00001000"
        assert result.cost_in_usd == "0.6000"
        assert result.tier == CostTier.LOW

    def test_stacks_descriptor(self, registry):
        """Test Stacks fees use 6 decimals and the STX price."""
        result = analyze_fee_for(50000, registry.stacks)
        assert result.cost_in_native == "0.050000"
        assert result.tier == CostTier.HIGH
