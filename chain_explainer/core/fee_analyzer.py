"""Fee cost analysis: native cost, USD cost and cost tier."""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Union

from chain_explainer.core.errors import InvalidArgumentError
from chain_explainer.models.canonical import CostTier, GasCostAnalysis
from chain_explainer.models.networks import (
    DEFAULT_FEE_TIERS,
    OPTIMIZATION_HINT,
    FeeTiers,
    NetworkDescriptor,
)


USD_QUANTUM = Decimal("0.0001")


def analyze_fee(fee_minor_units: int,
                decimals: int,
                price_usd: Union[float, Decimal],
                tiers: FeeTiers = DEFAULT_FEE_TIERS) -> GasCostAnalysis:
    """Analyze a fee paid in minor units.

    Args:
        fee_minor_units: Fee in the chain's smallest unit (micro-STX, satoshi)
        decimals: Number of decimals of the native unit
        price_usd: USD price of one native unit
        tiers: Thresholds in native units; cost <= low is LOW, cost >= high is HIGH

    Returns:
        GasCostAnalysis with cost rendered to exactly ``decimals`` digits and
        USD to four digits; ``optimization`` is set only for HIGH.
    """
    if isinstance(fee_minor_units, bool) or not isinstance(fee_minor_units, int):
        raise InvalidArgumentError(f"fee_minor_units must be an int, got {fee_minor_units!r}")
    if fee_minor_units < 0:
        raise InvalidArgumentError(f"fee_minor_units must be non-negative, got {fee_minor_units}")
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidArgumentError(f"decimals must be a non-negative int, got {decimals!r}")

    with localcontext() as ctx:
        ctx.prec = 80
        cost = Decimal(fee_minor_units).scaleb(-decimals)
        cost_native = cost.quantize(Decimal(1).scaleb(-decimals))
        cost_usd = (cost * Decimal(str(price_usd))).quantize(USD_QUANTUM, rounding=ROUND_HALF_UP)

    low = Decimal(str(tiers.low))
    high = Decimal(str(tiers.high))
    if cost <= low:
        tier = CostTier.LOW
    elif cost >= high:
        tier = CostTier.HIGH
    else:
        tier = CostTier.AVERAGE

    return GasCostAnalysis(
        cost_in_native=format(cost_native, "f"),
        cost_in_usd=format(cost_usd, "f"),
        tier=tier,
        optimization=OPTIMIZATION_HINT if tier == CostTier.HIGH else None,
    )


def analyze_fee_for(fee_minor_units: int, descriptor: NetworkDescriptor) -> GasCostAnalysis:
    """Analyze a fee using a network's decimals, price and tiers."""
    return analyze_fee(
        fee_minor_units,
        descriptor.decimals,
        descriptor.price_usd,
        descriptor.fee_tiers,
    )
