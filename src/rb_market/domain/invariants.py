"""Market invariant verification after each mutating operation."""

import logging

from src.rb_market.domain.models import Market

logger = logging.getLogger(__name__)


def collect_violations(market: Market) -> list[str]:
    """Check per-market invariants. Returns list of violation strings.

    INV-1: total_supply == sum of bin quantities
    INV-2: 0 <= q[bin] <= total_supply for every bin
    INV-3: collateral_balance >= 0
    """
    violations: list[str] = []
    bin_sum = sum(market.bins.values())
    if market.total_supply != bin_sum:
        violations.append(
            f"INV-1 violated: market={market.id} total_supply={market.total_supply} "
            f"!= sum(bins)={bin_sum}"
        )
    for bin_index, qty in market.bins.items():
        if not 0 <= qty <= market.total_supply:
            violations.append(
                f"INV-2 violated: market={market.id} bin={bin_index} q={qty} "
                f"outside [0, {market.total_supply}]"
            )
    if market.collateral_balance < 0:
        violations.append(
            f"INV-3 violated: market={market.id} collateral_balance="
            f"{market.collateral_balance} < 0"
        )
    return violations


def verify_market_invariants(market: Market) -> None:
    """Raise AssertionError if any invariant is violated."""
    violations = collect_violations(market)
    for msg in violations:
        logger.error(msg)
    assert not violations, "; ".join(violations)
    logger.debug(
        "Invariants OK: market=%s, T=%d, collateral=%d",
        market.id, market.total_supply, market.collateral_balance,
    )
