"""Per-market accounting audit.

INV-A: directional totals >= live position stakes on that side
       (equal unless a repeat stake overwrote an earlier position: "drift")
INV-B: claimed positions only on resolved markets, and only on the winning side
INV-C: gross distributed to claimed winners <= total pool of the market
"""

import logging
from dataclasses import dataclass, field

from src.bm_common.enums import Direction
from src.bm_market.domain.models import Market
from src.bm_settlement.domain.models import Position
from src.bm_settlement.domain.payout import compute_payout, winning_direction

logger = logging.getLogger(__name__)


@dataclass
class MarketAudit:
    market_id: int
    total_stake: int
    live_stake: int
    drift: int             # stake folded into totals but no longer held by any position
    distributed: int       # gross already paid out (net + fee)
    outstanding: int       # what the pool still owes this market
    violations: list[str] = field(default_factory=list)


def audit_market(market: Market, positions: list[Position], allow_drift: bool) -> MarketAudit:
    live_up = sum(p.stake for p in positions if p.direction is Direction.UP)
    live_down = sum(p.stake for p in positions if p.direction is Direction.DOWN)
    violations: list[str] = []

    if live_up > market.total_up_stake or live_down > market.total_down_stake:
        violations.append(
            f"INV-A violated: market={market.id} live(up={live_up}, down={live_down}) "
            f"exceeds totals(up={market.total_up_stake}, down={market.total_down_stake})"
        )
    drift = market.total_stake - live_up - live_down
    if drift > 0 and not allow_drift:
        violations.append(f"INV-A violated: market={market.id} drift={drift}")

    distributed = 0
    outstanding = market.total_stake
    if market.resolved:
        winner = winning_direction(market)
        outstanding = 0
        # fee rate does not affect gross, so 0 is fine here
        for p in positions:
            if p.direction is not winner:
                if p.claimed:
                    violations.append(
                        f"INV-B violated: market={market.id} losing position "
                        f"{p.participant} marked claimed"
                    )
                continue
            gross = compute_payout(market, p.stake, 0).gross
            if p.claimed:
                distributed += gross
            else:
                outstanding += gross
    else:
        for p in positions:
            if p.claimed:
                violations.append(
                    f"INV-B violated: market={market.id} {p.participant} claimed before resolution"
                )

    if distributed > market.total_stake:
        violations.append(
            f"INV-C violated: market={market.id} distributed={distributed} "
            f"> pool={market.total_stake}"
        )

    for v in violations:
        logger.error(v)
    return MarketAudit(
        market_id=market.id,
        total_stake=market.total_stake,
        live_stake=live_up + live_down,
        drift=drift,
        distributed=distributed,
        outstanding=outstanding,
        violations=violations,
    )
