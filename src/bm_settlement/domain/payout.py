"""Winner determination and proportional payout arithmetic.

Integer floor division throughout, applied in a fixed order:
    gross = stake * total_stake // winning_stake
    fee   = gross * fee_percentage // 100
    net   = gross - fee
"""

from src.bm_common.enums import Direction
from src.bm_common.errors import PayoutDivisionError
from src.bm_market.domain.models import Market
from src.bm_settlement.domain.models import Payout


def winning_direction(market: Market) -> Direction:
    """UP only on a strict rise; an unchanged price settles DOWN."""
    if market.end_price > market.start_price:
        return Direction.UP
    return Direction.DOWN


def compute_payout(market: Market, stake: int, fee_percentage: int) -> Payout:
    winning_stake = market.stake_on(winning_direction(market))
    if winning_stake == 0:
        raise PayoutDivisionError(market.id)
    gross = stake * market.total_stake // winning_stake
    fee = gross * fee_percentage // 100
    return Payout(gross=gross, fee=fee, net=gross - fee)
