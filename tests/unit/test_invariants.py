"""Unit tests for the per-market accounting audit."""

from src.bm_common.enums import Direction
from src.bm_market.domain.models import Market
from src.bm_settlement.domain.invariants import audit_market
from src.bm_settlement.domain.models import Position


def _market(up: int, down: int, resolved: bool = False, end_price: int = 0) -> Market:
    return Market(
        id=1, start_price=100, end_price=end_price, total_up_stake=up,
        total_down_stake=down, start_block=0, end_block=10, resolved=resolved,
    )


def _pos(who: str, direction: Direction, stake: int, claimed: bool = False) -> Position:
    return Position(market_id=1, participant=who, direction=direction, stake=stake,
                    claimed=claimed)


class TestAuditMarket:
    def test_open_market_consistent(self) -> None:
        audit = audit_market(
            _market(5, 3), [_pos("a", Direction.UP, 5), _pos("b", Direction.DOWN, 3)],
            allow_drift=False,
        )
        assert audit.violations == []
        assert audit.outstanding == 8
        assert audit.drift == 0

    def test_live_stake_above_totals(self) -> None:
        audit = audit_market(_market(1, 0), [_pos("a", Direction.UP, 5)], allow_drift=True)
        assert any("INV-A" in v for v in audit.violations)

    def test_drift_allowed(self) -> None:
        audit = audit_market(_market(7, 0), [_pos("a", Direction.UP, 5)], allow_drift=True)
        assert audit.violations == []
        assert audit.drift == 2

    def test_drift_forbidden(self) -> None:
        audit = audit_market(_market(7, 0), [_pos("a", Direction.UP, 5)], allow_drift=False)
        assert any("drift=2" in v for v in audit.violations)

    def test_resolved_splits_distributed_and_outstanding(self) -> None:
        positions = [
            _pos("a", Direction.UP, 2, claimed=True),
            _pos("b", Direction.UP, 2),
            _pos("c", Direction.DOWN, 4),
        ]
        audit = audit_market(_market(4, 4, resolved=True, end_price=101), positions,
                             allow_drift=False)
        assert audit.violations == []
        assert audit.distributed == 4
        assert audit.outstanding == 4

    def test_claimed_loser(self) -> None:
        positions = [_pos("a", Direction.UP, 4), _pos("c", Direction.DOWN, 4, claimed=True)]
        audit = audit_market(_market(4, 4, resolved=True, end_price=101), positions,
                             allow_drift=False)
        assert any("INV-B" in v for v in audit.violations)

    def test_claim_before_resolution(self) -> None:
        audit = audit_market(_market(4, 0), [_pos("a", Direction.UP, 4, claimed=True)],
                             allow_drift=False)
        assert any("INV-B" in v for v in audit.violations)

    def test_resolved_without_winners_owes_nothing(self) -> None:
        audit = audit_market(_market(0, 4, resolved=True, end_price=101),
                             [_pos("c", Direction.DOWN, 4)], allow_drift=False)
        assert audit.outstanding == 0
        assert audit.violations == []
