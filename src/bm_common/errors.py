"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Caller identity / roles
  2xxx: Funds
  3xxx: Market
  4xxx: Prediction
  5xxx: Claim
  9xxx: System / parameters

Some codes are shared by more than one condition: 4001 covers a malformed
direction, a sub-minimum stake and a losing claim; 3003 covers "too early"
and "too late". Each condition is its own subclass with a ``reason`` tag.
"""


class AppError(Exception):
    """Base application error."""

    reason: str = "GENERIC"

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Caller identity / roles ---

class UnauthorizedError(AppError):
    def __init__(self, role: str, caller: str) -> None:
        super().__init__(1001, f"Caller {caller} is not the {role}", 403)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid or expired token", 401)


# --- 2xxx: Funds ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required}, available {available}",
            422,
        )
        self.required = required
        self.available = available


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    reason = "MARKET_NOT_FOUND"

    def __init__(self, market_id: int, message: str | None = None) -> None:
        super().__init__(3001, message or f"Market not found: {market_id}", 404)
        self.market_id = market_id


class PositionNotFoundError(MarketNotFoundError):
    reason = "POSITION_NOT_FOUND"

    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(
            market_id, f"No prediction by {participant} in market {market_id}"
        )
        self.participant = participant


class MarketInactiveError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"Market is not resolved yet: {market_id}", 422)


class MarketExpiredError(AppError):
    """Time-window violation. Subclasses say which side of the window."""

    def __init__(self, market_id: int, block: int, detail: str) -> None:
        super().__init__(
            3003, f"Market {market_id} outside its window at block {block}: {detail}", 422
        )
        self.market_id = market_id
        self.block = block


class MarketNotStartedError(MarketExpiredError):
    reason = "NOT_STARTED"

    def __init__(self, market_id: int, block: int, start_block: int) -> None:
        super().__init__(market_id, block, f"opens at block {start_block}")


class MarketEndedError(MarketExpiredError):
    reason = "ENDED"

    def __init__(self, market_id: int, block: int, end_block: int) -> None:
        super().__init__(market_id, block, f"closed at block {end_block}")


class MarketNotEndedError(MarketExpiredError):
    reason = "NOT_ENDED"

    def __init__(self, market_id: int, block: int, end_block: int) -> None:
        super().__init__(market_id, block, f"cannot resolve before block {end_block}")


class MarketAlreadyResolvedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market already resolved: {market_id}", 409)


# --- 4xxx: Prediction ---

class InvalidPredictionTypeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid prediction: {detail}", 422)


class UnknownDirectionError(InvalidPredictionTypeError):
    reason = "UNKNOWN_DIRECTION"

    def __init__(self, direction: object) -> None:
        super().__init__(f"unknown direction {direction!r}")


class StakeBelowMinimumError(InvalidPredictionTypeError):
    reason = "BELOW_MINIMUM_STAKE"

    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(f"stake {amount} is below the minimum {minimum}")


class NotWinningSideError(InvalidPredictionTypeError):
    reason = "NOT_WINNING_SIDE"

    def __init__(self, market_id: int, direction: str) -> None:
        super().__init__(f"{direction} did not win market {market_id}")


# --- 5xxx: Claim ---

class RewardsAlreadyClaimedError(AppError):
    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(
            5001, f"Rewards already claimed by {participant} in market {market_id}", 409
        )


# --- 9xxx: System / parameters ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidParametersError(AppError):
    reason = "INVALID_PARAMETERS"

    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Invalid parameters: {detail}", 400)


class RepeatStakeError(InvalidParametersError):
    reason = "REPEAT_STAKE"

    def __init__(self, market_id: int, participant: str) -> None:
        super().__init__(f"{participant} already holds a prediction in market {market_id}")


class PayoutDivisionError(AppError, ZeroDivisionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(9004, f"Winning stake is zero in market {market_id}", 500)
