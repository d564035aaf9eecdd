"""
Reward redemption state machine

    PENDING --approve--> APPROVED (terminal)
    PENDING --deny-----> DENIED   (terminal)
"""

REDEMPTION_STATUS_PENDING = "PENDING"
REDEMPTION_STATUS_APPROVED = "APPROVED"
REDEMPTION_STATUS_DENIED = "DENIED"

REDEMPTION_STATUSES = [
    REDEMPTION_STATUS_PENDING,
    REDEMPTION_STATUS_APPROVED,
    REDEMPTION_STATUS_DENIED,
]

REDEMPTION_DECISIONS = [REDEMPTION_STATUS_APPROVED, REDEMPTION_STATUS_DENIED]


class RedemptionStateError(ValueError):
    pass


class Redemption:

    @staticmethod
    def decide(current_status: str, decision: str) -> str:
        """
        Validate a decision against the current status and return the new status

        Raises:
            RedemptionStateError: unknown decision, or the row is already terminal
        """
        if decision not in REDEMPTION_DECISIONS:
            raise RedemptionStateError("status must be APPROVED or DENIED")
        if current_status != REDEMPTION_STATUS_PENDING:
            raise RedemptionStateError("Redemption has already been processed")
        return decision

    @staticmethod
    def points_required(points_cost: int, is_cash_reward: bool, custom_amount: int | None) -> int:
        """Cash rewards may be redeemed for a custom amount; everything else costs points_cost"""
        if is_cash_reward and custom_amount is not None:
            return custom_amount
        return points_cost
