"""
Points ledger rules

A member's balance is the signed sum of their transactions. Nothing here
touches the database; the ledger repository feeds amounts in.
"""
from typing import Iterable


# Transaction types
TX_CHORE_COMPLETION = "CHORE_COMPLETION"
TX_CHORE_UNDO = "CHORE_UNDO"
TX_HABIT_COMPLETION = "HABIT_COMPLETION"
TX_HABIT_UNDO = "HABIT_UNDO"
TX_BONUS = "BONUS"
TX_DEDUCTION = "DEDUCTION"
TX_REDEMPTION = "REDEMPTION"

TRANSACTION_TYPES = [
    TX_CHORE_COMPLETION,
    TX_CHORE_UNDO,
    TX_HABIT_COMPLETION,
    TX_HABIT_UNDO,
    TX_BONUS,
    TX_DEDUCTION,
    TX_REDEMPTION,
]

POINTS_MIN = -100_000
POINTS_MAX = 100_000


class InsufficientPointsError(ValueError):
    """Debit would take the balance below zero"""

    def __init__(self, balance: int, required: int):
        super().__init__("Insufficient points")
        self.balance = balance
        self.required = required


def lifetime_earned(amounts: Iterable[int]) -> int:
    return sum(a for a in amounts if a > 0)


def lifetime_spent(amounts: Iterable[int]) -> int:
    return sum(-a for a in amounts if a < 0)


def ensure_debit_allowed(balance: int, debit: int) -> None:
    """
    Check that spending `debit` points (a positive number) keeps the balance >= 0

    Raises:
        InsufficientPointsError
    """
    if debit < 0:
        raise ValueError("Debit must be a positive number of points")
    if balance - debit < 0:
        raise InsufficientPointsError(balance=balance, required=debit)


def adjustment_type(amount: int) -> str:
    """Manual adjustments are BONUS when positive, DEDUCTION when negative"""
    if amount == 0:
        raise ValueError("Amount must be a non-zero integer")
    return TX_BONUS if amount > 0 else TX_DEDUCTION
