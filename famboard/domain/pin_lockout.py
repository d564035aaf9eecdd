"""
PIN lockout state machine

    Unlocked(failures=n) --failure, n+1 < max--> Unlocked(n+1)
    Unlocked(failures=n) --failure, n+1 = max--> Locked(until=now+duration)
    Locked(until)        --now >= until-------> Unlocked(0)
    any                  --success/reset------> Unlocked(0)

Fixed window: while Locked, verification is refused before the PIN is
compared, so further attempts never move `until`.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class Unlocked:
    failures: int = 0


@dataclass(frozen=True)
class Locked:
    until: datetime


LockoutState = Unlocked | Locked


@dataclass(frozen=True)
class LockoutPolicy:
    max_failures: int = 5
    duration: timedelta = timedelta(minutes=15)

    def state_from(self, failures: int, locked_until: datetime | None, now: datetime) -> LockoutState:
        """Rebuild the state from persisted columns; an elapsed lockout reads as Unlocked(0)"""
        if locked_until is not None:
            if now < locked_until:
                return Locked(until=locked_until)
            return Unlocked(0)
        return Unlocked(failures or 0)

    def register_failure(self, state: LockoutState, now: datetime) -> LockoutState:
        if isinstance(state, Locked):
            if now < state.until:
                return state
            state = Unlocked(0)

        failures = state.failures + 1
        if failures >= self.max_failures:
            return Locked(until=now + self.duration)
        return Unlocked(failures)

    def reset(self) -> LockoutState:
        return Unlocked(0)

    def remaining_attempts(self, state: LockoutState) -> int:
        if isinstance(state, Locked):
            return 0
        return max(0, self.max_failures - state.failures)

    @staticmethod
    def remaining_seconds(state: LockoutState, now: datetime) -> int:
        if not isinstance(state, Locked):
            return 0
        return max(0, math.ceil((state.until - now).total_seconds()))

    @staticmethod
    def is_locked(state: LockoutState, now: datetime) -> bool:
        return isinstance(state, Locked) and now < state.until

    @staticmethod
    def to_columns(state: LockoutState) -> tuple[int, datetime | None]:
        """(pin_failed_attempts, pin_locked_until) for persistence"""
        if isinstance(state, Locked):
            return 0, state.until
        return state.failures, None
