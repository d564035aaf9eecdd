"""Tests for the PIN lockout state machine"""
from datetime import datetime, timedelta

from famboard.domain.pin_lockout import Locked, LockoutPolicy, Unlocked

NOW = datetime(2026, 3, 1, 12, 0, 0)


class TestRegisterFailure:
    def test_counts_failures_below_limit(self):
        policy = LockoutPolicy(max_failures=5)
        state = Unlocked(0)
        for expected in range(1, 5):
            state = policy.register_failure(state, NOW)
            assert state == Unlocked(expected)

    def test_fifth_failure_locks_for_duration(self):
        policy = LockoutPolicy(max_failures=5, duration=timedelta(minutes=15))
        state = policy.register_failure(Unlocked(4), NOW)
        assert state == Locked(until=NOW + timedelta(minutes=15))

    def test_failure_while_locked_does_not_extend_window(self):
        policy = LockoutPolicy()
        locked = Locked(until=NOW + timedelta(minutes=10))
        assert policy.register_failure(locked, NOW + timedelta(minutes=1)) == locked

    def test_failure_after_window_starts_fresh_count(self):
        policy = LockoutPolicy()
        state = policy.register_failure(Locked(until=NOW), NOW + timedelta(seconds=1))
        assert state == Unlocked(1)


class TestStateFromColumns:
    def test_active_lock(self):
        policy = LockoutPolicy()
        until = NOW + timedelta(minutes=5)
        assert policy.state_from(0, until, NOW) == Locked(until=until)

    def test_elapsed_lock_reads_as_unlocked(self):
        policy = LockoutPolicy()
        assert policy.state_from(0, NOW - timedelta(seconds=1), NOW) == Unlocked(0)

    def test_failures_without_lock(self):
        assert LockoutPolicy().state_from(3, None, NOW) == Unlocked(3)

    def test_columns_round_trip(self):
        policy = LockoutPolicy()
        until = NOW + timedelta(minutes=15)
        assert policy.to_columns(Locked(until=until)) == (0, until)
        assert policy.to_columns(Unlocked(2)) == (2, None)


class TestRemaining:
    def test_remaining_attempts(self):
        policy = LockoutPolicy(max_failures=5)
        assert policy.remaining_attempts(Unlocked(2)) == 3
        assert policy.remaining_attempts(Locked(until=NOW)) == 0

    def test_remaining_seconds_rounds_up(self):
        state = Locked(until=NOW + timedelta(seconds=90, milliseconds=200))
        assert LockoutPolicy.remaining_seconds(state, NOW) == 91

    def test_remaining_seconds_unlocked(self):
        assert LockoutPolicy.remaining_seconds(Unlocked(3), NOW) == 0

    def test_reset(self):
        assert LockoutPolicy().reset() == Unlocked(0)
