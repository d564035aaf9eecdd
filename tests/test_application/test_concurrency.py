"""
Concurrent requests for the same points or the same chore

Each worker gets its own thread and session on a file-backed database;
a barrier releases them together.
"""
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from famboard.application import locks
from famboard.application.chores import ChoreValidationError, CompleteChoreUseCase, CreateChoreUseCase
from famboard.application.points import AdjustPointsUseCase, PointsLedger
from famboard.application.redemptions import (
    DecideRedemptionUseCase, RedemptionError, RequestRedemptionUseCase,
)
from famboard.infrastructure.db.models import (
    ChoreCompletion, FamilyMember, PointTransaction, Reward, RewardRedemption,
)


def run_together(engine, *calls) -> list:
    """Run each call(session) on its own thread; returns results or raised exceptions"""
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    barrier = threading.Barrier(len(calls))
    results: list = [None] * len(calls)

    def worker(index, call):
        session = SessionLocal()
        try:
            barrier.wait(timeout=10)
            results[index] = call(session)
        except Exception as e:
            results[index] = e
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    assert not any(thread.is_alive() for thread in threads)
    return results


@pytest.fixture
def household(file_engine) -> dict:
    """Parent, a child holding 25 points and a 20 point reward"""
    SessionLocal = sessionmaker(bind=file_engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        parent = FamilyMember(name="Mom", role="PARENT", color="#3B82F6", avatar="M", avatar_type="initial")
        child = FamilyMember(name="Kid", role="CHILD", color="#10B981", avatar="K", avatar_type="initial")
        reward = Reward(name="Movie night", points_cost=20, is_active=True, is_cash_reward=False)
        session.add_all([parent, child, reward])
        session.commit()
        AdjustPointsUseCase(session).execute(child.id, 25)
        return {"parent": parent.id, "child": child.id, "reward": reward.id}
    finally:
        session.close()


def count(engine, model, *criteria) -> int:
    session = sessionmaker(bind=engine)()
    try:
        return session.query(model).filter(*criteria).count()
    finally:
        session.close()


class TestConcurrentRedemptions:
    def test_only_one_request_fits_the_balance(self, file_engine, household):
        """25 points, two 20 point requests at once: one is created, one is refused"""
        def request(session):
            return RequestRedemptionUseCase(session).execute(household["reward"], household["child"])

        results = run_together(file_engine, request, request)

        created = [r for r in results if isinstance(r, RewardRedemption)]
        refused = [r for r in results if isinstance(r, RedemptionError)]
        assert len(created) == 1
        assert len(refused) == 1
        assert refused[0].to_dict() == {"error": "Insufficient points", "balance": 5, "required": 20}
        assert count(file_engine, RewardRedemption) == 1

    def test_only_one_approval_is_debited(self, file_engine, household):
        """Two PENDING rows that together exceed the balance, approved at once"""
        session = sessionmaker(bind=file_engine, expire_on_commit=False)()
        try:
            first = RequestRedemptionUseCase(session).execute(household["reward"], household["child"])
            # second PENDING row written directly, past the request-time hold
            second = RewardRedemption(
                reward_id=household["reward"], requested_by_id=household["child"],
                points_spent=20, status="PENDING", requested_at=first.requested_at,
            )
            session.add(second)
            session.commit()
            ids = [first.id, second.id]
        finally:
            session.close()

        def approve(redemption_id):
            return lambda s: DecideRedemptionUseCase(s).execute(
                redemption_id, "APPROVED", approved_by_id=household["parent"],
            )

        results = run_together(file_engine, approve(ids[0]), approve(ids[1]))

        assert sum(isinstance(r, RewardRedemption) for r in results) == 1
        refused = [r for r in results if isinstance(r, RedemptionError)]
        assert [r.message for r in refused] == ["Requester no longer has enough points"]

        session = sessionmaker(bind=file_engine)()
        try:
            assert PointsLedger(session).get_balance(household["child"]) == 5
        finally:
            session.close()
        assert count(file_engine, PointTransaction, PointTransaction.type == "REDEMPTION") == 1


class TestConcurrentChoreCompletion:
    def test_one_completion_per_day(self, file_engine, household):
        session = sessionmaker(bind=file_engine, expire_on_commit=False)()
        try:
            chore_id = CreateChoreUseCase(session).execute(title="Feed the cat", points=3).id
        finally:
            session.close()

        def complete(session):
            return CompleteChoreUseCase(session).execute(chore_id, household["child"])

        results = run_together(file_engine, complete, complete)

        assert sum(isinstance(r, tuple) for r in results) == 1
        failures = [r for r in results if isinstance(r, ChoreValidationError)]
        assert len(failures) == 1
        assert count(file_engine, ChoreCompletion, ChoreCompletion.chore_id == chore_id) == 1
        assert count(
            file_engine, PointTransaction, PointTransaction.type == "CHORE_COMPLETION",
        ) == 1

    def test_unique_key_rejects_a_completion_that_slips_past_the_lock(self, db_session, child, monkeypatch):
        """With the in-process lock out of the way the database still says no"""
        chore = CreateChoreUseCase(db_session).execute(title="Dishes", points=2)
        CompleteChoreUseCase(db_session).execute(chore.id, child.id)

        # hide the existing row from the pre-insert check
        real_query = db_session.query

        def query_without_completions(*entities, **kwargs):
            q = real_query(*entities, **kwargs)
            if entities and entities[0] is ChoreCompletion:
                return q.filter(ChoreCompletion.id.is_(None))
            return q

        monkeypatch.setattr(db_session, "query", query_without_completions)
        with pytest.raises(ChoreValidationError, match="already completed"):
            CompleteChoreUseCase(db_session).execute(chore.id, child.id)
        monkeypatch.undo()

        assert db_session.query(ChoreCompletion).filter(ChoreCompletion.chore_id == chore.id).count() == 1


class TestLockRegistry:
    def test_same_key_shares_a_lock(self):
        with locks.member_lock(7):
            assert locks._lock_for("member", 7) is locks._lock_for("member", 7)

    def test_unused_locks_are_dropped(self):
        before = locks.registry_size()
        for chore_id in range(1000, 1050):
            with locks.chore_lock(chore_id):
                pass
        assert locks.registry_size() == before
