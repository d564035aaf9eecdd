"""
Tests for family members, NFC cards and the member portal
"""
from datetime import date

import pytest

from famboard.application.chores import CompleteChoreUseCase, CreateChoreUseCase
from famboard.application.errors import Conflict, NotFound
from famboard.application.family import (
    CreateMemberUseCase, DeleteMemberUseCase, MemberValidationError, RegisterCardUseCase,
    UnregisterCardUseCase, UpdateMemberUseCase, get_member_by_card, get_member_portal, list_members,
)
from famboard.application.points import PointsLedger
from famboard.infrastructure.db.models import PointTransaction


class TestMembers:
    def test_create_defaults_avatar_to_initial(self, db_session):
        member = CreateMemberUseCase(db_session).execute(" emma ", "#FF00AA")
        assert member.name == "emma"
        assert member.avatar == "E"
        assert member.role == "CHILD"

    def test_invalid_role(self, db_session):
        with pytest.raises(MemberValidationError, match="PARENT or CHILD"):
            CreateMemberUseCase(db_session).execute("Emma", "#FF00AA", role="ADMIN")

    def test_list_parents_first(self, db_session, child, parent):
        assert [m.name for m in list_members(db_session)] == ["Mom", "Kid"]

    def test_update(self, db_session, child):
        UpdateMemberUseCase(db_session).execute(child.id, {"color": "#000000", "birthday": date(2015, 5, 1)})
        assert child.color == "#000000"

    def test_delete_keeps_ledger(self, db_session, child):
        chore = CreateChoreUseCase(db_session).execute("Feed cat", points=2, recurrence="DAILY")
        CompleteChoreUseCase(db_session).execute(chore.id, child.id, today=date(2026, 3, 4))
        member_id = child.id

        DeleteMemberUseCase(db_session).execute(member_id)

        with pytest.raises(NotFound):
            UpdateMemberUseCase(db_session).execute(member_id, {"color": "#111111"})
        assert db_session.query(PointTransaction).filter(PointTransaction.member_id == member_id).count() == 1


class TestCards:
    def test_register_and_lookup(self, db_session, child):
        RegisterCardUseCase(db_session).execute(child.id, "04:A2:B3")
        portal = get_member_by_card(db_session, "04:A2:B3", today=date(2026, 3, 4))
        assert portal["member"]["id"] == child.id

    def test_card_owned_by_someone_else(self, db_session, child, second_child):
        RegisterCardUseCase(db_session).execute(child.id, "CARD-1")
        with pytest.raises(Conflict) as exc:
            RegisterCardUseCase(db_session).execute(second_child.id, "CARD-1")
        assert exc.value.extra == {"memberName": "Kid"}

    def test_unregister(self, db_session, child):
        RegisterCardUseCase(db_session).execute(child.id, "CARD-1")
        UnregisterCardUseCase(db_session).execute(child.id)
        with pytest.raises(NotFound):
            get_member_by_card(db_session, "CARD-1")


class TestPortal:
    def test_portal_shows_balance_and_todays_chores(self, db_session, child):
        chore = CreateChoreUseCase(db_session).execute(
            "Feed cat", points=3, recurrence="DAILY", assignee_ids=[child.id],
        )
        CompleteChoreUseCase(db_session).execute(chore.id, child.id, today=date(2026, 3, 4))

        portal = get_member_portal(db_session, child.id, today=date(2026, 3, 4))

        assert portal["points"]["balance"] == PointsLedger(db_session).get_balance(child.id) == 3
        assert portal["chores"][0]["title"] == "Feed cat"
        assert portal["chores"][0]["isCompleted"] is True
