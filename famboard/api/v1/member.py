"""
Member portal endpoints (kiosk: tap an NFC card or pick a member)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from famboard.api.deps import get_db
from famboard.application.family import get_member_by_card, get_member_portal


router = APIRouter(prefix="/api/v1/member", tags=["member"])


@router.get("/card/{card_id}")
def member_by_card(card_id: str, db: Session = Depends(get_db)):
    return get_member_by_card(db, card_id)


@router.get("/{member_id}")
def member_portal(member_id: int, db: Session = Depends(get_db)):
    """Member, points, today's chores and rewards they can afford"""
    return get_member_portal(db, member_id)
