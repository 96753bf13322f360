from typing import Optional

from sqlalchemy.orm import Session

from packledger.models import Member


def get_member(db: Session, member_id: int) -> Optional[Member]:
    """
    Получение участника по ID
    """
    return db.query(Member).filter(Member.id == member_id).first()
