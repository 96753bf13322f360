from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from packledger.models import PackCheckIn


# =============================================================================
# ЖУРНАЛ СПИСАНИЙ (PackCheckIn)
# =============================================================================

def get_check_in_by_key(
    db: Session,
    assignment_id: int,
    idempotency_key: str,
) -> Optional[PackCheckIn]:
    """
    Поиск списания по ключу идемпотентности в рамках одного пакета
    """
    return db.query(PackCheckIn).filter(
        PackCheckIn.assignment_id == assignment_id,
        PackCheckIn.idempotency_key == idempotency_key,
    ).first()


def create_check_in(db: Session, **fields) -> PackCheckIn:
    """
    Добавление записи о списании
    """
    check_in = PackCheckIn(**fields)
    db.add(check_in)
    # НЕ делаем commit здесь - это делает сервис.
    # flush сразу, чтобы нарушение уникальности ключа всплыло внутри транзакции
    db.flush()
    db.refresh(check_in)
    return check_in


def count_check_ins(db: Session, assignment_id: int) -> int:
    """
    Количество списаний по пакету
    """
    return db.query(PackCheckIn).filter(PackCheckIn.assignment_id == assignment_id).count()


def get_check_ins(
    db: Session,
    assignment_id: int,
    *,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[PackCheckIn], int]:
    """
    История списаний по пакету, от старых к новым, постранично
    """
    query = db.query(PackCheckIn).filter(PackCheckIn.assignment_id == assignment_id)
    total = query.count()
    items = (
        query.order_by(PackCheckIn.checked_in_at.asc(), PackCheckIn.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total
