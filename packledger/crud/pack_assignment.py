from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, contains_eager

from packledger.models import Member, PackTemplate, PackAssignment, PackStatus


# =============================================================================
# ПРОСТЫЕ CRUD ОПЕРАЦИИ С ПАКЕТАМИ УЧАСТНИКОВ (PackAssignment)
# =============================================================================

def get_pack_assignment(
    db: Session,
    pack_assignment_id: int,
    *,
    fresh: bool = False,
) -> Optional[PackAssignment]:
    """
    Получение пакета участника по ID.
    fresh=True перечитывает строку из базы, даже если объект уже в сессии.
    """
    query = db.query(PackAssignment).filter(PackAssignment.id == pack_assignment_id)
    if fresh:
        query = query.populate_existing()
    return query.first()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_pack_assignments(
    db: Session,
    *,
    now: datetime,
    status: Optional[PackStatus] = None,
    search: Optional[str] = None,
    member_id: Optional[int] = None,
) -> List[PackAssignment]:
    """
    Получение пакетов участников.
    Фильтр по статусу идёт по действующему статусу на момент now.
    """
    query = (
        db.query(PackAssignment)
        .join(PackAssignment.member)
        .join(PackAssignment.pack_template)
        .options(contains_eager(PackAssignment.member))
    )

    if member_id is not None:
        query = query.filter(PackAssignment.member_id == member_id)
    if status is not None:
        query = query.filter(PackAssignment.status_at(now) == status.value)
    if search:
        pattern = f"%{_escape_like(search)}%"
        full_name = Member.first_name + " " + Member.last_name
        query = query.filter(
            or_(
                Member.first_name.ilike(pattern, escape="\\"),
                Member.last_name.ilike(pattern, escape="\\"),
                full_name.ilike(pattern, escape="\\"),
                Member.member_code.ilike(pattern, escape="\\"),
                PackTemplate.name.ilike(pattern, escape="\\"),
            )
        )

    return query.order_by(PackAssignment.purchased_at.desc(), PackAssignment.id.desc()).all()


def create_pack_assignment(db: Session, **fields) -> PackAssignment:
    """
    Создание пакета участника
    """
    pack_assignment = PackAssignment(**fields)
    db.add(pack_assignment)
    # НЕ делаем commit здесь - это делает сервис
    db.flush()  # Получаем ID, но не коммитим
    db.refresh(pack_assignment)
    return pack_assignment


def update_pack_assignment_status(
    db: Session,
    pack_assignment: PackAssignment,
    status: PackStatus,
) -> PackAssignment:
    """
    Смена хранимого статуса. Версию строки проверяет и увеличивает mapper (version_id_col).
    """
    pack_assignment.stored_status = status
    # НЕ делаем commit здесь - это делает сервис
    db.flush()
    db.refresh(pack_assignment)
    return pack_assignment


def decrement_remaining_sessions(
    db: Session,
    pack_assignment_id: int,
    *,
    expected_version: int,
    expected_remaining: int,
    expected_status: PackStatus,
) -> bool:
    """
    Условное списание одного занятия (compare-and-set).

    Строка обновляется только если версия, остаток и статус не изменились
    с момента чтения. Возвращает False, если другой запрос успел раньше.
    """
    new_remaining = expected_remaining - 1
    new_status = PackStatus.EXHAUSTED if new_remaining == 0 else expected_status

    result = db.execute(
        update(PackAssignment)
        .where(
            PackAssignment.id == pack_assignment_id,
            PackAssignment.version == expected_version,
            PackAssignment.remaining_sessions == expected_remaining,
            PackAssignment.stored_status == expected_status,
            PackAssignment.remaining_sessions > 0,
        )
        .values({
            PackAssignment.remaining_sessions: new_remaining,
            PackAssignment.stored_status: new_status,
            PackAssignment.version: expected_version + 1,
        })
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def sync_statuses(db: Session, now: datetime) -> int:
    """
    Сохраняет вычисленные статусы expired / exhausted.
    Порядок тот же, что в evaluate_status: истечение срока важнее паузы и остатка.
    """
    expired = db.execute(
        update(PackAssignment)
        .where(
            PackAssignment.stored_status.in_([PackStatus.ACTIVE, PackStatus.PAUSED]),
            PackAssignment.expires_at.isnot(None),
            PackAssignment.expires_at < now,
        )
        .values({
            PackAssignment.stored_status: PackStatus.EXPIRED,
            PackAssignment.version: PackAssignment.version + 1,
        })
        .execution_options(synchronize_session=False)
    ).rowcount

    exhausted = db.execute(
        update(PackAssignment)
        .where(
            PackAssignment.stored_status == PackStatus.ACTIVE,
            PackAssignment.remaining_sessions <= 0,
        )
        .values({
            PackAssignment.stored_status: PackStatus.EXHAUSTED,
            PackAssignment.version: PackAssignment.version + 1,
        })
        .execution_options(synchronize_session=False)
    ).rowcount

    # НЕ делаем commit здесь - это делает сервис
    return expired + exhausted
