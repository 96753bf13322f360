from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, Index, CheckConstraint, and_, case
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_method

from packledger.database import Base


class PackStatus(str, PyEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    EXHAUSTED = "exhausted"
    EXPIRED = "expired"


class PaymentStatus(str, PyEnum):
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


class PaymentMethod(str, PyEnum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    WALLET = "wallet"


TERMINAL_STATUSES = (PackStatus.EXHAUSTED, PackStatus.EXPIRED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; everything is stored in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def evaluate_status(
    stored_status: PackStatus,
    remaining_sessions: int,
    expires_at: Optional[datetime],
    now: datetime,
) -> PackStatus:
    """
    Derive the effective status of a pack from its stored fields and the current time.

    exhausted and expired are terminal; expiry wins over a pause; a pack with
    no sessions left is exhausted even if nobody has persisted that yet.
    """
    stored_status = PackStatus(stored_status)
    if stored_status in TERMINAL_STATUSES:
        return stored_status
    expires_at = as_utc(expires_at)
    if expires_at is not None and as_utc(now) > expires_at:
        return PackStatus.EXPIRED
    if stored_status == PackStatus.PAUSED:
        return PackStatus.PAUSED
    if remaining_sessions <= 0:
        return PackStatus.EXHAUSTED
    return PackStatus.ACTIVE


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Пакет занятий, купленный участником
class PackAssignment(Base):
    __tablename__ = "pack_assignments"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    pack_template_id = Column(Integer, ForeignKey("pack_templates.id"), nullable=False)

    # Снимок шаблона на момент покупки
    total_sessions = Column(Integer, nullable=False)
    remaining_sessions = Column(Integer, nullable=False)
    session_name = Column(String, nullable=True)
    session_price = Column(Numeric(10, 2), nullable=True)

    purchased_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # NULL - без срока действия

    # Хранимый статус; действующий статус всегда пересчитывается через status_at()
    stored_status = Column(
        "status",
        Enum(PackStatus, name="pack_status", values_callable=_enum_values),
        nullable=False,
        default=PackStatus.ACTIVE,
    )

    # Оплата - только информация, на списание не влияет
    payment_status = Column(
        Enum(PaymentStatus, name="pack_payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    payment_method = Column(
        Enum(PaymentMethod, name="pack_payment_method", values_callable=_enum_values),
        nullable=True,
    )
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)

    created_by = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False)

    member = relationship("Member", back_populates="pack_assignments")
    pack_template = relationship("PackTemplate")
    check_ins = relationship("PackCheckIn", back_populates="assignment", order_by="PackCheckIn.id")

    __table_args__ = (
        Index("ix_pack_assignments_member_status", "member_id", "status"),
        CheckConstraint(
            "remaining_sessions >= 0 AND remaining_sessions <= total_sessions",
            name="ck_pack_assignments_remaining_bounds",
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    @hybrid_method
    def status_at(self, now: datetime) -> PackStatus:
        return evaluate_status(self.stored_status, self.remaining_sessions, self.expires_at, now)

    @status_at.expression
    def status_at(cls, now: datetime):
        """SQL twin of evaluate_status(), used for status filters in list queries."""
        return case(
            (cls.stored_status == PackStatus.EXHAUSTED, PackStatus.EXHAUSTED.value),
            (cls.stored_status == PackStatus.EXPIRED, PackStatus.EXPIRED.value),
            (and_(cls.expires_at.isnot(None), cls.expires_at < now), PackStatus.EXPIRED.value),
            (cls.stored_status == PackStatus.PAUSED, PackStatus.PAUSED.value),
            (cls.remaining_sessions <= 0, PackStatus.EXHAUSTED.value),
            else_=PackStatus.ACTIVE.value,
        )

    @property
    def status(self) -> PackStatus:
        """Действующий статус на текущий момент."""
        return self.status_at(utcnow())

    @property
    def used_sessions(self) -> int:
        return self.total_sessions - self.remaining_sessions

    def __repr__(self):
        return (f"<PackAssignment(id={self.id}, member_id={self.member_id}, "
                f"remaining={self.remaining_sessions}/{self.total_sessions}, status={self.stored_status})>")
