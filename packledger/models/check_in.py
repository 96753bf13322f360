from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from packledger.database import Base
from packledger.models.pack_assignment import utcnow


# Запись о списании одного занятия (только добавление, без изменений)
class PackCheckIn(Base):
    __tablename__ = "pack_check_ins"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("pack_assignments.id"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    idempotency_key = Column(String(128), nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    performed_by = Column(Integer, nullable=True)  # Сотрудник, отметивший визит
    session_name = Column(String, nullable=True)
    session_price = Column(Numeric(10, 2), nullable=True)

    assignment = relationship("PackAssignment", back_populates="check_ins")

    __table_args__ = (
        UniqueConstraint("assignment_id", "idempotency_key", name="uq_pack_check_ins_assignment_key"),
        Index("ix_pack_check_ins_assignment_checked_in_at", "assignment_id", "checked_in_at"),
    )
