from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from packledger.database import Base


# Участник клуба (справочник ведётся вне этого сервиса)
class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    member_code = Column(String, unique=True, nullable=False, index=True)  # Код участника на ресепшене
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, default="")
    phone = Column(String, nullable=True)

    pack_assignments = relationship("PackAssignment", back_populates="member")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<Member(id={self.id}, member_code={self.member_code})>"
