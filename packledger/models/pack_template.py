from sqlalchemy import Column, Integer, String, Numeric, Boolean

from packledger.database import Base


class PackTemplate(Base):
    __tablename__ = "pack_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)  # Название пакета, например "12 PT sessions"
    total_sessions = Column(Integer, nullable=False)  # Количество занятий
    price_total = Column(Numeric(10, 2), nullable=False, default=0)  # Стоимость всего пакета
    validity_days = Column(Integer, nullable=True)  # Срок действия в днях, NULL - бессрочный
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
