from typing import List, Optional

from sqlalchemy.orm import Session

from packledger.models import PackTemplate


def get_pack_templates(db: Session, include_inactive: bool = False) -> List[PackTemplate]:
    """
    Получение списка шаблонов пакетов (по умолчанию только активные)
    """
    query = db.query(PackTemplate)
    if not include_inactive:
        query = query.filter(PackTemplate.is_active == True)
    return query.order_by(PackTemplate.name).all()


def get_pack_template(db: Session, pack_template_id: int) -> Optional[PackTemplate]:
    """
    Получение шаблона пакета по ID
    """
    return db.query(PackTemplate).filter(PackTemplate.id == pack_template_id).first()
