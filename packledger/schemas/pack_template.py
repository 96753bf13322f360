from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field


class PackTemplateResponse(BaseModel):
    """Схема ответа с информацией о шаблоне пакета"""
    id: int
    name: str = Field(..., description="Название пакета")
    total_sessions: int = Field(..., description="Количество занятий")
    price_total: Decimal = Field(..., description="Стоимость пакета")
    validity_days: Optional[int] = Field(None, description="Срок действия в днях, null - бессрочный")
    description: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class PackTemplateList(BaseModel):
    """Схема списка шаблонов"""
    items: List[PackTemplateResponse]
    total: int
