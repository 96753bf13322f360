from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from packledger.schemas.pack_assignment import PackAssignmentResponse


class CheckInCreate(BaseModel):
    """Схема для отметки визита по пакету"""
    session_name: Optional[str] = Field(None, description="Название занятия, по умолчанию из пакета")
    session_price: Optional[Decimal] = Field(None, description="Цена занятия, по умолчанию из пакета")


class CheckInResponse(BaseModel):
    """Схема ответа с записью о списании"""
    id: int
    assignment_id: int
    member_id: int
    idempotency_key: str
    checked_in_at: datetime
    performed_by: Optional[int] = None
    session_name: Optional[str] = None
    session_price: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class CheckInResultResponse(BaseModel):
    """Результат списания: пакет после списания и сама запись"""
    assignment: PackAssignmentResponse
    check_in: CheckInResponse
    idempotent_replay: bool = Field(False, description="True, если ключ уже использовался и списания не было")

    model_config = {"from_attributes": True}
