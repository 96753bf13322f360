from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field

from packledger.models.pack_assignment import PackStatus, PaymentStatus, PaymentMethod
from packledger.schemas.member import MemberBasic


class PackAssignmentCreate(BaseModel):
    """Схема для продажи пакета участнику"""
    member_id: int = Field(..., description="ID участника")
    pack_template_id: int = Field(..., description="ID шаблона пакета")
    payment_status: str = Field("unpaid", description="paid / partial / unpaid")
    payment_method: Optional[str] = Field(None, description="cash / card / transfer / wallet")
    amount_paid: Optional[Decimal] = Field(None, description="Оплаченная сумма; по умолчанию цена пакета для paid, иначе 0")

    # Переопределения шаблона
    total_sessions: Optional[int] = Field(None, description="Количество занятий вместо шаблонного")
    validity_days: Optional[int] = Field(None, description="Срок действия вместо шаблонного")
    purchased_at: Optional[datetime] = Field(None, description="Дата покупки, по умолчанию сейчас")
    session_name: Optional[str] = Field(None, description="Название занятия для отчётов")
    session_price: Optional[Decimal] = Field(None, description="Цена одного занятия для отчётов")


class PackAssignmentStatusUpdate(BaseModel):
    """Схема для паузы / возобновления пакета"""
    status: str = Field(..., description="paused или active")


class PackAssignmentResponse(BaseModel):
    """Схема ответа с информацией о пакете участника"""
    id: int
    member_id: int
    pack_template_id: int
    total_sessions: int
    remaining_sessions: int
    used_sessions: int
    status: PackStatus
    purchased_at: datetime
    expires_at: Optional[datetime] = None
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    amount_paid: Decimal
    session_name: Optional[str] = None
    session_price: Optional[Decimal] = None
    created_by: Optional[int] = None
    member: Optional[MemberBasic] = None

    model_config = {"from_attributes": True}


class PackAssignmentList(BaseModel):
    """Схема списка пакетов участников"""
    items: List[PackAssignmentResponse]
    total: int
