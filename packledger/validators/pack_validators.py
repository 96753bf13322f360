from decimal import Decimal
from typing import Optional

from packledger.models.pack_assignment import PackStatus, PaymentStatus, PaymentMethod


# =============================================================================
# ВАЛИДАЦИЯ ПРОДАЖИ ПАКЕТА
# =============================================================================

def validate_payment_status(payment_status: Optional[str]) -> bool:
    """
    Проверка, что статус оплаты известен

    Returns:
        True если статус один из paid / partial / unpaid
    """
    return payment_status in {status.value for status in PaymentStatus}


def validate_payment_method(payment_method: Optional[str]) -> bool:
    """
    Проверка способа оплаты (не обязателен)
    """
    if payment_method is None:
        return True
    return payment_method in {method.value for method in PaymentMethod}


def validate_amount_not_negative(amount: Optional[Decimal]) -> bool:
    """
    Проверка, что сумма не отрицательная (None допустим)
    """
    return amount is None or amount >= 0


def validate_positive_override(value: Optional[int]) -> bool:
    """
    Проверка переопределения количества занятий / срока действия
    """
    return value is None or value > 0


def validate_template_sessions(total_sessions: Optional[int]) -> bool:
    """
    Проверка, что в шаблоне корректное количество занятий
    """
    return total_sessions is not None and total_sessions > 0


# =============================================================================
# ВАЛИДАЦИЯ СМЕНЫ СТАТУСА И СПИСАНИЯ
# =============================================================================

def validate_manual_status_target(target: Optional[str]) -> bool:
    """
    Вручную можно только поставить на паузу или возобновить
    """
    return target in (PackStatus.PAUSED.value, PackStatus.ACTIVE.value)


def normalize_idempotency_key(raw_key: Optional[str]) -> str:
    """
    Убирает пробелы по краям ключа идемпотентности
    """
    return str(raw_key or "").strip()


def validate_idempotency_key(key: str, max_length: int) -> bool:
    """
    Ключ обязателен и не длиннее max_length символов
    """
    return 0 < len(key) <= max_length
