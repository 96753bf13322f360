import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from packledger.crud import pack_assignment as crud
from packledger.crud import member as member_crud
from packledger.crud import pack_template as template_crud
from packledger.database import transactional
from packledger.models import PackAssignment, PackStatus, PaymentStatus
from packledger.models.pack_assignment import TERMINAL_STATUSES, as_utc, utcnow
from packledger.schemas.pack_assignment import PackAssignmentCreate
from packledger.validators import pack_validators as validators
from packledger.errors.pack_errors import (
    NotFoundError,
    ValidationError,
    InvalidTransitionError,
    ContentionError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class PackAssignmentService:
    def __init__(self, db: Session):
        self.db = db

    # --- Public Methods (Transactional) ---

    def create_assignment(
        self,
        data: PackAssignmentCreate,
        created_by_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PackAssignment:
        """Sells a pack to a member, snapshotting sessions and validity from the template."""
        self._validate_create_data(data)
        with transactional(self.db) as session:
            return self._create_assignment_logic(session, data, created_by_id, now or utcnow())

    def set_status(
        self,
        pack_assignment_id: int,
        target: str,
        updated_by_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PackAssignment:
        """Pauses or resumes a pack. Exhausted and expired packs can never change status."""
        target = str(target or "").strip().lower()
        if not validators.validate_manual_status_target(target):
            raise ValidationError(f"Status can only be set to 'paused' or 'active', got '{target}'")

        try:
            with transactional(self.db) as session:
                return self._set_status_logic(session, pack_assignment_id, PackStatus(target), updated_by_id, now or utcnow())
        except StaleDataError:
            logger.warning(f"Pack assignment {pack_assignment_id} changed while updating its status")
            raise ContentionError("Pack assignment was modified concurrently, retry the request")

    def sync_statuses(self, now: Optional[datetime] = None) -> int:
        """
        Persists derived expired / exhausted statuses.
        Reads never depend on it; it only keeps stored statuses close to the truth.
        """
        with transactional(self.db) as session:
            updated = crud.sync_statuses(session, now or utcnow())
        logger.info(f"Pack status sync updated {updated} assignments")
        return updated

    # --- Read Methods ---

    def get_assignment(self, pack_assignment_id: int) -> PackAssignment:
        assignment = crud.get_pack_assignment(self.db, pack_assignment_id)
        if not assignment:
            raise NotFoundError("Pack assignment not found")
        return assignment

    def list_assignments(
        self,
        status: Optional[str] = None,
        query: Optional[str] = None,
        member_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[PackAssignment]:
        status_filter = self._parse_status_filter(status)
        search = (query or "").strip() or None
        return crud.get_pack_assignments(
            self.db,
            now=now or utcnow(),
            status=status_filter,
            search=search,
            member_id=member_id,
        )

    # --- Private Logic Methods (Non-Transactional) ---

    def _create_assignment_logic(
        self,
        session: Session,
        data: PackAssignmentCreate,
        created_by_id: Optional[int],
        now: datetime,
    ) -> PackAssignment:
        member = member_crud.get_member(session, data.member_id)
        if not member:
            raise NotFoundError("Member not found")

        template = template_crud.get_pack_template(session, data.pack_template_id)
        if not template or not template.is_active:
            raise NotFoundError("Pack template not found or inactive")

        total_sessions = data.total_sessions or template.total_sessions
        if not validators.validate_template_sessions(total_sessions):
            raise ValidationError("Pack template sessions are invalid")

        validity_days = data.validity_days if data.validity_days is not None else template.validity_days
        purchased_at = as_utc(data.purchased_at) or now
        expires_at = purchased_at + timedelta(days=validity_days) if validity_days else None

        payment_status = PaymentStatus(self._normalize(data.payment_status) or PaymentStatus.UNPAID.value)
        amount_paid = data.amount_paid
        if amount_paid is None:
            amount_paid = template.price_total if payment_status == PaymentStatus.PAID else Decimal("0")

        session_price = data.session_price
        if session_price is None:
            session_price = self._default_session_price(template.price_total, total_sessions)

        assignment = crud.create_pack_assignment(
            session,
            member_id=member.id,
            pack_template_id=template.id,
            total_sessions=total_sessions,
            remaining_sessions=total_sessions,
            session_name=(data.session_name or "").strip() or template.name,
            session_price=session_price,
            purchased_at=purchased_at,
            expires_at=expires_at,
            stored_status=PackStatus.ACTIVE,
            payment_status=payment_status,
            payment_method=self._normalize(data.payment_method),
            amount_paid=amount_paid,
            created_by=created_by_id,
        )
        logger.info(f"Assigned pack template {template.id} to member {member.id}: "
                    f"assignment {assignment.id}, {total_sessions} sessions, expires {expires_at}")
        return assignment

    def _set_status_logic(
        self,
        session: Session,
        pack_assignment_id: int,
        target: PackStatus,
        updated_by_id: Optional[int],
        now: datetime,
    ) -> PackAssignment:
        assignment = crud.get_pack_assignment(session, pack_assignment_id, fresh=True)
        if not assignment:
            raise NotFoundError("Pack assignment not found")

        current = assignment.status_at(now)
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Pack assignment is {current.value} and cannot be changed")
        if current == target:
            raise InvalidTransitionError(f"Pack assignment is already {current.value}")

        updated = crud.update_pack_assignment_status(session, assignment, target)
        logger.info(f"Pack assignment {pack_assignment_id} status {current.value} -> {target.value} "
                    f"(by user {updated_by_id})")
        return updated

    # --- Helpers ---

    @staticmethod
    def _normalize(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip().lower() or None

    @staticmethod
    def _default_session_price(price_total: Optional[Decimal], total_sessions: int) -> Decimal:
        price_total = Decimal(price_total or 0)
        if price_total <= 0 or total_sessions <= 0:
            return Decimal("0.00")
        return (price_total / total_sessions).quantize(CENT, rounding=ROUND_HALF_UP)

    def _validate_create_data(self, data: PackAssignmentCreate) -> None:
        payment_status = self._normalize(data.payment_status) or PaymentStatus.UNPAID.value
        if not validators.validate_payment_status(payment_status):
            raise ValidationError(f"Invalid payment status '{data.payment_status}'")
        if not validators.validate_payment_method(self._normalize(data.payment_method)):
            raise ValidationError(f"Invalid payment method '{data.payment_method}'")
        if not validators.validate_amount_not_negative(data.amount_paid):
            raise ValidationError("Amount paid must be >= 0")
        if not validators.validate_amount_not_negative(data.session_price):
            raise ValidationError("Session price must be >= 0")
        if not validators.validate_positive_override(data.total_sessions):
            raise ValidationError("Total sessions must be positive")
        if not validators.validate_positive_override(data.validity_days):
            raise ValidationError("Validity days must be positive")

    @staticmethod
    def _parse_status_filter(status: Optional[str]) -> Optional[PackStatus]:
        normalized = str(status or "all").strip().lower()
        if normalized == "all":
            return None
        try:
            return PackStatus(normalized)
        except ValueError:
            raise ValidationError(f"Unknown status filter '{status}'")
