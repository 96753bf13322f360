import logging
import random
import time
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple, Optional, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from packledger.config import config
from packledger.crud import pack_assignment as assignment_crud
from packledger.crud import check_in as crud
from packledger.database import transactional
from packledger.models import PackAssignment, PackCheckIn, PackStatus
from packledger.models.pack_assignment import utcnow
from packledger.validators import pack_validators as validators
from packledger.errors.pack_errors import (
    NotFoundError,
    ValidationError,
    IneligibleError,
    ContentionError,
)

logger = logging.getLogger(__name__)


class CheckInResult(NamedTuple):
    assignment: PackAssignment
    check_in: PackCheckIn
    replay: bool


class _LostRace(Exception):
    """The conditional decrement matched no row: someone else wrote first."""


class CheckInService:
    """
    The only writer of remaining_sessions.

    Every check-in is read, re-evaluated and committed with a compare-and-set
    on the row version; a lost race is retried from scratch after a short jittered
    pause, up to max_attempts. Every lost race means another write to the same
    pack committed, so up to max_attempts concurrent check-ins always succeed.
    A repeated idempotency key returns the original check-in without debiting.
    """

    def __init__(
        self,
        db: Session,
        max_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
    ):
        self.db = db
        self.max_attempts = max_attempts or config.CHECKIN_MAX_ATTEMPTS
        if retry_backoff_seconds is None:
            retry_backoff_seconds = config.CHECKIN_RETRY_BACKOFF_SECONDS
        self.retry_backoff_seconds = retry_backoff_seconds

    def record_check_in(
        self,
        pack_assignment_id: int,
        idempotency_key: str,
        performed_by: Optional[int] = None,
        session_name: Optional[str] = None,
        session_price: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        key = validators.normalize_idempotency_key(idempotency_key)
        if not validators.validate_idempotency_key(key, config.IDEMPOTENCY_KEY_MAX_LENGTH):
            raise ValidationError(
                f"Idempotency key is required and must be at most {config.IDEMPOTENCY_KEY_MAX_LENGTH} characters"
            )
        if not validators.validate_amount_not_negative(session_price):
            raise ValidationError("Session price must be >= 0")
        session_name = (session_name or "").strip() or None

        for attempt in range(1, self.max_attempts + 1):
            try:
                with transactional(self.db) as session:
                    return self._record_check_in_logic(
                        session, pack_assignment_id, key, performed_by,
                        session_name, session_price, now or utcnow(),
                    )
            except _LostRace:
                logger.info(f"Check-in on pack assignment {pack_assignment_id} lost a race "
                            f"(attempt {attempt}/{self.max_attempts}), retrying")
                if attempt < self.max_attempts:
                    self._backoff(attempt)
            except IntegrityError:
                # Параллельный запрос с тем же ключом успел закоммитить первым
                replay = self._find_replay(pack_assignment_id, key)
                if replay is None:
                    raise
                logger.info(f"Check-in key '{key}' on pack assignment {pack_assignment_id} "
                            f"was committed concurrently, returning it")
                return replay

        logger.warning(f"Check-in on pack assignment {pack_assignment_id} gave up after {self.max_attempts} attempts")
        raise ContentionError("Pack assignment is busy, retry the check-in with the same idempotency key")

    def list_check_ins(
        self,
        pack_assignment_id: int,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[PackCheckIn], int]:
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive")
        if not assignment_crud.get_pack_assignment(self.db, pack_assignment_id):
            raise NotFoundError("Pack assignment not found")
        return crud.get_check_ins(self.db, pack_assignment_id, page=page, page_size=page_size)

    # --- Private Logic Methods (Non-Transactional) ---

    def _record_check_in_logic(
        self,
        session: Session,
        pack_assignment_id: int,
        key: str,
        performed_by: Optional[int],
        session_name: Optional[str],
        session_price: Optional[Decimal],
        now: datetime,
    ) -> CheckInResult:
        existing = crud.get_check_in_by_key(session, pack_assignment_id, key)
        if existing:
            assignment = assignment_crud.get_pack_assignment(session, pack_assignment_id, fresh=True)
            logger.info(f"Idempotent replay of check-in {existing.id} on pack assignment {pack_assignment_id}")
            return CheckInResult(assignment, existing, True)

        assignment = assignment_crud.get_pack_assignment(session, pack_assignment_id, fresh=True)
        if not assignment:
            raise NotFoundError("Pack assignment not found")

        status = assignment.status_at(now)
        if status != PackStatus.ACTIVE:
            logger.info(f"Check-in refused on pack assignment {pack_assignment_id}: {status.value}")
            raise IneligibleError(status.value)

        decremented = assignment_crud.decrement_remaining_sessions(
            session,
            assignment.id,
            expected_version=assignment.version,
            expected_remaining=assignment.remaining_sessions,
            expected_status=assignment.stored_status,
        )
        if not decremented:
            raise _LostRace()

        check_in = crud.create_check_in(
            session,
            assignment_id=assignment.id,
            member_id=assignment.member_id,
            idempotency_key=key,
            checked_in_at=now,
            performed_by=performed_by,
            session_name=session_name or assignment.session_name,
            session_price=session_price if session_price is not None else assignment.session_price,
        )
        session.refresh(assignment)

        logger.info(f"Checked in pack assignment {assignment.id}: "
                    f"{assignment.remaining_sessions}/{assignment.total_sessions} left, status {assignment.stored_status.value}")
        return CheckInResult(assignment, check_in, False)

    def _backoff(self, attempt: int) -> None:
        # Случайная пауза разводит терминалы, проигравшие одну и ту же гонку
        if self.retry_backoff_seconds > 0:
            time.sleep(random.uniform(0, self.retry_backoff_seconds * attempt))

    def _find_replay(self, pack_assignment_id: int, key: str) -> Optional[CheckInResult]:
        with transactional(self.db) as session:
            existing = crud.get_check_in_by_key(session, pack_assignment_id, key)
            if not existing:
                return None
            assignment = assignment_crud.get_pack_assignment(session, pack_assignment_id, fresh=True)
            return CheckInResult(assignment, existing, True)
