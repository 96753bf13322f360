import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from packledger.auth.permissions import get_current_user, FRONT_DESK_ROLES
from packledger.dependencies import get_db
from packledger.schemas.pack_assignment import (
    PackAssignmentCreate,
    PackAssignmentStatusUpdate,
    PackAssignmentResponse,
    PackAssignmentList,
)
from packledger.schemas.check_in import CheckInCreate, CheckInResponse, CheckInResultResponse
from packledger.schemas.pagination import PaginatedResponse
from packledger.services.pack_assignment import PackAssignmentService
from packledger.services.check_in import CheckInService
from packledger.errors.pack_errors import (
    NotFoundError,
    ValidationError,
    InvalidTransitionError,
    IneligibleError,
    ContentionError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pack-assignments", tags=["Pack assignments"])


def _contention_response(e: ContentionError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e), headers={"Retry-After": "1"})


# Продажа пакета участнику
@router.post("/", response_model=PackAssignmentResponse, status_code=201)
def create_pack_assignment_endpoint(
        data: PackAssignmentCreate,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    service = PackAssignmentService(db)
    try:
        return service.create_assignment(data, created_by_id=current_user["id"])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=PackAssignmentList)
def get_pack_assignments_endpoint(
        status: Optional[str] = None,
        q: Optional[str] = None,
        member_id: Optional[int] = None,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    """
    Список пакетов участников.

    Args:
        status: "all", "active", "paused", "exhausted" или "expired"
        q: поиск по имени, фамилии, коду участника или названию пакета
        member_id: только пакеты этого участника
    """
    service = PackAssignmentService(db)
    try:
        assignments = service.list_assignments(status=status, query=q, member_id=member_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PackAssignmentList(items=assignments, total=len(assignments))


@router.get("/{pack_assignment_id}", response_model=PackAssignmentResponse)
def get_pack_assignment_endpoint(
        pack_assignment_id: int,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    service = PackAssignmentService(db)
    try:
        return service.get_assignment(pack_assignment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{pack_assignment_id}/status", response_model=PackAssignmentResponse)
def set_pack_assignment_status_endpoint(
        pack_assignment_id: int,
        update: PackAssignmentStatusUpdate,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    """
    Пауза / возобновление пакета.
    Исчерпанные и истёкшие пакеты изменить нельзя.
    """
    service = PackAssignmentService(db)
    try:
        return service.set_status(pack_assignment_id, update.status, updated_by_id=current_user["id"])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ContentionError as e:
        raise _contention_response(e)


@router.post("/{pack_assignment_id}/checkins", response_model=CheckInResultResponse)
def record_check_in_endpoint(
        pack_assignment_id: int,
        data: Optional[CheckInCreate] = None,
        idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    """
    Списание одного занятия.
    Повтор запроса с тем же Idempotency-Key возвращает исходное списание.
    """
    data = data or CheckInCreate()
    service = CheckInService(db)
    try:
        result = service.record_check_in(
            pack_assignment_id,
            idempotency_key,
            performed_by=current_user["id"],
            session_name=data.session_name,
            session_price=data.session_price,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IneligibleError as e:
        raise HTTPException(status_code=409, detail={"reason": e.reason, "message": str(e)})
    except ContentionError as e:
        raise _contention_response(e)

    return CheckInResultResponse(
        assignment=PackAssignmentResponse.model_validate(result.assignment),
        check_in=CheckInResponse.model_validate(result.check_in),
        idempotent_replay=result.replay,
    )


@router.get("/{pack_assignment_id}/checkins", response_model=PaginatedResponse[CheckInResponse])
def get_check_ins_endpoint(
        pack_assignment_id: int,
        page: int = Query(1, ge=1),
        page_size: int = Query(50, ge=1, le=200),
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    service = CheckInService(db)
    try:
        items, total = service.list_check_ins(pack_assignment_id, page=page, page_size=page_size)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PaginatedResponse[CheckInResponse](
        total_pages=math.ceil(total / page_size) if total else 0,
        total_count=total,
        page=page,
        page_size=page_size,
        data=[CheckInResponse.model_validate(item) for item in items],
    )
