import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from packledger.core.security import verify_api_key
from packledger.dependencies import get_db
from packledger.services.pack_assignment import PackAssignmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post("/sync-pack-statuses", dependencies=[Depends(verify_api_key)])
def sync_pack_statuses_endpoint(db: Session = Depends(get_db)):
    """
    Сохраняет статусы expired / exhausted, вычисленные на текущий момент.
    Защищен API ключом (передается в заголовке X-API-Key).
    Для корректности не обязателен: статус всё равно пересчитывается при каждом чтении.
    """
    try:
        updated = PackAssignmentService(db).sync_statuses()
    except Exception as e:
        logger.error(f"Error in pack status sync: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "message": "Pack statuses synced",
        "updated_count": updated,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
