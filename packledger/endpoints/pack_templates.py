from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from packledger.auth.permissions import get_current_user, FRONT_DESK_ROLES
from packledger.dependencies import get_db
from packledger.crud import pack_template as crud_pack_template
from packledger.schemas.pack_template import PackTemplateResponse, PackTemplateList

router = APIRouter(prefix="/pack-templates", tags=["Pack templates"])


# Каталог шаблонов ведётся вне сервиса, здесь только чтение
@router.get("/", response_model=PackTemplateList)
def get_pack_templates_endpoint(
        include_inactive: bool = False,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    templates = crud_pack_template.get_pack_templates(db, include_inactive=include_inactive)
    return PackTemplateList(items=templates, total=len(templates))


@router.get("/{pack_template_id}", response_model=PackTemplateResponse)
def get_pack_template_endpoint(
        pack_template_id: int,
        current_user=Depends(get_current_user(FRONT_DESK_ROLES)),
        db: Session = Depends(get_db),
):
    template = crud_pack_template.get_pack_template(db, pack_template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Pack template not found")
    return template
