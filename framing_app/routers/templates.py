from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from .. import models, schemas
from ..auth import get_current_user
from ..calculators.line_items import apply_template
from ..database import get_db
from ..template_store import SqlTemplateStore

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("/")
def list_templates(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return SqlTemplateStore(db, current_user.id).list_templates()


@router.get("/{template_id}")
def get_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Template plus the pre-populated item list a new itemized order starts from."""
    template = SqlTemplateStore(db, current_user.id).get_template(template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return {**template, "prefill": apply_template(template)}


@router.put("/{template_id}")
def update_template(
    template_id: int,
    update: schemas.TemplateUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    store = SqlTemplateStore(db, current_user.id)
    try:
        template = store.update_template(template_id, update.model_dump(exclude_unset=True))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    db.commit()
    return template


@router.delete("/{template_id}")
def delete_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not SqlTemplateStore(db, current_user.id).delete_template(template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    db.commit()
    return {"ok": True}
