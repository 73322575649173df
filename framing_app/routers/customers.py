from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db

router = APIRouter(prefix="/customers", tags=["customers"])


def get_tenant_customer(customer_id: int, user: models.User, db: Session) -> models.Customer:
    """404 for customers of other tenants too, so ids never leak across shops."""
    customer = db.query(models.Customer).filter(
        models.Customer.id == customer_id,
        models.Customer.user_id == user.id,
    ).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("/", response_model=schemas.Customer)
def create_customer(
    customer: schemas.CustomerCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not customer.name.strip():
        raise HTTPException(status_code=400, detail="Customer name is required")
    db_customer = models.Customer(user_id=current_user.id, **customer.model_dump())
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    return db_customer


@router.get("/", response_model=List[schemas.Customer])
def list_customers(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return (
        db.query(models.Customer)
        .filter(models.Customer.user_id == current_user.id)
        .order_by(models.Customer.name)
        .offset(skip).limit(limit).all()
    )


@router.get("/{customer_id}", response_model=schemas.Customer)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return get_tenant_customer(customer_id, current_user, db)


@router.patch("/{customer_id}", response_model=schemas.Customer)
def update_customer(
    customer_id: int,
    update: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    customer = get_tenant_customer(customer_id, current_user, db)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    customer = get_tenant_customer(customer_id, current_user, db)
    if customer.orders:
        raise HTTPException(status_code=409, detail="Customer has orders and cannot be deleted")
    db.delete(customer)
    db.commit()
    return {"ok": True}
