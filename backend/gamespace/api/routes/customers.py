"""Customer directory routes."""

from typing import List

from fastapi import APIRouter, Request

from gamespace.core.rate_limit import limiter
from gamespace.db.session import DbSession
from gamespace.schemas.customer import CustomerCreate, CustomerResponse, CustomerWithDueBills
from gamespace.services.customer_service import CustomerService

router = APIRouter()


@router.post("/customers/", response_model=CustomerResponse, status_code=201)
@limiter.limit("30/minute")
def create_customer(request: Request, db: DbSession, data: CustomerCreate):
    return CustomerService(db).create_customer(data.name, phone=data.phone, email=data.email)


@router.get("/customers/", response_model=List[CustomerResponse])
@limiter.limit("60/minute")
def list_customers(request: Request, db: DbSession):
    return CustomerService(db).list_customers()


@router.get("/customers/due", response_model=List[CustomerWithDueBills])
@limiter.limit("60/minute")
def list_customers_with_due_bills(request: Request, db: DbSession):
    return CustomerService(db).list_customers_with_due_bills()
