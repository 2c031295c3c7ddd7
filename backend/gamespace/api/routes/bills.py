"""Bill routes: generation and payment."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from gamespace.core.rate_limit import limiter
from gamespace.db.session import DbSession
from gamespace.models import PaymentStatus
from gamespace.schemas.bill import BillResponse, BillStatusUpdate
from gamespace.services.billing_service import BillingService

router = APIRouter()


@router.post("/bills/order/{order_id}", response_model=BillResponse)
@limiter.limit("30/minute")
def generate_bill_for_order(request: Request, db: DbSession, order_id: int):
    return BillingService(db).generate_bill_for_order(order_id)


@router.post("/bills/token/{token_id}", response_model=List[BillResponse])
@limiter.limit("30/minute")
def generate_bills_for_token(request: Request, db: DbSession, token_id: int):
    """Bill a token's orders and its orderless sessions."""
    return BillingService(db).generate_bills_for_token(token_id)


@router.get("/bills/", response_model=List[BillResponse])
@limiter.limit("60/minute")
def list_bills(
    request: Request,
    db: DbSession,
    status: Optional[PaymentStatus] = None,
    limit: int = Query(200, ge=1, le=1000),
):
    return BillingService(db).list_bills(status=status, limit=limit)


@router.get("/bills/unpaid", response_model=List[BillResponse])
@limiter.limit("60/minute")
def list_unpaid_bills(request: Request, db: DbSession):
    return BillingService(db).list_unpaid_bills()


@router.get("/bills/{bill_id}", response_model=BillResponse)
@limiter.limit("60/minute")
def get_bill(request: Request, db: DbSession, bill_id: int):
    return BillingService(db).get_bill(bill_id)


@router.patch("/bills/{bill_id}/status", response_model=BillResponse)
@limiter.limit("30/minute")
def update_bill_status(request: Request, db: DbSession, bill_id: int, data: BillStatusUpdate):
    return BillingService(db).update_bill_status(
        bill_id,
        data.status,
        corrected_amount=data.corrected_amount,
        amount_received=data.amount_received,
        payment_method=data.payment_method,
        payment_reference=data.payment_reference,
        customer_id=data.customer_id,
    )
