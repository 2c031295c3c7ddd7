"""Billing Service - bill generation and payment status.

Payment flow:
    PENDING -> PAID
    PENDING -> DUE   (customer takes it on their tab)
    DUE     -> PAID  (tab settled later)

Nothing moves back to PENDING and a PAID bill cannot become DUE. The first
move out of PENDING settles the visit: every session still running under the
bill is closed and priced, and the order is marked COMPLETED.
"""

import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gamespace.core.errors import NotFoundError, ValidationError
from gamespace.core.timeutils import utcnow
from gamespace.models import (
    Bill,
    Customer,
    GameSession,
    OrderStatus,
    PaymentStatus,
    SessionStatus,
)
from gamespace.models.validators import to_money
from gamespace.services.order_service import OrderService
from gamespace.services.session_service import SessionService
from gamespace.services.webhook_service import WebhookNotifier

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.DUE},
    PaymentStatus.DUE: {PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}


class BillingService:
    """Creates bills from live totals and moves them through payment states."""

    def __init__(self, db: Session, notifier: Optional[WebhookNotifier] = None):
        self.db = db
        self.orders = OrderService(db)
        self.sessions = SessionService(db, notifier=notifier)

    # ===== LOOKUPS =====

    def get_bill(self, bill_id: int) -> Bill:
        bill = self.db.query(Bill).filter(Bill.id == bill_id).first()
        if not bill:
            raise NotFoundError("Bill", bill_id)
        return bill

    def list_bills(self, status: Optional[PaymentStatus] = None, limit: int = 200) -> List[Bill]:
        query = self.db.query(Bill)
        if status is not None:
            query = query.filter(Bill.status == status)
        return query.order_by(Bill.generated_at.desc()).limit(limit).all()

    def list_unpaid_bills(self) -> List[Bill]:
        """PENDING and DUE bills: the latest per order, then the latest per legacy token."""
        bills = (
            self.db.query(Bill)
            .filter(Bill.status.in_([PaymentStatus.PENDING, PaymentStatus.DUE]))
            .order_by(Bill.generated_at.desc(), Bill.id.desc())
            .all()
        )
        by_order: "OrderedDict[int, Bill]" = OrderedDict()
        by_token: "OrderedDict[int, Bill]" = OrderedDict()
        for bill in bills:
            if bill.order_id is not None:
                by_order.setdefault(bill.order_id, bill)
            else:
                by_token.setdefault(bill.token_id, bill)
        return list(by_order.values()) + list(by_token.values())

    def _pending_bill(self, token_id: int, order_id: Optional[int]) -> Optional[Bill]:
        return (
            self.db.query(Bill)
            .filter(
                Bill.token_id == token_id,
                Bill.order_id.is_(None) if order_id is None else Bill.order_id == order_id,
                Bill.status == PaymentStatus.PENDING,
            )
            .order_by(Bill.generated_at.desc())
            .first()
        )

    def _upsert_pending(
        self, token_id: int, order_id: Optional[int], amount: Decimal, now: datetime
    ) -> Bill:
        bill = self._pending_bill(token_id, order_id)
        if bill:
            bill.amount = amount
            bill.generated_at = now
            logger.info(f"Refreshed pending bill {bill.id}: {bill.amount}")
        else:
            bill = Bill(
                token_id=token_id,
                order_id=order_id,
                amount=amount,
                status=PaymentStatus.PENDING,
                generated_at=now,
            )
            self.db.add(bill)
        return bill

    @staticmethod
    def _is_settled(bills) -> bool:
        return any(b.status in (PaymentStatus.PAID, PaymentStatus.DUE) for b in bills)

    # ===== GENERATION =====

    def generate_bill_for_order(self, order_id: int) -> Bill:
        """Snapshot the order's live total into a PENDING bill."""
        order = self.orders.get_order(order_id)
        now = utcnow()
        amount = self.orders.compute_order_total(order, now)
        try:
            bill = self._upsert_pending(order.token_id, order.id, amount, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(bill)
        logger.info(f"Bill {bill.id} for order {order.order_number}: {bill.amount}")
        return bill

    def generate_bills_for_token(self, token_id: int) -> List[Bill]:
        """Bill everything on a token: one bill per order plus one for orderless sessions.

        Groups that total zero are skipped, as are orders that are no longer
        ACTIVE or already carry a PAID or DUE bill.
        """
        token = self.orders.get_token(token_id)
        now = utcnow()

        orderless: List[GameSession] = [s for s in token.sessions if s.order_id is None]
        totals: Dict[Optional[int], Decimal] = {}
        for order in token.orders:
            if order.status != OrderStatus.ACTIVE or self._is_settled(order.bills):
                continue
            totals[order.id] = self.orders.compute_order_total(order, now)
        legacy_bills = [b for b in token.bills if b.order_id is None]
        if orderless and not self._is_settled(legacy_bills):
            totals[None] = to_money(self.orders.sessions_total(orderless, now))

        bills: List[Bill] = []
        try:
            for order_id, amount in totals.items():
                if amount <= 0:
                    continue
                bills.append(self._upsert_pending(token.id, order_id, amount, now))
            if not bills:
                raise ValidationError(f"No billable activity found for token {token.token_no}")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for bill in bills:
            self.db.refresh(bill)
        logger.info(f"Generated {len(bills)} bill(s) for token {token.token_no}")
        return bills

    # ===== PAYMENT =====

    def _sessions_to_settle(self, bill: Bill) -> List[GameSession]:
        query = self.db.query(GameSession).filter(GameSession.status == SessionStatus.ACTIVE)
        if bill.order_id is not None:
            query = query.filter(GameSession.order_id == bill.order_id)
        else:
            query = query.filter(
                GameSession.token_id == bill.token_id, GameSession.order_id.is_(None)
            )
        return query.all()

    def _settle(self, bill: Bill, now: datetime) -> List[GameSession]:
        closed = []
        for session in self._sessions_to_settle(bill):
            if session.device is None:
                logger.warning(f"Session {session.id} has no device record; left open")
                continue
            self.sessions.close_session(session, now)
            closed.append(session)
        if bill.order is not None:
            self.orders.set_status(bill.order, OrderStatus.COMPLETED)
        return closed

    def update_bill_status(
        self,
        bill_id: int,
        status: PaymentStatus,
        corrected_amount: Optional[Decimal] = None,
        amount_received: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        customer_id: Optional[int] = None,
    ) -> Bill:
        bill = self.get_bill(bill_id)
        previous = bill.status

        if status != previous and status not in ALLOWED_TRANSITIONS[previous]:
            raise ValidationError(f"Cannot move bill {bill_id} from {previous.value} to {status.value}")

        if status == PaymentStatus.DUE:
            if customer_id is None and bill.customer_id is None:
                raise ValidationError("A customer is required to mark a bill as DUE")
        if customer_id is not None:
            customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
            if not customer:
                raise NotFoundError("Customer", customer_id)

        now = utcnow()
        closed: List[GameSession] = []
        try:
            if previous == PaymentStatus.PENDING and status != PaymentStatus.PENDING:
                closed = self._settle(bill, now)

            bill.status = status
            if status == PaymentStatus.PAID and bill.paid_at is None:
                bill.paid_at = now
            if corrected_amount is not None:
                bill.corrected_amount = corrected_amount
            if amount_received is not None:
                bill.amount_received = amount_received
            if payment_method is not None:
                bill.payment_method = payment_method
            if payment_reference is not None:
                bill.payment_reference = payment_reference
            if customer_id is not None:
                bill.customer_id = customer_id
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(bill)
        logger.info(f"Bill {bill.id}: {previous.value} -> {status.value}, closed {len(closed)} session(s)")
        for session in closed:
            self.sessions.notifier.notify_session_change(session.device, SessionStatus.ENDED, session)
        return bill
