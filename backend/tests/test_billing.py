"""Bill generation and payment workflow tests."""

from decimal import Decimal

import pytest

from gamespace.core.errors import NotFoundError, ValidationError
from gamespace.models import GameSession, OrderStatus, PaymentStatus, SessionStatus, Token
from gamespace.services.customer_service import CustomerService
from gamespace.services.order_service import FoodItem


@pytest.fixture
def customer(db_session):
    return CustomerService(db_session).create_customer("Ravi", phone="9800000000")


@pytest.fixture
def running_order(session_service, devices, backdate):
    """An order with one ended PS5 hour and a Frame game still running."""
    ps5 = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
    backdate(ps5, 60)
    session_service.end_session(ps5.id)
    session_service.start_session(devices["FRAME 1"].id, 2, token_no=1, order_id=ps5.order_id)
    return ps5.order


class TestGenerateBill:
    def test_generate_for_order(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        assert bill.status == PaymentStatus.PENDING
        assert bill.amount == Decimal("220.00")
        assert bill.order_id == running_order.id
        assert bill.token_id == running_order.token_id

    def test_regenerate_refreshes_pending_bill(self, billing_service, order_service, running_order):
        first = billing_service.generate_bill_for_order(running_order.id)
        order_service.add_food_items(running_order.id, [FoodItem("Coke", Decimal("20"), 1)])
        second = billing_service.generate_bill_for_order(running_order.id)
        assert second.id == first.id
        assert second.amount == Decimal("240.00")

    def test_unknown_order(self, billing_service):
        with pytest.raises(NotFoundError):
            billing_service.generate_bill_for_order(77)

    def test_token_bills_include_orderless_sessions(self, db_session, billing_service, devices, running_order):
        legacy = GameSession(
            token_id=running_order.token_id,
            device_id=devices["PS5 3"].id,
            player_count=1,
            status=SessionStatus.ENDED,
            cost=Decimal("80"),
        )
        db_session.add(legacy)
        db_session.commit()

        bills = billing_service.generate_bills_for_token(running_order.token_id)
        amounts = sorted((b.order_id is None, b.amount) for b in bills)
        assert amounts == [(False, Decimal("220.00")), (True, Decimal("80.00"))]

    def test_token_with_nothing_billable(self, db_session, billing_service, order_service):
        token = Token(token_no=5)
        db_session.add(token)
        db_session.commit()
        order_service.create_order(token.id)
        with pytest.raises(ValidationError):
            billing_service.generate_bills_for_token(token.id)
        assert billing_service.list_bills() == []

    def test_token_skips_paid_order(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        with pytest.raises(ValidationError):
            billing_service.generate_bills_for_token(running_order.token_id)
        assert [b.id for b in billing_service.list_bills()] == [bill.id]

    def test_token_skips_settled_orderless_sessions(self, db_session, billing_service, devices):
        token = Token(token_no=9)
        db_session.add(token)
        db_session.flush()
        db_session.add(GameSession(
            token_id=token.id,
            device_id=devices["PS5 5"].id,
            player_count=1,
            status=SessionStatus.ENDED,
            cost=Decimal("120"),
        ))
        db_session.commit()

        [bill] = billing_service.generate_bills_for_token(token.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        with pytest.raises(ValidationError):
            billing_service.generate_bills_for_token(token.id)
        assert len(billing_service.list_bills()) == 1


class TestUpdateBillStatus:
    def test_paid_closes_sessions_and_completes_order(self, db_session, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        paid = billing_service.update_bill_status(
            bill.id, PaymentStatus.PAID, amount_received=Decimal("250"), payment_method="cash"
        )
        assert paid.status == PaymentStatus.PAID
        assert paid.paid_at is not None
        assert paid.amount_received == Decimal("250.00")
        assert paid.payment_method == "cash"

        db_session.refresh(running_order)
        assert running_order.status == OrderStatus.COMPLETED
        assert running_order.end_time is not None
        assert all(s.status == SessionStatus.ENDED for s in running_order.sessions)
        frame = next(s for s in running_order.sessions if s.device.label == "FRAME 1")
        assert frame.cost == Decimal("100.00")

    def test_repeat_paid_is_idempotent(self, db_session, billing_service, running_order, webhook_calls):
        bill = billing_service.generate_bill_for_order(running_order.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        db_session.refresh(running_order)
        end_time = running_order.end_time
        ended_calls = len(webhook_calls)

        again = billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        db_session.refresh(running_order)
        assert again.status == PaymentStatus.PAID
        assert running_order.end_time == end_time
        assert len(webhook_calls) == ended_calls

    def test_corrected_amount_kept_separately(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        paid = billing_service.update_bill_status(
            bill.id, PaymentStatus.PAID, corrected_amount=Decimal("200")
        )
        assert paid.amount == Decimal("220.00")
        assert paid.corrected_amount == Decimal("200.00")
        assert paid.payable_amount == Decimal("200.00")

    def test_due_requires_customer(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        with pytest.raises(ValidationError):
            billing_service.update_bill_status(bill.id, PaymentStatus.DUE)
        assert billing_service.get_bill(bill.id).status == PaymentStatus.PENDING

    def test_due_with_unknown_customer(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        with pytest.raises(NotFoundError):
            billing_service.update_bill_status(bill.id, PaymentStatus.DUE, customer_id=404)

    def test_due_then_paid(self, billing_service, running_order, customer):
        bill = billing_service.generate_bill_for_order(running_order.id)
        due = billing_service.update_bill_status(bill.id, PaymentStatus.DUE, customer_id=customer.id)
        assert due.status == PaymentStatus.DUE
        assert due.customer_id == customer.id
        assert due.paid_at is None

        paid = billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        assert paid.status == PaymentStatus.PAID
        assert paid.paid_at is not None

    def test_no_return_to_pending(self, billing_service, running_order):
        bill = billing_service.generate_bill_for_order(running_order.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        with pytest.raises(ValidationError):
            billing_service.update_bill_status(bill.id, PaymentStatus.PENDING)

    def test_paid_cannot_become_due(self, billing_service, running_order, customer):
        bill = billing_service.generate_bill_for_order(running_order.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        with pytest.raises(ValidationError):
            billing_service.update_bill_status(bill.id, PaymentStatus.DUE, customer_id=customer.id)

    def test_legacy_bill_closes_orderless_sessions(self, db_session, billing_service, devices, backdate):
        token = Token(token_no=8)
        db_session.add(token)
        db_session.flush()
        legacy = GameSession(
            token_id=token.id,
            device_id=devices["PS5 4"].id,
            player_count=1,
            status=SessionStatus.ACTIVE,
        )
        db_session.add(legacy)
        db_session.commit()
        backdate(legacy, 30)

        [bill] = billing_service.generate_bills_for_token(token.id)
        assert bill.order_id is None
        assert bill.amount == Decimal("80.00")

        billing_service.update_bill_status(bill.id, PaymentStatus.PAID)
        db_session.refresh(legacy)
        assert legacy.status == SessionStatus.ENDED
        assert legacy.cost == Decimal("80.00")


class TestUnpaidBills:
    def test_unpaid_lists_pending_and_due(self, billing_service, session_service, devices, customer):
        first = session_service.start_session(devices["PS5 1"].id, 1, token_no=1)
        second = session_service.start_session(devices["PS5 2"].id, 1, token_no=2)
        third = session_service.start_session(devices["PS5 3"].id, 1, token_no=3)
        pending = billing_service.generate_bill_for_order(first.order_id)
        due = billing_service.generate_bill_for_order(second.order_id)
        paid = billing_service.generate_bill_for_order(third.order_id)
        billing_service.update_bill_status(due.id, PaymentStatus.DUE, customer_id=customer.id)
        billing_service.update_bill_status(paid.id, PaymentStatus.PAID)

        unpaid_ids = {b.id for b in billing_service.list_unpaid_bills()}
        assert unpaid_ids == {pending.id, due.id}

    def test_customers_with_due_bills(self, db_session, billing_service, running_order, customer):
        other = CustomerService(db_session).create_customer("Anita")
        bill = billing_service.generate_bill_for_order(running_order.id)
        billing_service.update_bill_status(bill.id, PaymentStatus.DUE, customer_id=customer.id)

        customers = CustomerService(db_session).list_customers_with_due_bills()
        assert [c.id for c in customers] == [customer.id]
        assert [b.id for b in customers[0].due_bills] == [bill.id]
        assert other.id not in {c.id for c in customers}
