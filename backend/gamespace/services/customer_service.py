"""Customer directory for bills carried as DUE."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gamespace.core.errors import NotFoundError, ValidationError
from gamespace.models import Bill, Customer, PaymentStatus

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    def create_customer(
        self, name: str, phone: Optional[str] = None, email: Optional[str] = None
    ) -> Customer:
        if not name or not name.strip():
            raise ValidationError("Customer name is required")
        customer = Customer(name=name.strip(), phone=phone or None, email=email or None)
        try:
            self.db.add(customer)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} ({customer.name})")
        return customer

    def list_customers(self) -> List[Customer]:
        return self.db.query(Customer).order_by(Customer.name).all()

    def list_customers_with_due_bills(self) -> List[Customer]:
        """Customers holding at least one DUE bill, by name."""
        return (
            self.db.query(Customer)
            .filter(Customer.bills.any(Bill.status == PaymentStatus.DUE))
            .order_by(Customer.name)
            .all()
        )
