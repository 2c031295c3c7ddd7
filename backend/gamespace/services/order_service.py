"""Order Service - groups a visit's sessions and food under one order.

An order belongs to a token and collects:
- gameplay sessions started against it
- food line items (name, unit price, quantity) in entry order

Older orders carried their food in the notes field as
``Food items: 2x Coke (₹20)|1x Fries (₹50)``. That section is still accepted
on input and migrated into line items; ``format_food_items`` renders the same
text for receipts.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from gamespace.core.errors import NotFoundError, ValidationError
from gamespace.core.timeutils import local_date_of, start_of_business_day, utcnow
from gamespace.models import (
    FoodLineItem,
    GameSession,
    Order,
    OrderStatus,
    Token,
)
from gamespace.models.validators import to_money
from gamespace.services.pricing_service import PricingError, calculate_session_cost

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "GSO"
PRICE_MATCH_TOLERANCE = Decimal("0.01")

_FOOD_SECTION = re.compile(r"Food items:(.*?)(?:,|\n|$)")
_FOOD_ITEM = re.compile(r"(\d+)x\s*(.*?)\s*\(₹(\d+(?:\.\d+)?)\)")


@dataclass
class FoodItem:
    """A food line as entered at the counter."""

    name: str
    price: Decimal
    quantity: int = 1

    @property
    def total(self) -> Decimal:
        return to_money(self.price) * self.quantity


def normalize_food_name(name: str) -> str:
    """Merge key for food lines: "Coke - Large" and "coke" are the same item."""
    return name.split("-", 1)[0].strip().lower()


def parse_food_items_from_notes(notes: Optional[str]) -> Tuple[List[FoodItem], str]:
    """Split legacy notes into parsed food items and the remaining free text.

    Malformed entries inside the section are dropped.
    """
    if not notes:
        return [], notes or ""

    match = _FOOD_SECTION.search(notes)
    if not match:
        return [], notes

    items: List[FoodItem] = []
    for raw in match.group(1).strip().split("|"):
        item_match = _FOOD_ITEM.search(raw)
        if not item_match:
            continue
        quantity = int(item_match.group(1))
        if quantity < 1:
            continue
        try:
            price = to_money(item_match.group(3))
        except InvalidOperation:
            continue
        items.append(FoodItem(name=item_match.group(2).strip(), price=price, quantity=quantity))

    remaining = (notes[: match.start()] + notes[match.end():]).strip().strip(",").strip()
    return items, remaining


def _format_price(price: Decimal) -> str:
    price = to_money(price)
    if price == price.to_integral_value():
        return str(int(price))
    return str(price)


def format_food_items(items: Iterable) -> str:
    """Render food lines in the receipt format ``2x Coke (₹20)|1x Fries (₹50)``.

    Accepts FoodItem or FoodLineItem objects.
    """
    parts = []
    for item in items:
        price = item.unit_price if isinstance(item, FoodLineItem) else item.price
        parts.append(f"{item.quantity}x {item.name} (₹{_format_price(price)})")
    return "|".join(parts)


def _check_food_item(item: FoodItem, allow_zero: bool = False) -> None:
    if not item.name or not item.name.strip():
        raise ValidationError("Food item name is required")
    if item.quantity < 0 or (item.quantity == 0 and not allow_zero):
        raise ValidationError(f"Quantity for {item.name} must be at least 1")
    if to_money(item.price) < 0:
        raise ValidationError(f"Price for {item.name} cannot be negative")


class OrderService:
    """Creates orders, maintains their food lines and computes live totals."""

    def __init__(self, db: Session):
        self.db = db

    # ===== LOOKUPS =====

    def get_order(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def get_token(self, token_id: int) -> Token:
        token = self.db.query(Token).filter(Token.id == token_id).first()
        if not token:
            raise NotFoundError("Token", token_id)
        return token

    def list_active_orders(self) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status == OrderStatus.ACTIVE)
            .order_by(Order.start_time.desc())
            .all()
        )

    def list_orders(self, status: Optional[OrderStatus] = None, limit: int = 100) -> List[Order]:
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        return query.order_by(Order.start_time.desc()).limit(limit).all()

    # ===== NUMBERING =====

    def next_order_number(self, now: Optional[datetime] = None) -> str:
        """``GSO-YYYYMMDD-NNNN``, numbered per business day."""
        now = now or utcnow()
        day_start = start_of_business_day(now)
        date_part = local_date_of(now).strftime("%Y%m%d")
        seq = (
            self.db.query(func.count(Order.id))
            .filter(Order.created_at >= day_start)
            .scalar()
        ) or 0
        while True:
            seq += 1
            number = f"{ORDER_NUMBER_PREFIX}-{date_part}-{seq:04d}"
            exists = self.db.query(Order.id).filter(Order.order_number == number).first()
            if not exists:
                return number

    def next_token_number(self, now: Optional[datetime] = None) -> int:
        """Next free token number for today."""
        day_start = start_of_business_day(now)
        highest = (
            self.db.query(func.max(Token.token_no))
            .filter(Token.created_at >= day_start)
            .scalar()
        )
        return (highest or 0) + 1

    # ===== CREATION =====

    def build_order(
        self,
        token: Token,
        notes: Optional[str] = None,
        food_items: Optional[Iterable[FoodItem]] = None,
    ) -> Order:
        """Add a new ACTIVE order to the session without committing."""
        legacy_items, notes = parse_food_items_from_notes(notes)
        order = Order(
            order_number=self.next_order_number(),
            token=token,
            status=OrderStatus.ACTIVE,
            start_time=utcnow(),
            notes=notes or None,
        )
        self.db.add(order)
        self._merge_items(order, list(legacy_items) + list(food_items or []))
        self.db.flush()
        logger.info(f"Created order {order.order_number} for token {token.token_no}")
        return order

    def create_order(
        self,
        token_id: int,
        notes: Optional[str] = None,
        food_items: Optional[Iterable[FoodItem]] = None,
    ) -> Order:
        token = self.get_token(token_id)
        try:
            order = self.build_order(token, notes=notes, food_items=food_items)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def create_food_order(self, food_items: Iterable[FoodItem], notes: Optional[str] = None) -> Order:
        """Open a food-only visit: a fresh token of the day and an order holding the items."""
        items = list(food_items)
        if not items:
            raise ValidationError("At least one food item is required")
        try:
            token = Token(token_no=self.next_token_number())
            self.db.add(token)
            self.db.flush()
            order = self.build_order(token, notes=notes, food_items=items)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(f"Food order {order.order_number} opened on token {token.token_no}")
        return order

    # ===== FOOD LINES =====

    def _merge_items(self, order: Order, items: Iterable[FoodItem]) -> None:
        for item in items:
            _check_food_item(item)
            price = to_money(item.price)
            key = normalize_food_name(item.name)
            for line in order.food_items:
                if (
                    normalize_food_name(line.name) == key
                    and abs(Decimal(line.unit_price) - price) < PRICE_MATCH_TOLERANCE
                ):
                    line.quantity += item.quantity
                    break
            else:
                order.food_items.append(
                    FoodLineItem(
                        name=item.name.strip(),
                        unit_price=price,
                        quantity=item.quantity,
                        position=len(order.food_items),
                    )
                )

    def add_food_items(self, order_id: int, items: Iterable[FoodItem]) -> Order:
        """Merge items into the order's food lines.

        Lines match on normalized name and a price within 0.01; matching lines
        have their quantities summed, anything else is appended.
        """
        order = self.get_order(order_id)
        try:
            legacy_items, remaining = parse_food_items_from_notes(order.notes)
            if legacy_items:
                order.notes = remaining or None
                self._merge_items(order, legacy_items)
            self._merge_items(order, items)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(f"Food items added to order {order.order_number}")
        return order

    def replace_food_items(self, order_id: int, items: Iterable[FoodItem]) -> Order:
        """Replace the order's food lines wholesale; zero-quantity lines are dropped."""
        order = self.get_order(order_id)
        items = list(items)
        for item in items:
            _check_food_item(item, allow_zero=True)
        try:
            order.food_items.clear()
            self.db.flush()
            for item in items:
                if item.quantity == 0:
                    continue
                order.food_items.append(
                    FoodLineItem(
                        name=item.name.strip(),
                        unit_price=to_money(item.price),
                        quantity=item.quantity,
                        position=len(order.food_items),
                    )
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(f"Food items replaced on order {order.order_number}")
        return order

    # ===== STATUS =====

    def update_order_status(
        self, order_id: int, status: OrderStatus, notes: Optional[str] = None
    ) -> Order:
        order = self.get_order(order_id)
        try:
            self.set_status(order, status)
            if notes is not None:
                order.notes = notes
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def set_status(self, order: Order, status: OrderStatus) -> None:
        """Move an order to ``status``; COMPLETED stamps the end time once."""
        if order.status == status:
            return
        order.status = status
        if status == OrderStatus.COMPLETED and order.end_time is None:
            order.end_time = utcnow()
        logger.info(f"Order {order.order_number} -> {status.value}")

    # ===== TOTALS =====

    def sessions_total(self, sessions: Iterable[GameSession], now: Optional[datetime] = None) -> Decimal:
        """Sum session costs; sessions that cannot be priced are skipped."""
        total = Decimal("0.00")
        for session in sessions:
            if session.device is None:
                logger.warning(f"Session {session.id} has no device record; skipped in total")
                continue
            try:
                total += calculate_session_cost(session, now)
            except PricingError as e:
                logger.warning(f"Session {session.id} skipped in total: {e}")
        return total

    def compute_order_total(self, order: Order, now: Optional[datetime] = None) -> Decimal:
        """Live total: session costs plus the food subtotal."""
        now = now or utcnow()
        return to_money(self.sessions_total(order.sessions, now) + order.food_subtotal)
