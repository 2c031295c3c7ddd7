# Services module

from gamespace.services.pricing_service import (
    calculate_duration,
    calculate_price,
    calculate_session_cost,
    round_time_to_charge,
)
from gamespace.services.webhook_service import (
    WebhookNotifier,
    WebhookResult,
    WebhookRouter,
    get_notifier,
)
from gamespace.services.order_service import FoodItem, OrderService
from gamespace.services.session_service import DeviceLockRegistry, SessionService
from gamespace.services.billing_service import BillingService
from gamespace.services.customer_service import CustomerService
from gamespace.services.dashboard_service import DashboardService
