"""API routes."""

from fastapi import APIRouter

from gamespace.api.routes import bills, customers, dashboard, devices, orders, sessions

api_router = APIRouter()

api_router.include_router(devices.router, tags=["devices"])
api_router.include_router(sessions.router, tags=["sessions"])
api_router.include_router(orders.router, tags=["orders"])
api_router.include_router(bills.router, tags=["bills"])
api_router.include_router(customers.router, tags=["customers"])
api_router.include_router(dashboard.router, tags=["dashboard"])
