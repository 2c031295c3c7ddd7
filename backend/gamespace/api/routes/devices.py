"""Device roster routes."""

from typing import List

from fastapi import APIRouter, Request

from gamespace.core.rate_limit import limiter
from gamespace.db.session import DbSession
from gamespace.schemas.device import DeviceResponse
from gamespace.services.session_service import SessionService

router = APIRouter()


@router.get("/devices/", response_model=List[DeviceResponse])
@limiter.limit("60/minute")
def list_devices(request: Request, db: DbSession):
    return SessionService(db).list_devices()


@router.get("/devices/available", response_model=List[DeviceResponse])
@limiter.limit("60/minute")
def list_available_devices(request: Request, db: DbSession):
    """Devices free to start a session on right now."""
    return SessionService(db).get_available_devices()
