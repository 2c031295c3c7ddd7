"""Gameplay session routes."""

from typing import List

from fastapi import APIRouter, Query, Request

from gamespace.core.rate_limit import limiter
from gamespace.db.session import DbSession
from gamespace.schemas.session import (
    SessionCommentsUpdate,
    SessionFramesUpdate,
    SessionPlayersUpdate,
    SessionResponse,
    SessionStart,
)
from gamespace.schemas.token import TokenResponse
from gamespace.services.session_service import SessionService

router = APIRouter()


@router.post("/sessions/", response_model=SessionResponse, status_code=201)
@limiter.limit("30/minute")
def start_session(request: Request, db: DbSession, data: SessionStart):
    return SessionService(db).start_session(
        device_id=data.device_id,
        player_count=data.player_count,
        token_no=data.token_no,
        order_id=data.order_id,
        comments=data.comments,
    )


@router.post("/sessions/{session_id}/end", response_model=SessionResponse)
@limiter.limit("30/minute")
def end_session(request: Request, db: DbSession, session_id: int):
    return SessionService(db).end_session(session_id)


@router.get("/sessions/", response_model=List[SessionResponse])
@limiter.limit("60/minute")
def list_sessions(request: Request, db: DbSession, limit: int = Query(200, ge=1, le=1000)):
    return SessionService(db).list_sessions(limit=limit)


@router.get("/sessions/today", response_model=List[TokenResponse])
@limiter.limit("60/minute")
def list_today_sessions(request: Request, db: DbSession):
    """Today's tokens with their sessions, orders and bills."""
    return SessionService(db).list_today_tokens()


@router.patch("/sessions/{session_id}/comments", response_model=SessionResponse)
@limiter.limit("30/minute")
def update_comments(request: Request, db: DbSession, session_id: int, data: SessionCommentsUpdate):
    return SessionService(db).update_comments(session_id, data.comments)


@router.patch("/sessions/{session_id}/players", response_model=SessionResponse)
@limiter.limit("30/minute")
def update_player_count(request: Request, db: DbSession, session_id: int, data: SessionPlayersUpdate):
    return SessionService(db).update_player_count(session_id, data.player_count)


@router.patch("/sessions/{session_id}/frames", response_model=SessionResponse)
@limiter.limit("30/minute")
def update_frames_played(request: Request, db: DbSession, session_id: int, data: SessionFramesUpdate):
    return SessionService(db).update_frames_played(session_id, data.frames_played, data.comments)
