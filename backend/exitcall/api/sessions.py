from fastapi import APIRouter, HTTPException
from typing import Optional
import logging

from ..constants import SESSION_STATUSES
from ..db import get_db
from ..errors import InvalidTransition, SessionNotFound, StoreUnavailable
from ..schemas.pydantic_schemas import CallStartRequest, CallStartResponse, SessionRead, SessionListResponse
from ..services.call_session import get_call_machine
from ..services.screens import HomeScreen

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, SessionNotFound):
        return HTTPException(status_code=404, detail="Session not found")
    if isinstance(e, InvalidTransition):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=503, detail="Call session storage is unavailable, please try again")


@router.post("/start", status_code=202, response_model=CallStartResponse)
async def start_call(payload: Optional[CallStartRequest] = None):
    try:
        handle = await HomeScreen(get_call_machine()).start_call(payload)
    except StoreUnavailable as e:
        logger.error(f"Could not start call: {e}")
        raise _http_error(e)
    return {
        "session_id": handle.session_id,
        "caller": handle.caller,
        "status": handle.session["status"],
        "delay_seconds": handle.delay_seconds,
        "ringtone_url": handle.ringtone_url,
    }


@router.get("/", response_model=SessionListResponse)
async def list_sessions(status: Optional[str] = None):
    if status and status not in SESSION_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(SESSION_STATUSES)}")
    try:
        items = get_db().list_sessions(status=status)
    except StoreUnavailable as e:
        raise _http_error(e)
    return {"items": items, "total": len(items)}


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(session_id: str):
    try:
        session = get_db().get_session(session_id)
    except StoreUnavailable as e:
        raise _http_error(e)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/{session_id}/accept", response_model=SessionRead)
async def accept_call(session_id: str):
    try:
        return await get_call_machine().accept(session_id)
    except (SessionNotFound, InvalidTransition, StoreUnavailable) as e:
        raise _http_error(e)


@router.post("/{session_id}/decline", response_model=SessionRead)
async def decline_call(session_id: str):
    try:
        return await get_call_machine().decline(session_id)
    except (SessionNotFound, InvalidTransition, StoreUnavailable) as e:
        raise _http_error(e)


@router.post("/{session_id}/end", response_model=SessionRead)
async def end_call(session_id: str):
    try:
        return await get_call_machine().end_call(session_id)
    except (SessionNotFound, InvalidTransition, StoreUnavailable) as e:
        raise _http_error(e)
