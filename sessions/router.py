"""
Sessions Router

Start, poll and decide access sessions.
"""

# Standard library
import logging

# Third-party
from fastapi import APIRouter, Depends

# Local application
from core.auth import (
    InMemorySessionGate,
    SessionGate,
    get_session_gate,
    require_admin,
)
from core.errors import AppError, ErrorCode, not_found
from sessions.schemas import SessionStartResponse, SessionStatusResponse

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_MESSAGES = {
    "pending": "Waiting for operator approval",
    "approved": "Access granted",
    "denied": "Access denied",
}


def _require_decidable(gate: SessionGate) -> InMemorySessionGate:
    if not isinstance(gate, InMemorySessionGate):
        raise AppError(
            code=ErrorCode.BAD_REQUEST,
            message="Active session gate does not support manual decisions",
            status_code=400,
        )
    return gate


def _status_response(gate: InMemorySessionGate, session_id: str) -> SessionStatusResponse:
    session = gate.get(session_id)
    if session is None:
        raise not_found("Session not found or expired", session_id=session_id)
    return SessionStatusResponse(
        session_id=session.session_id,
        status=session.status,
        access=gate.check(session_id),
        message=_STATUS_MESSAGES[session.status],
    )


@router.post("", response_model=SessionStartResponse, status_code=201)
async def start_session(gate: SessionGate = Depends(get_session_gate)) -> SessionStartResponse:
    """Creates a pending session and returns its id and auth code."""
    session_id, auth_code = gate.start_session()
    return SessionStartResponse(session_id=session_id, auth_code=auth_code)


@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session(
    session_id: str, gate: SessionGate = Depends(get_session_gate)
) -> SessionStatusResponse:
    """
    Polls a session.

    Raises:
        AppError: 404 if the session is unknown or expired.
    """
    return _status_response(_require_decidable(gate), session_id)


@router.post("/{session_id}/approve", response_model=SessionStatusResponse)
async def approve_session(
    session_id: str,
    _admin: None = Depends(require_admin),
    gate: SessionGate = Depends(get_session_gate),
) -> SessionStatusResponse:
    gate = _require_decidable(gate)
    gate.approve(session_id)
    logger.info(f"Session {session_id} approved by operator")
    return _status_response(gate, session_id)


@router.post("/{session_id}/deny", response_model=SessionStatusResponse)
async def deny_session(
    session_id: str,
    _admin: None = Depends(require_admin),
    gate: SessionGate = Depends(get_session_gate),
) -> SessionStatusResponse:
    gate = _require_decidable(gate)
    gate.deny(session_id)
    logger.info(f"Session {session_id} denied by operator")
    return _status_response(gate, session_id)
