"""
Centralized Access Gate

Job-starting endpoints are only open to approved sessions. A client starts a
session, receives a short auth code, and waits until an operator approves
or denies it. The session id doubles as the access token.
"""

# Standard library
import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Protocol, Tuple, runtime_checkable

# Third-party
from fastapi import Depends, Header, Request

# Local application
from core.config import Settings
from core.errors import AppError, ErrorCode

# Configure logging
logger = logging.getLogger(__name__)

SessionStatus = Literal["pending", "approved", "denied"]
AccessDecision = Literal["allowed", "pending", "denied"]

SESSION_TIMEOUT_SECONDS = 24 * 60 * 60
_AUTH_CODE_ALPHABET = string.ascii_uppercase + string.digits
_AUTH_CODE_LENGTH = 6


@dataclass
class AuthSession:
    session_id: str
    auth_code: str
    status: SessionStatus = "pending"
    created_at: float = field(default_factory=time.time)


@runtime_checkable
class SessionGate(Protocol):
    """Approval gate collaborator."""

    def start_session(self) -> Tuple[str, str]:
        """Create a pending session; return (session_id, auth_code)."""

    def check(self, token: str) -> AccessDecision:
        """Classify a token as allowed, pending or denied."""


class InMemorySessionGate:
    """Process-local sessions with a fixed lifetime."""

    def __init__(
        self,
        timeout_seconds: float = SESSION_TIMEOUT_SECONDS,
        clock=time.time,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._sessions: Dict[str, AuthSession] = {}

    def start_session(self) -> Tuple[str, str]:
        self.cleanup_expired()
        session_id = f"sess_{secrets.token_hex(8)}"
        auth_code = "".join(
            secrets.choice(_AUTH_CODE_ALPHABET) for _ in range(_AUTH_CODE_LENGTH)
        )
        self._sessions[session_id] = AuthSession(
            session_id=session_id,
            auth_code=auth_code,
            created_at=self._clock(),
        )
        logger.info(f"New auth session: {session_id}")
        return session_id, auth_code

    def get(self, session_id: str) -> Optional[AuthSession]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._is_expired(session):
            del self._sessions[session_id]
            logger.info(f"Auth session expired: {session_id}")
            return None
        return session

    def check(self, token: str) -> AccessDecision:
        session = self.get(token)
        if session is None or session.status == "denied":
            return "denied"
        if session.status == "approved":
            return "allowed"
        return "pending"

    def approve(self, session_id: str) -> AuthSession:
        return self._decide(session_id, "approved")

    def deny(self, session_id: str) -> AuthSession:
        return self._decide(session_id, "denied")

    def _decide(self, session_id: str, status: SessionStatus) -> AuthSession:
        session = self.get(session_id)
        if session is None:
            raise AppError(
                code=ErrorCode.NOT_FOUND,
                message="Session not found or expired",
                status_code=404,
                details={"session_id": session_id},
            )
        session.status = status
        logger.info(f"Auth session {session_id} {status}")
        return session

    def cleanup_expired(self) -> int:
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s)]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def _is_expired(self, session: AuthSession) -> bool:
        return self._clock() - session.created_at > self.timeout_seconds


def get_session_gate(request: Request) -> SessionGate:
    return request.app.state.services.session_gate


def get_app_settings(request: Request) -> Settings:
    return request.app.state.services.settings


async def require_allowed_session(
    x_session_token: Optional[str] = Header(None),
    gate: SessionGate = Depends(get_session_gate),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """
    Dependency guarding job-starting endpoints.

    Set DEV_MODE=true in environment to bypass the gate for testing.

    Returns:
        The session token (or "dev-session" in DEV_MODE).

    Raises:
        AppError: 401 if the header is missing, 403 if pending or denied.
    """
    # Dev mode bypass (for testing only)
    if settings.dev_mode:
        logger.warning("DEV_MODE enabled - skipping session gate")
        return "dev-session"

    if not x_session_token:
        raise AppError(
            code=ErrorCode.UNAUTHORIZED,
            message="Missing X-Session-Token header",
            status_code=401,
        )

    decision = gate.check(x_session_token)
    if decision == "allowed":
        return x_session_token

    message = (
        "Session is waiting for approval"
        if decision == "pending"
        else "Session denied or expired"
    )
    raise AppError(
        code=ErrorCode.FORBIDDEN,
        message=message,
        status_code=403,
        details={"access": decision},
    )


async def require_admin(
    x_admin_token: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Guards approve/deny. Without ADMIN_TOKEN configured only DEV_MODE may decide."""
    if settings.admin_token and x_admin_token and secrets.compare_digest(
        x_admin_token, settings.admin_token
    ):
        return
    if settings.dev_mode and not settings.admin_token:
        return
    raise AppError(
        code=ErrorCode.FORBIDDEN,
        message="Admin token required",
        status_code=403,
    )
