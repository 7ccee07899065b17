"""
Session Schemas

Pydantic models for the access-session API.
"""

# Standard library
from typing import Literal

# Third-party
from pydantic import BaseModel


class SessionStartResponse(BaseModel):
    """
    Response model for a new access session.

    Attributes:
        session_id: Token to send as X-Session-Token once approved.
        auth_code: Short code the operator matches before approving.
        status: Always "pending" for a new session.
    """
    session_id: str
    auth_code: str
    status: Literal["pending", "approved", "denied"] = "pending"


class SessionStatusResponse(BaseModel):
    session_id: str
    status: Literal["pending", "approved", "denied"]
    access: Literal["allowed", "pending", "denied"]
    message: str
