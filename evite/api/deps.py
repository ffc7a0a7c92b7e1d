"""Common API dependencies: admin session extraction and helpers."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from evite.config import settings
from evite.models.invitation import Invitation
from evite.models.response import Response
from evite.schemas.invitation import InvitationOut, ResponseOut
from evite.services.invitation_service import rsvp_link
from evite.utils.security import decode_token

bearer_scheme = HTTPBearer()


@dataclass
class Admin:
    email: str
    name: str = ""


def require_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Admin:
    """Validate the admin session token and the email allow-list."""
    try:
        payload = decode_token(credentials.credentials)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type") != "admin":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    email = payload.get("sub", "")
    if email not in settings.admin_email_list:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return Admin(email=email, name=payload.get("name", ""))


def invitation_to_out(invitation: Invitation) -> InvitationOut:
    return InvitationOut(
        id=invitation.id,
        guest_name=invitation.guest_name,
        phone=invitation.phone,
        token=invitation.token,
        invite_message=invitation.invite_message,
        rsvp_link=rsvp_link(invitation.token),
        sent_at=invitation.sent_at,
        opened_at=invitation.opened_at,
        responded_at=invitation.responded_at,
        created_at=invitation.created_at,
    )


def response_to_out(response: Response) -> ResponseOut:
    return ResponseOut.model_validate(response, from_attributes=True)
