"""Response store: append-only RSVP history with a single latest answer.

A guest changing their mind submits a new response; older ones are kept
with is_latest cleared.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from evite.errors import InvitationNotFound, NotFound, TransactionFailed
from evite.models.invitation import Invitation
from evite.models.response import Response

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def create_response(
    invitation_id: int,
    attending: bool,
    plus_one: bool,
    plus_one_name: Optional[str],
    guest_name_tag: str,
    kids_count: int,
    menu_preference: Optional[str],
    companion_menu_preference: Optional[str],
    comment: Optional[str],
    session: Session,
) -> Response:
    """Record a new response and make it the invitation's latest.

    Demoting earlier responses, inserting the new one and touching the
    invitation's responded_at commit together or not at all.
    """
    if kids_count < 0:
        raise ValueError("kids_count must be non-negative")

    if session.get(Invitation, invitation_id) is None:
        raise InvitationNotFound(f"Invitation {invitation_id} not found")

    now = datetime.now(timezone.utc)
    response = Response(
        invitation_id=invitation_id,
        attending=attending,
        plus_one=plus_one,
        plus_one_name=_blank_to_none(plus_one_name),
        guest_name_tag=guest_name_tag,
        kids_count=kids_count,
        menu_preference=_blank_to_none(menu_preference),
        companion_menu_preference=_blank_to_none(companion_menu_preference),
        comment=_blank_to_none(comment),
        submitted_at=now,
        is_latest=True,
    )

    try:
        session.exec(
            update(Response)
            .where(Response.invitation_id == invitation_id)
            .values(is_latest=False)
        )
        session.add(response)
        session.flush()
        session.exec(
            update(Invitation)
            .where(Invitation.id == invitation_id)
            .values(responded_at=now)
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise TransactionFailed(f"Failed to record response for invitation {invitation_id}: {e}") from e

    session.refresh(response)
    logger.info(
        "Recorded response %d for invitation %d (attending=%s)",
        response.id, invitation_id, attending,
    )
    return response


def get_response(response_id: int, session: Session) -> Response:
    response = session.get(Response, response_id)
    if not response:
        raise NotFound(f"Response {response_id} not found")
    return response


def get_latest_response(invitation_id: int, session: Session) -> Optional[Response]:
    """The invitation's current answer, or None if the guest has not replied."""
    return session.exec(
        select(Response).where(
            Response.invitation_id == invitation_id,
            Response.is_latest == True,  # noqa: E712
        )
    ).first()


def list_responses(invitation_id: int, session: Session) -> list[Response]:
    """Full response history for an invitation, newest first."""
    return list(session.exec(
        select(Response)
        .where(Response.invitation_id == invitation_id)
        .order_by(col(Response.submitted_at).desc(), col(Response.id).desc())
    ).all())
