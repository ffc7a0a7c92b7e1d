"""Invitation store: creation, lookups, lifecycle tracking and cascade delete.

Lifecycle timestamps are tracked independently:
- sent_at: set once, when the admin marks the invitation as delivered
- opened_at: set once, the first time the guest follows the RSVP link
- responded_at: refreshed every time a response is recorded
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from evite.config import settings
from evite.errors import (
    DuplicatePhone,
    DuplicateToken,
    InvalidPhoneNumber,
    NotFound,
    TokenGenerationExhausted,
    TransactionFailed,
)
from evite.models.invitation import Invitation
from evite.models.response import Response
from evite.utils.phone import normalize_phone
from evite.utils.security import generate_token

logger = logging.getLogger(__name__)


@dataclass
class InvitationWithResponse:
    """Dashboard row: an invitation and its latest response, if any."""

    invitation: Invitation
    response: Optional[Response] = None


@dataclass
class RenormalizeSummary:
    total: int = 0
    updated: int = 0
    failed: int = 0

    @property
    def unchanged(self) -> int:
        return self.total - self.updated - self.failed


def _token_exists(token: str, session: Session) -> bool:
    return session.exec(
        select(Invitation.id).where(Invitation.token == token)
    ).first() is not None


def _phone_owner(phone: str, session: Session) -> Optional[int]:
    return session.exec(
        select(Invitation.id).where(Invitation.phone == phone)
    ).first()


def create_invitation(
    guest_name: str,
    phone: str,
    invite_message: str,
    session: Session,
) -> Invitation:
    """Create an invitation with a fresh unique token.

    The phone is expected in E.164 already. Up to settings.token_max_attempts
    tokens are tried; a token that exists, or loses an insert race, is
    replaced by a new one.
    """
    if _phone_owner(phone, session) is not None:
        raise DuplicatePhone(phone)

    max_attempts = settings.token_max_attempts
    for attempt in range(1, max_attempts + 1):
        token = generate_token()
        if _token_exists(token, session):
            logger.warning("Token collision on attempt %d/%d", attempt, max_attempts)
            continue

        invitation = Invitation(
            guest_name=guest_name,
            phone=phone,
            token=token,
            invite_message=invite_message,
        )
        session.add(invitation)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if _phone_owner(phone, session) is not None:
                raise DuplicatePhone(phone) from e
            if not _token_exists(token, session):
                raise TransactionFailed(f"Failed to create invitation: {e}") from e
            if attempt == max_attempts:
                raise DuplicateToken(token) from e
            logger.warning("Token insert race on attempt %d/%d", attempt, max_attempts)
            continue

        session.refresh(invitation)
        logger.info("Created invitation %d for %s", invitation.id, guest_name)
        return invitation

    raise TokenGenerationExhausted(max_attempts)


def get_invitation(invitation_id: int, session: Session) -> Invitation:
    invitation = session.get(Invitation, invitation_id)
    if not invitation:
        raise NotFound(f"Invitation {invitation_id} not found")
    return invitation


def get_invitation_by_token(token: str, session: Session) -> Invitation:
    invitation = session.exec(
        select(Invitation).where(Invitation.token == token)
    ).first()
    if not invitation:
        raise NotFound("Invitation not found for token")
    return invitation


def get_invitation_by_phone(phone: str, session: Session) -> Invitation:
    invitation = session.exec(
        select(Invitation).where(Invitation.phone == phone)
    ).first()
    if not invitation:
        raise NotFound(f"Invitation not found for {phone}")
    return invitation


def list_invitations(session: Session) -> list[Invitation]:
    """All invitations, most recently created first."""
    return list(session.exec(
        select(Invitation).order_by(
            col(Invitation.created_at).desc(), col(Invitation.id).desc()
        )
    ).all())


def _mark_once(invitation_id: int, field: str, session: Session) -> Invitation:
    """Set a lifecycle timestamp only if it is still empty.

    The emptiness check lives in the UPDATE's WHERE clause so concurrent
    callers cannot overwrite each other.
    """
    invitation = get_invitation(invitation_id, session)
    column = getattr(Invitation, field)
    try:
        session.exec(
            update(Invitation)
            .where(Invitation.id == invitation_id, column == None)  # noqa: E711
            .values({field: datetime.now(timezone.utc)})
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise TransactionFailed(f"Failed to set {field} on invitation {invitation_id}: {e}") from e
    session.refresh(invitation)
    return invitation


def mark_sent(invitation_id: int, session: Session) -> Invitation:
    """Record that the invitation was delivered. Repeated calls keep the first timestamp."""
    return _mark_once(invitation_id, "sent_at", session)


def mark_opened(invitation_id: int, session: Session) -> Invitation:
    """Record that the guest opened the RSVP link. Only the first visit counts."""
    return _mark_once(invitation_id, "opened_at", session)


def update_invitation(
    invitation_id: int,
    guest_name: str,
    phone: str,
    session: Session,
) -> Invitation:
    """Change guest name and phone. The phone must already be normalized."""
    invitation = get_invitation(invitation_id, session)

    owner = _phone_owner(phone, session)
    if owner is not None and owner != invitation_id:
        raise DuplicatePhone(phone)

    invitation.guest_name = guest_name
    invitation.phone = phone
    session.add(invitation)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise DuplicatePhone(phone) from e

    session.refresh(invitation)
    return invitation


def set_invite_message(invitation_id: int, message: str, session: Session) -> Invitation:
    invitation = get_invitation(invitation_id, session)
    invitation.invite_message = message
    session.add(invitation)
    session.commit()
    session.refresh(invitation)
    return invitation


def rsvp_link(token: str) -> str:
    return f"{settings.base_url.rstrip('/')}/rsvp/{token}"


def render_invite_template(template: str, guest_name: str) -> str:
    """Resolve the placeholders known before the invitation exists.

    Without a configured event date, lines mentioning {{EVENT_DATE}} are dropped.
    """
    if settings.event_date:
        event_date = settings.localize(settings.event_date).strftime("%d %B %Y, %H:%M")
        template = template.replace("{{EVENT_DATE}}", event_date)
    else:
        lines = [line for line in template.split("\n") if "{{EVENT_DATE}}" not in line]
        template = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
    return template.replace("{{GUEST_NAME}}", guest_name)


def finalize_invite_message(invitation: Invitation, session: Session) -> Invitation:
    """Replace {{TOKEN}} and {{RSVP_LINK}} now that the token is known."""
    message = (
        invitation.invite_message
        .replace("{{TOKEN}}", invitation.token)
        .replace("{{RSVP_LINK}}", rsvp_link(invitation.token))
    )
    if message == invitation.invite_message:
        return invitation
    return set_invite_message(invitation.id, message, session)


def delete_invitation(invitation_id: int, session: Session) -> None:
    """Delete an invitation and all of its responses in one transaction."""
    get_invitation(invitation_id, session)

    try:
        session.exec(delete(Response).where(Response.invitation_id == invitation_id))
        session.exec(delete(Invitation).where(Invitation.id == invitation_id))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise TransactionFailed(f"Failed to delete invitation {invitation_id}: {e}") from e

    logger.info("Deleted invitation %d with its responses", invitation_id)


def list_invitations_with_latest_response(session: Session) -> list[InvitationWithResponse]:
    """Every invitation joined with its latest response, newest invitation first."""
    rows = session.exec(
        select(Invitation, Response)
        .join(
            Response,
            and_(Response.invitation_id == Invitation.id, Response.is_latest == True),  # noqa: E712
            isouter=True,
        )
        .order_by(col(Invitation.created_at).desc(), col(Invitation.id).desc())
    ).all()
    return [InvitationWithResponse(invitation=inv, response=resp) for inv, resp in rows]


def renormalize_phones(session: Session) -> RenormalizeSummary:
    """Rewrite every stored phone in canonical E.164 form.

    Numbers that fail to normalize or would collide with another
    invitation are skipped and counted as failed.
    """
    summary = RenormalizeSummary()
    for invitation in list_invitations(session):
        summary.total += 1
        try:
            normalized = normalize_phone(invitation.phone)
        except InvalidPhoneNumber as e:
            logger.warning("Failed to normalize phone for invitation %d: %s", invitation.id, e)
            summary.failed += 1
            continue

        if normalized == invitation.phone:
            continue

        try:
            update_invitation(invitation.id, invitation.guest_name, normalized, session)
        except DuplicatePhone:
            logger.warning(
                "Normalized phone %s for invitation %d belongs to another invitation",
                normalized, invitation.id,
            )
            summary.failed += 1
            continue

        logger.info("Normalized phone for invitation %d -> %s", invitation.id, normalized)
        summary.updated += 1

    return summary
