"""Public guest-facing endpoints: event info, invitation view, RSVP submit."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from evite.api.deps import response_to_out
from evite.config import settings
from evite.database import get_session
from evite.errors import (
    DuplicatePhone,
    EviteError,
    InvalidPhoneNumber,
    NotFound,
)
from evite.schemas.rsvp import EventResponse, PublicInvitation, RSVPRequest, RSVPResponse
from evite.services.invitation_service import (
    create_invitation,
    get_invitation_by_phone,
    get_invitation_by_token,
    mark_opened,
)
from evite.services.response_service import create_response, get_latest_response
from evite.utils.phone import normalize_phone

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rsvp"])


@router.get("/event", response_model=EventResponse)
def get_event():
    """Event details and whether RSVPs are still accepted."""
    return EventResponse(
        name=settings.event_name,
        event_date=settings.localize(settings.event_date) if settings.event_date else None,
        rsvp_deadline=settings.localize(settings.rsvp_deadline) if settings.rsvp_deadline else None,
        rsvp_closed=settings.rsvp_closed(),
        church_name=settings.church_name,
        church_address=settings.church_address,
        restaurant_name=settings.restaurant_name,
        restaurant_address=settings.restaurant_address,
    )


@router.get("/rsvp/{token}", response_model=PublicInvitation)
def open_invitation(token: str, session: Session = Depends(get_session)):
    """Show an invitation to its guest and record the first visit."""
    try:
        invitation = get_invitation_by_token(token, session)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")

    if invitation.opened_at is None:
        try:
            invitation = mark_opened(invitation.id, session)
        except EviteError as e:
            logger.warning("Failed to mark invitation %d as opened: %s", invitation.id, e)

    latest = get_latest_response(invitation.id, session)
    return PublicInvitation(
        guest_name=invitation.guest_name,
        token=invitation.token,
        rsvp_closed=settings.rsvp_closed(),
        response=response_to_out(latest) if latest else None,
    )


@router.post("/rsvp", response_model=RSVPResponse, status_code=status.HTTP_201_CREATED)
def submit_rsvp(request: RSVPRequest, session: Session = Depends(get_session)):
    """Record an RSVP. Without a token the guest is matched by phone, or invited on the spot."""
    if settings.rsvp_closed():
        raise HTTPException(status_code=403, detail="RSVP deadline has passed")

    guest_name = request.guest_name
    try:
        phone = normalize_phone(request.phone)
    except InvalidPhoneNumber:
        raise HTTPException(status_code=400, detail="Invalid phone number format")

    if request.token:
        try:
            invitation = get_invitation_by_token(request.token, session)
        except NotFound:
            raise HTTPException(status_code=404, detail="Invalid invitation token")
    else:
        try:
            invitation = get_invitation_by_phone(phone, session)
        except NotFound:
            try:
                invitation = create_invitation(guest_name, phone, "", session)
            except DuplicatePhone:
                invitation = get_invitation_by_phone(phone, session)
            except EviteError as e:
                logger.error("Failed to create walk-in invitation: %s", e)
                raise HTTPException(status_code=500, detail="Failed to create invitation")

    plus_one_name = request.plus_one_name
    if request.plus_one and not plus_one_name:
        plus_one_name = "Partner"

    try:
        response = create_response(
            invitation_id=invitation.id,
            attending=request.attending,
            plus_one=request.plus_one,
            plus_one_name=plus_one_name if request.plus_one else None,
            guest_name_tag=guest_name,
            kids_count=request.kids_count,
            menu_preference=request.menu_preference,
            companion_menu_preference=request.companion_menu_preference,
            comment=request.comment,
            session=session,
        )
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")
    except EviteError as e:
        logger.error("Failed to save response for invitation %d: %s", invitation.id, e)
        raise HTTPException(status_code=500, detail="Failed to save response")

    return RSVPResponse(token=invitation.token, response=response_to_out(response))
