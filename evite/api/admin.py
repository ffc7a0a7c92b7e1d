"""Admin endpoints: invitation management, dashboard and CSV export."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response as HTTPResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from evite.api.deps import Admin, invitation_to_out, require_admin, response_to_out
from evite.config import settings
from evite.database import get_session
from evite.errors import (
    DuplicatePhone,
    EviteError,
    InvalidPhoneNumber,
    NotFound,
)
from evite.schemas.invitation import (
    DashboardStats,
    InvitationCreateRequest,
    InvitationDetailOut,
    InvitationOut,
    InvitationUpdateRequest,
    InvitationWithResponseOut,
    RenormalizeResponse,
)
from evite.services.export_service import build_invitations_csv, dashboard_stats
from evite.services.invitation_service import (
    create_invitation,
    delete_invitation,
    finalize_invite_message,
    get_invitation,
    list_invitations_with_latest_response,
    mark_sent,
    render_invite_template,
    renormalize_phones,
    update_invitation,
)
from evite.services.response_service import list_responses
from evite.utils.phone import normalize_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _normalize_or_400(raw: str) -> str:
    try:
        return normalize_phone(raw)
    except InvalidPhoneNumber:
        raise HTTPException(status_code=400, detail="Invalid phone number format")


@router.get("/invitations", response_model=list[InvitationWithResponseOut])
def list_all(
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """All invitations with their latest response, newest first."""
    return [
        InvitationWithResponseOut(
            invitation=invitation_to_out(item.invitation),
            response=response_to_out(item.response) if item.response else None,
        )
        for item in list_invitations_with_latest_response(session)
    ]


@router.post("/invitations", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def create(
    request: InvitationCreateRequest,
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Create an invitation. The message template is finalized with the RSVP link."""
    guest_name = request.guest_name
    phone = _normalize_or_400(request.phone)
    template = request.invite_message if request.invite_message is not None else settings.invite_message_template

    try:
        invitation = create_invitation(
            guest_name, phone, render_invite_template(template, guest_name), session
        )
    except DuplicatePhone:
        raise HTTPException(status_code=409, detail="Phone number already exists")
    except EviteError as e:
        logger.error("Failed to create invitation for %s: %s", guest_name, e)
        raise HTTPException(status_code=500, detail="Failed to create invitation")

    try:
        invitation = finalize_invite_message(invitation, session)
    except SQLAlchemyError as e:
        # The invitation exists; an unresolved placeholder is not fatal
        logger.warning("Failed to finalize message for invitation %d: %s", invitation.id, e)
        session.rollback()

    logger.info("Admin %s created invitation %d", admin.email, invitation.id)
    return invitation_to_out(invitation)


@router.get("/invitations/{invitation_id}", response_model=InvitationDetailOut)
def get_one(
    invitation_id: int,
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """One invitation with its full response history."""
    try:
        invitation = get_invitation(invitation_id, session)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")

    return InvitationDetailOut(
        invitation=invitation_to_out(invitation),
        responses=[response_to_out(r) for r in list_responses(invitation_id, session)],
    )


@router.put("/invitations/{invitation_id}", response_model=InvitationOut)
def update(
    invitation_id: int,
    request: InvitationUpdateRequest,
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    phone = _normalize_or_400(request.phone)
    try:
        invitation = update_invitation(invitation_id, request.guest_name, phone, session)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")
    except DuplicatePhone:
        raise HTTPException(status_code=409, detail="Phone number already exists")
    return invitation_to_out(invitation)


@router.delete("/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    invitation_id: int,
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Delete an invitation together with all of its responses."""
    try:
        delete_invitation(invitation_id, session)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")
    except EviteError as e:
        logger.error("Failed to delete invitation %d: %s", invitation_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete invitation")
    logger.info("Admin %s deleted invitation %d", admin.email, invitation_id)


@router.post("/invitations/{invitation_id}/sent", response_model=InvitationOut)
def sent(
    invitation_id: int,
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Mark an invitation as sent. Keeps the first timestamp on repeat calls."""
    try:
        invitation = mark_sent(invitation_id, session)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invitation not found")
    return invitation_to_out(invitation)


@router.get("/stats", response_model=DashboardStats)
def stats(
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return DashboardStats(**dashboard_stats(list_invitations_with_latest_response(session)))


@router.get("/export.csv")
def export_csv(
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Download every invitation and its latest response as CSV."""
    content = build_invitations_csv(list_invitations_with_latest_response(session))
    return HTTPResponse(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="invitations.csv"'},
    )


@router.post("/phones/renormalize", response_model=RenormalizeResponse)
def renormalize(
    admin: Admin = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Rewrite stored phone numbers in canonical E.164 form."""
    summary = renormalize_phones(session)
    logger.info(
        "Phone renormalization by %s: %d total, %d updated, %d failed",
        admin.email, summary.total, summary.updated, summary.failed,
    )
    return RenormalizeResponse(
        total=summary.total,
        updated=summary.updated,
        failed=summary.failed,
        unchanged=summary.unchanged,
    )
