"""Invitation and response schemas."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, StringConstraints

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ResponseOut(BaseModel):
    id: int
    invitation_id: int
    attending: bool
    plus_one: bool
    plus_one_name: Optional[str]
    guest_name_tag: str
    kids_count: int
    menu_preference: Optional[str]
    companion_menu_preference: Optional[str]
    comment: Optional[str]
    submitted_at: datetime
    is_latest: bool


class InvitationOut(BaseModel):
    id: int
    guest_name: str
    phone: str
    token: str
    invite_message: str
    rsvp_link: str
    sent_at: Optional[datetime]
    opened_at: Optional[datetime]
    responded_at: Optional[datetime]
    created_at: datetime


class InvitationWithResponseOut(BaseModel):
    invitation: InvitationOut
    response: Optional[ResponseOut]


class InvitationDetailOut(BaseModel):
    invitation: InvitationOut
    responses: list[ResponseOut]


class InvitationCreateRequest(BaseModel):
    guest_name: NonBlankStr
    phone: NonBlankStr
    invite_message: Optional[str] = None  # defaults to settings.invite_message_template


class InvitationUpdateRequest(BaseModel):
    guest_name: NonBlankStr
    phone: NonBlankStr


class RenormalizeResponse(BaseModel):
    total: int
    updated: int
    failed: int
    unchanged: int


class DashboardStats(BaseModel):
    invitations: int
    sent: int
    opened: int
    responded: int
    attending: int
    declined: int
    headcount: int
