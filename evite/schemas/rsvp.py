"""Public RSVP schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from evite.schemas.invitation import NonBlankStr, ResponseOut


class EventResponse(BaseModel):
    name: str
    event_date: Optional[datetime]
    rsvp_deadline: Optional[datetime]
    rsvp_closed: bool
    church_name: str
    church_address: str
    restaurant_name: str
    restaurant_address: str


class PublicInvitation(BaseModel):
    """What a guest sees behind their link. No phone, no admin timestamps."""
    guest_name: str
    token: str
    rsvp_closed: bool
    response: Optional[ResponseOut]


class RSVPRequest(BaseModel):
    token: Optional[str] = None
    guest_name: NonBlankStr
    phone: NonBlankStr
    attending: bool
    plus_one: bool = False
    plus_one_name: Optional[str] = None
    kids_count: int = Field(default=0, ge=0)
    menu_preference: Optional[str] = None
    companion_menu_preference: Optional[str] = None
    comment: Optional[str] = None


class RSVPResponse(BaseModel):
    token: str
    response: ResponseOut
