"""RSVP response model."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Response(SQLModel, table=True):
    __tablename__ = "responses"

    id: Optional[int] = Field(default=None, primary_key=True)
    invitation_id: int = Field(foreign_key="invitations.id", index=True)
    attending: bool
    plus_one: bool = Field(default=False)
    plus_one_name: Optional[str] = None
    guest_name_tag: str
    kids_count: int = Field(default=0)
    menu_preference: Optional[str] = None
    companion_menu_preference: Optional[str] = None
    comment: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_latest: bool = Field(default=True, index=True)
