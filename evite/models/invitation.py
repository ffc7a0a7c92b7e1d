"""Invitation model."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Invitation(SQLModel, table=True):
    __tablename__ = "invitations"

    id: Optional[int] = Field(default=None, primary_key=True)
    guest_name: str
    phone: str = Field(unique=True, index=True)  # E.164
    token: str = Field(unique=True, index=True)  # 32 hex chars
    invite_message: str = Field(default="")
    sent_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
