"""Evite Database Models."""

from evite.models.invitation import Invitation
from evite.models.response import Response

__all__ = [
    "Invitation",
    "Response",
]
