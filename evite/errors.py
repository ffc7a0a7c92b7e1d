"""Domain errors raised by the invitation and response stores.

Routers translate these into HTTP responses; services never raise
HTTPException themselves.
"""


class EviteError(Exception):
    """Base class for all store and normalization failures."""


class NotFound(EviteError):
    pass


class InvitationNotFound(NotFound):
    """A response referenced an invitation that does not exist."""


class DuplicatePhone(EviteError):
    pass


class DuplicateToken(EviteError):
    pass


class TokenGenerationExhausted(EviteError):
    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate a unique token after {attempts} attempts")
        self.attempts = attempts


class InvalidPhoneNumber(EviteError, ValueError):
    def __init__(self, raw: str, reason: str = "not a valid phone number"):
        super().__init__(f"{raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class TransactionFailed(EviteError):
    """A multi-statement write could not be committed and was rolled back."""
