"""Enumerations describing confirmation kinds and linking outcomes."""
from __future__ import annotations

from enum import Enum, IntEnum

__all__ = [
    "ConfirmationType",
    "LinkState",
    "LinkResult",
    "FinalizeResult",
    "RevocationScheme",
]


class _StrEnum(str, Enum):
    """Simple ``str``-backed enum compatible with Python 3.10."""

    def __str__(self) -> str:  # pragma: no cover - convenience for logging only
        return str(self.value)


class ConfirmationType(IntEnum):
    UNKNOWN = 0
    TEST = 1
    TRADE = 2
    MARKET_LISTING = 3
    FEATURE_OPT_OUT = 4
    PHONE_NUMBER_CHANGE = 5
    ACCOUNT_RECOVERY = 6

    @classmethod
    def parse(cls, value: object) -> "ConfirmationType":
        """Accept the numeric code or the name the service sends; anything else is ``UNKNOWN``."""
        if isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.UNKNOWN
        text = str(value or "").strip()
        if text.isdigit():
            return cls.parse(int(text))
        normalized = text.replace("_", "").lower()
        for member in cls:
            if member.name.replace("_", "").lower() == normalized:
                return member
        return cls.UNKNOWN


class LinkState(_StrEnum):
    START = "start"
    AWAITING_PHONE_NUMBER = "awaiting_phone_number"
    AWAITING_EMAIL_CONFIRMATION = "awaiting_email_confirmation"
    AWAITING_FINALIZATION = "awaiting_finalization"
    FINALIZED = "finalized"
    FAILED = "failed"


class LinkResult(_StrEnum):
    MUST_PROVIDE_PHONE_NUMBER = "must_provide_phone_number"
    MUST_REMOVE_PHONE_NUMBER = "must_remove_phone_number"
    MUST_CONFIRM_EMAIL = "must_confirm_email"
    AWAITING_FINALIZATION = "awaiting_finalization"
    GENERAL_FAILURE = "general_failure"
    AUTHENTICATOR_PRESENT = "authenticator_present"
    FAILURE_ADDING_PHONE = "failure_adding_phone"


class FinalizeResult(_StrEnum):
    BAD_AUTH_CODE = "bad_auth_code"
    UNABLE_TO_GENERATE_CORRECT_CODES = "unable_to_generate_correct_codes"
    SUCCESS = "success"
    GENERAL_FAILURE = "general_failure"


class RevocationScheme(IntEnum):
    RETURN_TO_EMAIL = 1
    REMOVE_COMPLETELY = 2
