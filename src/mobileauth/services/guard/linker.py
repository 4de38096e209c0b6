"""Linking a new mobile authenticator to an account.

The flow is a small state machine::

    START -> AWAITING_PHONE_NUMBER -> AWAITING_EMAIL_CONFIRMATION
          -> AWAITING_FINALIZATION -> FINALIZED

``add_authenticator`` is safe to call repeatedly (it doubles as the polling
step while the user is confirming the email sent for a new phone number) and
``finalize_add_authenticator`` proves possession of the freshly issued secret
with the SMS/email activation code.  Protocol rejections are reported as
:class:`LinkResult` / :class:`FinalizeResult` values; only transport failures
and precondition violations raise.

The decision part of each step lives in the pure functions
:func:`next_link_step` and :func:`next_finalize_step` so every transition can
be exercised without a network.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from mobileauth.config import const

from .codes import generate_code
from .enums import FinalizeResult, LinkResult, LinkState
from .errors import GuardError
from .ids import generate_device_id
from .models import AuthenticatorIdentity, SessionData
from .schemas import (
    AddAuthenticatorResponse,
    EmailConfirmationResponse,
    FinalizePayload,
    FinalizeResponse,
    SetPhoneResponse,
    UserCountryResponse,
    parse_body,
)
from .settings import GuardSettings
from .time_sync import TimeAligner
from .transport import GuardTransport

__all__ = [
    "LinkAction",
    "LinkStep",
    "FinalizeStep",
    "next_link_step",
    "next_finalize_step",
    "AuthenticatorLinker",
]

_log = logging.getLogger("mobileauth.guard.linker")


class LinkAction(str, Enum):
    NONE = "none"
    SET_PHONE = "set_phone"
    STORE_IDENTITY = "store_identity"


@dataclass(frozen=True, slots=True)
class LinkStep:
    state: LinkState
    result: Optional[LinkResult]
    action: LinkAction = LinkAction.NONE


@dataclass(frozen=True, slots=True)
class FinalizeStep:
    result: Optional[FinalizeResult]

    @property
    def retry(self) -> bool:
        return self.result is None


def next_link_step(status: Optional[int], *, has_phone_number: bool) -> LinkStep:
    """Map an AddAuthenticator status to the next state.

    ``result`` is ``None`` only when the linker has follow-up work
    (``LinkAction.SET_PHONE``) before it can answer.
    """
    if status is None:
        return LinkStep(LinkState.FAILED, LinkResult.GENERAL_FAILURE)
    if status == const.STATUS_NEEDS_PHONE:
        if not has_phone_number:
            return LinkStep(LinkState.AWAITING_PHONE_NUMBER, LinkResult.MUST_PROVIDE_PHONE_NUMBER)
        return LinkStep(LinkState.AWAITING_PHONE_NUMBER, None, LinkAction.SET_PHONE)
    if status == const.STATUS_AUTHENTICATOR_PRESENT:
        return LinkStep(LinkState.FAILED, LinkResult.AUTHENTICATOR_PRESENT)
    if status == const.STATUS_OK:
        return LinkStep(LinkState.AWAITING_FINALIZATION, LinkResult.AWAITING_FINALIZATION, LinkAction.STORE_IDENTITY)
    return LinkStep(LinkState.FAILED, LinkResult.GENERAL_FAILURE)


def next_finalize_step(payload: Optional[FinalizePayload], attempt: int, max_attempts: int) -> FinalizeStep:
    """Decide the outcome of finalize attempt ``attempt`` (0-based)."""
    if payload is None:
        return FinalizeStep(FinalizeResult.GENERAL_FAILURE)
    last = attempt >= max_attempts - 1
    if payload.status == const.STATUS_BAD_ACTIVATION_CODE:
        return FinalizeStep(FinalizeResult.BAD_AUTH_CODE)
    if payload.status == const.STATUS_WANT_MORE:
        return FinalizeStep(FinalizeResult.UNABLE_TO_GENERATE_CORRECT_CODES if last else None)
    if not payload.success:
        return FinalizeStep(FinalizeResult.GENERAL_FAILURE)
    if payload.want_more:
        return FinalizeStep(FinalizeResult.UNABLE_TO_GENERATE_CORRECT_CODES if last else None)
    return FinalizeStep(FinalizeResult.SUCCESS)


class AuthenticatorLinker:
    """Drives one linking attempt; create a new linker to start over with a new device id."""

    def __init__(
        self,
        session: SessionData,
        transport: GuardTransport,
        aligner: TimeAligner,
        settings: GuardSettings | None = None,
        *,
        settle_delay: float = const.PHONE_SETTLE_DELAY,
        max_finalize_attempts: int = const.MAX_FINALIZE_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self.device_id = generate_device_id()
        self.state = LinkState.START
        self.phone_number: Optional[str] = None
        self.phone_country_code: Optional[str] = None
        self.confirmation_email_address: Optional[str] = None
        self.linked_identity: Optional[AuthenticatorIdentity] = None
        self._transport = transport
        self._aligner = aligner
        self._settings = settings or GuardSettings()
        self._settle_delay = settle_delay
        self._max_finalize_attempts = max_finalize_attempts
        self._sleep = sleep

    @property
    def finalized(self) -> bool:
        return self.state is LinkState.FINALIZED

    def _api_url(self, path: str) -> str:
        return f"{self._settings.api_url(path)}?access_token={self.session.access_token}"

    # ---------- add ------------------------------------------------------------
    async def add_authenticator(self) -> LinkResult:
        if self.state is LinkState.FINALIZED:
            raise GuardError("authenticator is already finalized")

        if self.state is LinkState.AWAITING_EMAIL_CONFIRMATION:
            if await self._is_waiting_for_email_confirmation():
                return LinkResult.MUST_CONFIRM_EMAIL
            await self._send_phone_verification_code()
            await self._sleep(self._settle_delay)

        form = {
            "steamid": str(self.session.steam_id),
            "authenticator_time": str(await self._aligner.now()),
            "authenticator_type": const.AUTHENTICATOR_TYPE,
            "device_identifier": self.device_id,
            "sms_phone_id": const.SMS_PHONE_ID,
        }
        body = await self._transport.post(self._api_url(const.ADD_AUTHENTICATOR_PATH), None, form)
        parsed = parse_body(AddAuthenticatorResponse, body)
        payload = parsed.response if parsed is not None else None

        step = next_link_step(payload.status if payload is not None else None, has_phone_number=bool(self.phone_number))
        self.state = step.state
        _log.info("add authenticator status=%s state=%s", payload.status if payload is not None else None, step.state)

        if step.action is LinkAction.SET_PHONE:
            return await self._set_phone_number()
        if step.action is LinkAction.STORE_IDENTITY and payload is not None:
            self.linked_identity = AuthenticatorIdentity.from_payload(
                payload, device_id=self.device_id, session=self.session
            )
        assert step.result is not None
        return step.result

    async def _set_phone_number(self) -> LinkResult:
        country = self.phone_country_code or await self._user_country()
        if not country:
            _log.warning("no country code available for phone number")
            return LinkResult.FAILURE_ADDING_PHONE
        form = {"phone_number": self.phone_number or "", "phone_country_code": country}
        body = await self._transport.post(self._api_url(const.SET_PHONE_PATH), None, form)
        parsed = parse_body(SetPhoneResponse, body)
        email = parsed.response.confirmation_email_address if parsed is not None and parsed.response is not None else None
        if not email:
            return LinkResult.FAILURE_ADDING_PHONE
        self.confirmation_email_address = email
        self.state = LinkState.AWAITING_EMAIL_CONFIRMATION
        return LinkResult.MUST_CONFIRM_EMAIL

    async def _user_country(self) -> Optional[str]:
        form = {"steamid": str(self.session.steam_id)}
        body = await self._transport.post(self._api_url(const.USER_COUNTRY_PATH), None, form)
        parsed = parse_body(UserCountryResponse, body)
        if parsed is None or parsed.response is None:
            return None
        return parsed.response.country or None

    async def _is_waiting_for_email_confirmation(self) -> bool:
        body = await self._transport.post(self._api_url(const.EMAIL_CONFIRMATION_PATH), None, None)
        parsed = parse_body(EmailConfirmationResponse, body)
        if parsed is None or parsed.response is None:
            raise GuardError("failed to check whether the account is waiting for email confirmation")
        return parsed.response.awaiting_email_confirmation

    async def _send_phone_verification_code(self) -> None:
        await self._transport.post(self._api_url(const.SEND_PHONE_CODE_PATH), None, None)

    # ---------- finalize -------------------------------------------------------
    async def finalize_add_authenticator(self, activation_code: str) -> FinalizeResult:
        identity = self.linked_identity
        if identity is None:
            raise GuardError("add_authenticator() has not produced an authenticator yet")

        url = self._api_url(const.FINALIZE_AUTHENTICATOR_PATH)
        for attempt in range(self._max_finalize_attempts):
            timestamp = await self._aligner.now()
            form = {
                "steamid": str(self.session.steam_id),
                "authenticator_code": generate_code(identity.shared_secret, timestamp),
                "authenticator_time": str(timestamp),
                "activation_code": activation_code,
                "validate_sms_code": "1",
            }
            body = await self._transport.post(url, self.session.cookies(), form)
            parsed = parse_body(FinalizeResponse, body)
            step = next_finalize_step(parsed.response if parsed is not None else None, attempt, self._max_finalize_attempts)
            if step.retry:
                _log.debug("finalize wants more codes attempt=%d", attempt + 1)
                continue
            return self._finish(step.result, attempt)

        return self._finish(FinalizeResult.UNABLE_TO_GENERATE_CORRECT_CODES, self._max_finalize_attempts - 1)

    def _finish(self, result: Optional[FinalizeResult], attempt: int) -> FinalizeResult:
        assert result is not None
        if result is FinalizeResult.SUCCESS:
            assert self.linked_identity is not None
            self.linked_identity.fully_enrolled = True
            self.state = LinkState.FINALIZED
        elif result is not FinalizeResult.BAD_AUTH_CODE:
            self.state = LinkState.FAILED
        _log.info("finalize result=%s attempts=%d", result, attempt + 1)
        return result
