"""Listing and answering pending confirmations with identity-secret signatures."""
from __future__ import annotations

import logging
from typing import Sequence
from urllib.parse import urlencode

from mobileauth.config import const

from .codes import confirmation_hash
from .enums import ConfirmationType
from .errors import AuthenticationRequired, ConfirmationError, GuardError
from .models import AuthenticatorIdentity, Confirmation
from .schemas import ConfirmationsResponse, SendConfirmationResponse, parse_body
from .settings import GuardSettings
from .time_sync import TimeAligner
from .transport import GuardTransport

__all__ = [
    "LIST_TAG",
    "confirmation_query_params",
    "ConfirmationGateway",
]

_log = logging.getLogger("mobileauth.guard.confirmations")

LIST_TAG = "conf"
_OPS = {True: ("allow", "accept"), False: ("cancel", "reject")}


def confirmation_query_params(identity: AuthenticatorIdentity, tag: str, timestamp: int) -> list[tuple[str, str]]:
    """Signed parameters every confirmation call carries, in wire order.

    ``k`` holds the plain base64 signature; url/form encoding happens once,
    when the parameters are serialized.
    """
    if not identity.device_id:
        raise GuardError("device id is not present")
    if not identity.identity_secret:
        raise GuardError("identity secret is not present")
    signature = confirmation_hash(identity.identity_secret, timestamp, tag)
    if signature is None:
        raise GuardError("failed to sign confirmation request")
    return [
        ("p", identity.device_id),
        ("a", str(identity.steam_id)),
        ("k", signature),
        ("t", str(timestamp)),
        ("m", "react"),
        ("tag", tag),
    ]


class ConfirmationGateway:
    def __init__(
        self,
        identity: AuthenticatorIdentity,
        transport: GuardTransport,
        aligner: TimeAligner,
        settings: GuardSettings | None = None,
    ) -> None:
        self.identity = identity
        self._transport = transport
        self._aligner = aligner
        self._settings = settings or GuardSettings()

    async def _params(self, tag: str) -> list[tuple[str, str]]:
        return confirmation_query_params(self.identity, tag, await self._aligner.now())

    async def confirmation_url(self, tag: str = LIST_TAG) -> str:
        query = urlencode(await self._params(tag))
        return f"{self._settings.community_url(const.CONFIRMATIONS_PATH)}?{query}"

    async def list_confirmations(self) -> list[Confirmation]:
        url = await self.confirmation_url(LIST_TAG)
        body = await self._transport.get(url, self.identity.session.cookies())
        parsed = parse_body(ConfirmationsResponse, body)
        if parsed is None:
            raise ConfirmationError("failed to parse confirmations response")
        if parsed.needauth:
            raise AuthenticationRequired("needs authentication")
        if not parsed.success:
            raise ConfirmationError(parsed.message or "confirmation listing was rejected")
        confirmations = [Confirmation.from_payload(item) for item in parsed.conf]
        _log.info("confirmations listed count=%d", len(confirmations))
        return confirmations

    async def respond(self, confirmation: Confirmation, approve: bool) -> bool:
        op, tag = _OPS[bool(approve)]
        params: list[tuple[str, str]] = [("op", op)]
        params += await self._params(tag)
        params += [("cid", confirmation.id), ("ck", confirmation.key)]
        url = f"{self._settings.community_url(const.CONFIRMATION_OP_PATH)}?{urlencode(params)}"
        body = await self._transport.get(url, self.identity.session.cookies())
        return self._succeeded(body, op, 1)

    async def respond_many(self, confirmations: Sequence[Confirmation], approve: bool) -> bool:
        if not confirmations:
            return False
        op, tag = _OPS[bool(approve)]
        form: list[tuple[str, str]] = [("op", op)]
        form += await self._params(tag)
        for confirmation in confirmations:
            form.append(("cid[]", confirmation.id))
            form.append(("ck[]", confirmation.key))
        url = self._settings.community_url(const.CONFIRMATION_MULTI_OP_PATH)
        body = await self._transport.post(url, self.identity.session.cookies(), form)
        return self._succeeded(body, op, len(confirmations))

    async def accept(self, confirmation: Confirmation) -> bool:
        return await self.respond(confirmation, True)

    async def deny(self, confirmation: Confirmation) -> bool:
        return await self.respond(confirmation, False)

    async def accept_many(self, confirmations: Sequence[Confirmation]) -> bool:
        return await self.respond_many(confirmations, True)

    async def deny_many(self, confirmations: Sequence[Confirmation]) -> bool:
        return await self.respond_many(confirmations, False)

    @staticmethod
    def trade_offer_id(confirmation: Confirmation) -> int:
        if confirmation.type is not ConfirmationType.TRADE:
            raise GuardError("confirmation must be a trade confirmation")
        return int(confirmation.creator_id)

    @staticmethod
    def _succeeded(body: str, op: str, count: int) -> bool:
        parsed = parse_body(SendConfirmationResponse, body)
        ok = parsed is not None and parsed.success
        _log.info("confirmation op=%s count=%d success=%s", op, count, ok)
        return ok
