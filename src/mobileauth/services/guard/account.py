"""Operations on an already linked authenticator."""
from __future__ import annotations

import logging

from mobileauth.config import const

from .codes import generate_code
from .confirmations import ConfirmationGateway
from .enums import RevocationScheme
from .models import AuthenticatorIdentity
from .schemas import RemoveAuthenticatorResponse, parse_body
from .settings import GuardSettings
from .time_sync import TimeAligner
from .transport import GuardTransport

__all__ = ["GuardAccount"]

_log = logging.getLogger("mobileauth.guard.account")


class GuardAccount:
    """Ties an identity to the transport and the clock it needs."""

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

    @property
    def transport(self) -> GuardTransport:
        return self._transport

    async def generate_code(self) -> str:
        return generate_code(self.identity.shared_secret, await self._aligner.now())

    def confirmations(self) -> ConfirmationGateway:
        return ConfirmationGateway(self.identity, self._transport, self._aligner, self._settings)

    async def deactivate(self, scheme: RevocationScheme = RevocationScheme.RETURN_TO_EMAIL) -> bool:
        """Remove the authenticator; ``scheme`` picks email codes or no second factor at all."""
        form = {
            "revocation_code": self.identity.revocation_code,
            "revocation_reason": "1",
            "steamguard_scheme": str(int(scheme)),
        }
        url = f"{self._settings.api_url(const.REMOVE_AUTHENTICATOR_PATH)}?access_token={self.identity.session.access_token}"
        body = await self._transport.post(url, None, form)
        parsed = parse_body(RemoveAuthenticatorResponse, body)
        ok = parsed is not None and parsed.response is not None and parsed.response.success
        if ok:
            self.identity.fully_enrolled = False
            self.identity.revocation_code = ""
        elif parsed is not None and parsed.response is not None:
            _log.warning(
                "deactivation rejected attempts_remaining=%s",
                parsed.response.revocation_attempts_remaining,
            )
        _log.info("deactivation account=%s scheme=%s success=%s", self.identity.account_name, int(scheme), ok)
        return ok
