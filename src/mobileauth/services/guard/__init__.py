"""Mobile authenticator services: login codes, linking and confirmations."""
from .account import GuardAccount
from .codes import generate_code, sign_confirmation
from .confirmations import ConfirmationGateway, confirmation_query_params
from .enums import ConfirmationType, FinalizeResult, LinkResult, LinkState, RevocationScheme
from .errors import AuthenticationRequired, ConfirmationError, GuardError, GuardHttpError, SessionError
from .linker import AuthenticatorLinker, next_finalize_step, next_link_step
from .models import AuthenticatorIdentity, Confirmation, SessionData
from .session import refresh_access_token
from .settings import GuardSettings
from .time_sync import FixedClock, TimeAligner
from .transport import GuardHttpClient, GuardTransport

__all__ = [
    "GuardAccount",
    "generate_code",
    "sign_confirmation",
    "ConfirmationGateway",
    "confirmation_query_params",
    "ConfirmationType",
    "FinalizeResult",
    "LinkResult",
    "LinkState",
    "RevocationScheme",
    "AuthenticationRequired",
    "ConfirmationError",
    "GuardError",
    "GuardHttpError",
    "SessionError",
    "AuthenticatorLinker",
    "next_finalize_step",
    "next_link_step",
    "AuthenticatorIdentity",
    "Confirmation",
    "SessionData",
    "refresh_access_token",
    "GuardSettings",
    "FixedClock",
    "TimeAligner",
    "GuardHttpClient",
    "GuardTransport",
]
