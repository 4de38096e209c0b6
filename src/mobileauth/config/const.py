# src/mobileauth/config/const.py
from __future__ import annotations

# Hard defaults; GuardSettings.from_env() may override the bases
API_BASE: str = "https://api.steampowered.com"
COMMUNITY_BASE: str = "https://steamcommunity.com"

# Web API endpoints (relative to API_BASE)
TIME_QUERY_PATH: str = "/ITwoFactorService/QueryTime/v0001"
ADD_AUTHENTICATOR_PATH: str = "/ITwoFactorService/AddAuthenticator/v1/"
FINALIZE_AUTHENTICATOR_PATH: str = "/ITwoFactorService/FinalizeAddAuthenticator/v1/"
REMOVE_AUTHENTICATOR_PATH: str = "/ITwoFactorService/RemoveAuthenticator/v1"
USER_COUNTRY_PATH: str = "/IUserAccountService/GetUserCountry/v1"
SET_PHONE_PATH: str = "/IPhoneService/SetAccountPhoneNumber/v1"
EMAIL_CONFIRMATION_PATH: str = "/IPhoneService/IsAccountWaitingForEmailConfirmation/v1"
SEND_PHONE_CODE_PATH: str = "/IPhoneService/SendPhoneVerificationCode/v1"
ACCESS_TOKEN_PATH: str = "/IAuthenticationService/GenerateAccessTokenForApp/v1/"

# Community endpoints (relative to COMMUNITY_BASE)
CONFIRMATIONS_PATH: str = "/mobileconf/getlist"
CONFIRMATION_OP_PATH: str = "/mobileconf/ajaxop"
CONFIRMATION_MULTI_OP_PATH: str = "/mobileconf/multiajaxop"

MOBILE_USER_AGENT: str = "Dalvik/2.1.0 (Linux; U; Android 9; Valve Steam App Version/3)"
MOBILE_CLIENT: str = "android"
MOBILE_CLIENT_VERSION: str = "777777 3.6.4"

HTTP_TIMEOUT: float = 15.0

# Linking
AUTHENTICATOR_TYPE: str = "1"
SMS_PHONE_ID: str = "1"
MAX_FINALIZE_ATTEMPTS: int = 11
PHONE_SETTLE_DELAY: float = 2.0

# Remote status codes
STATUS_OK: int = 1
STATUS_NEEDS_PHONE: int = 2
STATUS_AUTHENTICATOR_PRESENT: int = 29
STATUS_WANT_MORE: int = 88
STATUS_BAD_ACTIVATION_CODE: int = 89

# Local state
STATE_DIRNAME: str = ".mobileauth"
STATE_SUFFIX: str = ".maFile"
