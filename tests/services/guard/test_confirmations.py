from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

import pytest

from mobileauth.services.guard.codes import confirmation_hash, sign_confirmation
from mobileauth.services.guard.confirmations import ConfirmationGateway, confirmation_query_params
from mobileauth.services.guard.enums import ConfirmationType
from mobileauth.services.guard.errors import AuthenticationRequired, ConfirmationError, GuardError
from mobileauth.services.guard.models import Confirmation

LIST = "/mobileconf/getlist"
SINGLE = "/mobileconf/ajaxop"
MULTI = "/mobileconf/multiajaxop"

LISTING = {
    "success": True,
    "conf": [
        {
            "type": 2,
            "type_name": "Trade Offer",
            "id": "13000000001",
            "creator_id": "5820000001",
            "nonce": "9100000001",
            "creation_time": 1700000000,
            "cancel": "Cancel",
            "accept": "Accept",
            "icon": None,
            "headline": "friend",
            "summary": ["You will give 1 item", "You will receive 2 items"],
        },
        {
            "type": 3,
            "id": 13000000002,
            "creator_id": 5820000002,
            "nonce": 9100000002,
            "headline": "Market listing",
            "summary": [],
        },
    ],
}


def _query(url: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(url).query))


def test_query_params_carry_signature_for_exact_tag(identity):
    params = confirmation_query_params(identity, "conf", 1_700_000_000)
    assert [key for key, _ in params] == ["p", "a", "k", "t", "m", "tag"]
    values = dict(params)
    assert values["p"] == identity.device_id
    assert values["a"] == str(identity.steam_id)
    assert values["t"] == "1700000000"
    assert values["tag"] == "conf"
    assert values["k"] == confirmation_hash(identity.identity_secret, 1_700_000_000, "conf")


def test_query_params_require_device_id(identity):
    identity.device_id = ""
    with pytest.raises(GuardError):
        confirmation_query_params(identity, "conf", 1)


@pytest.mark.anyio
async def test_confirmation_url_embeds_percent_encoded_signature(identity, transport, clock):
    gateway = ConfirmationGateway(identity, transport, clock)
    url = await gateway.confirmation_url()
    assert url.startswith("https://steamcommunity.com/mobileconf/getlist?")
    assert f"k={sign_confirmation(identity.identity_secret, 1_700_000_000, 'conf')}" in url


@pytest.mark.anyio
async def test_list_confirmations(identity, transport, clock):
    transport.queue(LIST, LISTING)
    gateway = ConfirmationGateway(identity, transport, clock)

    items = await gateway.list_confirmations()

    assert [item.id for item in items] == ["13000000001", "13000000002"]
    trade, listing = items
    assert trade.key == "9100000001"
    assert trade.type is ConfirmationType.TRADE
    assert trade.summary == ("You will give 1 item", "You will receive 2 items")
    assert listing.type is ConfirmationType.MARKET_LISTING
    assert listing.key == "9100000002"

    call = transport.calls[0]
    assert call["method"] == "GET"
    assert _query(call["url"])["tag"] == "conf"
    assert call["cookies"]["mobileClient"] == "android"


@pytest.mark.anyio
async def test_empty_listing_is_not_an_error(identity, transport, clock):
    transport.queue(LIST, {"success": True, "conf": []})
    gateway = ConfirmationGateway(identity, transport, clock)
    assert await gateway.list_confirmations() == []


@pytest.mark.anyio
async def test_listing_needing_authentication(identity, transport, clock):
    transport.queue(LIST, {"success": False, "needauth": True})
    gateway = ConfirmationGateway(identity, transport, clock)
    with pytest.raises(AuthenticationRequired):
        await gateway.list_confirmations()


@pytest.mark.anyio
async def test_listing_rejected(identity, transport, clock):
    transport.queue(LIST, {"success": False, "message": "Invalid authenticator"})
    gateway = ConfirmationGateway(identity, transport, clock)
    with pytest.raises(ConfirmationError, match="Invalid authenticator") as excinfo:
        await gateway.list_confirmations()
    assert not isinstance(excinfo.value, AuthenticationRequired)


@pytest.mark.anyio
@pytest.mark.parametrize("approve, op, tag", [(True, "allow", "accept"), (False, "cancel", "reject")])
async def test_single_decision_uses_tag_distinct_from_op(identity, transport, clock, approve, op, tag):
    transport.queue(SINGLE, {"success": True})
    gateway = ConfirmationGateway(identity, transport, clock)
    conf = Confirmation(id="1", key="2")

    assert await gateway.respond(conf, approve)

    query = _query(transport.calls[0]["url"])
    assert query["op"] == op
    assert query["tag"] == tag
    assert query["k"] == confirmation_hash(identity.identity_secret, 1_700_000_000, tag)
    assert (query["cid"], query["ck"]) == ("1", "2")


@pytest.mark.anyio
async def test_batch_decision_embeds_pairs_in_order(identity, transport, clock):
    transport.queue(MULTI, {"success": True})
    gateway = ConfirmationGateway(identity, transport, clock)
    confs = [Confirmation(id=str(i), key=f"k{i}") for i in (3, 1, 2)]

    assert await gateway.deny_many(confs)

    call = transport.calls[0]
    assert call["method"] == "POST"
    pairs = call["pairs"]
    assert pairs[0] == ("op", "cancel")
    assert dict(pairs)["tag"] == "reject"
    assert [value for key, value in pairs if key == "cid[]"] == ["3", "1", "2"]
    assert [value for key, value in pairs if key == "ck[]"] == ["k3", "k1", "k2"]


@pytest.mark.anyio
async def test_failed_or_empty_decision_response(identity, transport, clock):
    transport.queue(SINGLE, "")
    gateway = ConfirmationGateway(identity, transport, clock)
    assert not await gateway.accept(Confirmation(id="1", key="2"))
    assert not await gateway.accept_many([])
    assert transport.count(MULTI) == 0


def test_trade_offer_id():
    trade = Confirmation(id="1", key="2", creator_id="5820000001", type=ConfirmationType.TRADE)
    assert ConfirmationGateway.trade_offer_id(trade) == 5820000001
    with pytest.raises(GuardError):
        ConfirmationGateway.trade_offer_id(Confirmation(id="1", key="2", type=ConfirmationType.MARKET_LISTING))


@pytest.mark.parametrize(
    "raw, expected",
    [(2, ConfirmationType.TRADE), ("3", ConfirmationType.MARKET_LISTING), ("MarketListing", ConfirmationType.MARKET_LISTING), ("weird", ConfirmationType.UNKNOWN), (99, ConfirmationType.UNKNOWN)],
)
def test_confirmation_type_parsing(raw, expected):
    assert ConfirmationType.parse(raw) is expected
