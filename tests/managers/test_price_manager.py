import asyncio
from unittest.mock import AsyncMock, patch
from managers.price_manager import PriceFeedManager
from models.price import FALLBACK_PRICES, MetalPrices


def test_singleton_starts_from_fallback_prices():
    feed = PriceFeedManager()
    assert feed is PriceFeedManager()
    assert feed.current() == FALLBACK_PRICES
    assert feed.seeded is False


def test_positive_update_replaces_prices():
    feed = PriceFeedManager()
    feed.seed(MetalPrices(Gold=60, Silver=0.8, Platinum=30, Palladium=35))

    assert feed.on_update({"Gold": 61.5, "Silver": 0.81, "Platinum": 31, "Palladium": 36}) is True
    assert feed.snapshot() == {"Gold": 61.5, "Silver": 0.81, "Platinum": 31, "Palladium": 36}


def test_partial_update_keeps_prior_values_for_non_positive_metals():
    feed = PriceFeedManager()
    feed.seed(MetalPrices(Gold=60, Silver=0.8, Platinum=30, Palladium=35))

    assert feed.on_update({"Gold": 62, "Silver": 0, "Platinum": -1}) is True
    assert feed.snapshot() == {"Gold": 62, "Silver": 0.8, "Platinum": 30, "Palladium": 35}


def test_update_without_any_positive_value_is_ignored():
    feed = PriceFeedManager()
    feed.seed(MetalPrices())

    assert feed.on_update({"Gold": 0, "Silver": -2}) is False
    assert feed.current() == MetalPrices()


def test_malformed_payloads_are_ignored():
    feed = PriceFeedManager()
    before = feed.snapshot()

    assert feed.on_update("not a dict") is False
    assert feed.on_update({"Gold": "abc", "Silver": True}) is False
    assert feed.snapshot() == before


def test_connect_registers_handlers_and_survives_connection_errors():
    from socketio.exceptions import ConnectionError as SocketConnectionError

    with patch("managers.price_manager.socketio.AsyncClient") as client_class:
        client = client_class.return_value
        client.connected = False
        client.connect = AsyncMock(side_effect=SocketConnectionError("refused"))
        client.on.return_value = lambda handler: handler
        client.event = lambda handler: handler

        feed = PriceFeedManager()
        asyncio.run(feed.connect("http://prices.test"))

    client.connect.assert_awaited_once_with("http://prices.test")
    client.on.assert_called_once_with("updatePrices")
    assert feed.client is client
