from typing import Any, Dict, Optional
from threading import Lock
import logging
import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError
from models.price import METALS, MetalPrices, apply_price_update, with_fallbacks

logger = logging.getLogger(__name__)


class PriceFeedManager:
    """Latest metal prices, seeded from /data and kept fresh by the push channel."""

    _instance: Optional["PriceFeedManager"] = None
    _lock = Lock()
    prices: MetalPrices
    seeded: bool = False
    client: Optional[socketio.AsyncClient] = None

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance.prices = with_fallbacks(None)
                    cls._instance.seeded = False
                    cls._instance.client = None
        return cls._instance

    @classmethod
    def reset(cls):
        with cls._lock:
            cls._instance = None

    def seed(self, prices: MetalPrices):
        with self._lock:
            self.prices = prices
            self.seeded = True

    def current(self) -> MetalPrices:
        return self.prices

    def on_update(self, payload: Any) -> bool:
        """Handle an `updatePrices` event. Returns True when prices changed."""
        if not isinstance(payload, dict):
            logger.warning("Ignoring price update with unexpected payload: %r", payload)
            return False
        values = {
            metal: payload[metal]
            for metal in METALS
            if isinstance(payload.get(metal), (int, float)) and not isinstance(payload.get(metal), bool)
        }
        if not values:
            logger.warning("Ignoring price update without prices: %r", payload)
            return False
        pushed = MetalPrices(**values)
        with self._lock:
            merged = apply_price_update(self.prices, pushed)
            if merged is None:
                return False
            self.prices = merged
        return True

    async def connect(self, url: str):
        if self.client is not None and self.client.connected:
            return
        client = socketio.AsyncClient(reconnection=True)

        @client.on("updatePrices")
        async def update_prices(data):
            self.on_update(data)

        @client.event
        async def connect():
            logger.info("Connected to price server")

        @client.event
        async def disconnect():
            logger.info("Disconnected from price server")

        self.client = client
        try:
            await client.connect(url)
        except SocketConnectionError as e:
            logger.error("Socket error: %s", e)

    async def disconnect(self):
        if self.client is not None:
            await self.client.disconnect()
            self.client = None

    def snapshot(self) -> Dict[str, float]:
        return self.prices.model_dump()
