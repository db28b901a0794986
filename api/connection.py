from fastapi import APIRouter
from managers.price_manager import PriceFeedManager

router = APIRouter()


@router.get("/health", tags=["connection"])
async def health():
    feed = PriceFeedManager()
    return {"status": "ok", "priceFeedConnected": bool(feed.client is not None and feed.client.connected)}
