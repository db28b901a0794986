from managers.backend_manager import BackendConnectionManager, parse_response
from models.price import InitialData, MetalPrices


async def get_initial_data() -> InitialData:
    """Current metal prices plus the 30 day series of every metal."""
    manager = BackendConnectionManager()
    data = await manager.request("GET", "/data")
    data = data or {}
    return parse_response(
        InitialData,
        {
            "metalPrices": MetalPrices(**_numeric(data.get("metalPrices") or {})),
            "goldData": data.get("goldData") or {},
            "silverData": data.get("silverData") or {},
            "platinumData": data.get("platinumData") or {},
            "palladiumData": data.get("palladiumData") or {},
        },
    )


def _numeric(prices: dict) -> dict:
    return {k: v for k, v in prices.items() if isinstance(v, (int, float)) and not isinstance(v, bool)}
