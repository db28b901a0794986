from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Union
import re

Metal = Literal["Gold", "Silver", "Platinum", "Palladium"]
METALS: List[str] = ["Gold", "Silver", "Platinum", "Palladium"]

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class MetalPrices(BaseModel):
    """Price per gram of each metal, in dollars."""

    Gold: float = 0
    Silver: float = 0
    Platinum: float = 0
    Palladium: float = 0

    def price_per_gram(self, metal: str) -> float:
        if metal not in METALS:
            return 0
        return getattr(self, metal) or 0

    def any_positive(self) -> bool:
        return any(getattr(self, metal) > 0 for metal in METALS)


FALLBACK_PRICES = MetalPrices(Gold=2000, Silver=25, Platinum=950, Palladium=1000)


class ChartData(BaseModel):
    dates: List[str] = []
    prices: List[float] = []


class InitialData(BaseModel):
    metalPrices: MetalPrices = Field(default_factory=MetalPrices)
    goldData: ChartData = Field(default_factory=ChartData)
    silverData: ChartData = Field(default_factory=ChartData)
    platinumData: ChartData = Field(default_factory=ChartData)
    palladiumData: ChartData = Field(default_factory=ChartData)

    def charts(self):
        return {
            "gold": self.goldData,
            "silver": self.silverData,
            "platinum": self.platinumData,
            "palladium": self.palladiumData,
        }


class Quote(BaseModel):
    metal: str
    grams: float
    pricePerGram: float
    total: float
    calculatedPrice: str


def parse_grams(value: Union[str, float, int, None]) -> float:
    """Read a weight the way a browser number field would: leading number or 0."""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0
    return float(match.group(1))


def format_price(total: float) -> str:
    return f"Price: ${total:.2f}"


def quote(prices: MetalPrices, metal: str, grams: Union[str, float, None]) -> Quote:
    weight = parse_grams(grams)
    per_gram = prices.price_per_gram(metal)
    total = weight * per_gram
    return Quote(metal=metal, grams=weight, pricePerGram=per_gram, total=total, calculatedPrice=format_price(total))


def with_fallbacks(prices: Optional[MetalPrices]) -> MetalPrices:
    """Replace every missing or non-positive price by its fallback."""
    if prices is None:
        return FALLBACK_PRICES.model_copy()
    values = {}
    for metal in METALS:
        value = getattr(prices, metal)
        values[metal] = value if value and value > 0 else getattr(FALLBACK_PRICES, metal)
    return MetalPrices(**values)


def apply_price_update(current: MetalPrices, pushed: MetalPrices) -> Optional[MetalPrices]:
    """Merge a pushed price set into the current one.

    Each metal takes the pushed value only when it is strictly positive and keeps
    the prior value otherwise. Returns None when nothing positive results, in
    which case the caller keeps its prices untouched.
    """
    values = {}
    for metal in METALS:
        value = getattr(pushed, metal)
        values[metal] = value if value and value > 0 else getattr(current, metal)
    merged = MetalPrices(**values)
    if not merged.any_positive():
        return None
    return merged


class QuoteRequest(BaseModel):
    metal: str = "Gold"
    grams: Union[str, float, None] = None


class HomeView(BaseModel):
    metalPrices: MetalPrices
    charts: Dict[str, ChartData]
    error: Optional[str] = None
