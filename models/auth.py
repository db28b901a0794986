from typing import Any, Dict, List, Optional, Literal
from pydantic import BaseModel, Field
from models.order import Order
from models.subscription import Subscription
from models.claim import Claim

DashboardTab = Literal["submissions", "orders", "subscriptions", "claims"]


class AdminLoginRequest(BaseModel):
    username: str
    password: str
    rememberMe: bool = True


class AdminLoginResponse(BaseModel):
    success: bool
    token: Optional[str] = None
    redirect: Optional[str] = None
    error: Optional[str] = None


class AdminTokenVerification(BaseModel):
    valid: bool


class AdminSubmission(BaseModel):
    mongo_id: Optional[str] = Field(None, alias="_id")
    id: Optional[int] = None
    name: str = ""
    email: str = ""
    sku: Optional[str] = None
    description: Optional[str] = None
    metal: str = ""
    grams: float = 0
    calculatedPrice: str = ""
    action: str = ""
    imagePath: Optional[str] = None
    timestamp: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }


class AdminDashboardData(BaseModel):
    submissions: List[AdminSubmission] = []
    orders: List[Order] = []
    subscriptions: List[Subscription] = []
    claims: List[Claim] = []
    ordersMap: Dict[str, Order] = {}


class AdminDashboardView(BaseModel):
    activeTab: DashboardTab = "submissions"
    data: AdminDashboardData
    counts: Dict[str, int]
    statusColors: Dict[str, str] = {}


class AdminItemView(BaseModel):
    type: Literal["submission", "order", "subscription", "claim"]
    item: Dict[str, Any]


def status_badge_color(status: str) -> str:
    status = (status or "").lower()
    if status in ("active", "paid"):
        return "success"
    if status == "pending":
        return "warning"
    if status in ("cancelled", "failed"):
        return "danger"
    return "secondary"


class AdminLoginPage(BaseModel):
    showForm: bool = True
    rememberMe: bool = True
