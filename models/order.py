from datetime import datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal

OrderAction = Literal["buy", "sell", "invest"]
OrderStatus = Literal["pending", "processing", "paid", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]

CHECKOUT_REQUIRED_FIELDS = ["name", "email", "phone", "street", "city", "state", "zipCode", "country"]


class DeliveryAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zipCode: str = ""
    country: str = ""


class Order(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    submissionId: Optional[str] = None
    customerId: Optional[str] = None
    orderNumber: str
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    deliveryAddress: Optional[DeliveryAddress] = None
    metal: str = ""
    grams: float = 0
    calculatedPrice: str = ""
    priceNumeric: Optional[float] = None
    action: Optional[OrderAction] = None
    status: Optional[str] = None
    paymentStatus: Optional[PaymentStatus] = None
    stripeSessionId: Optional[str] = None
    stripePaymentIntentId: Optional[str] = None
    invoiceUrl: Optional[str] = None
    receiptUrl: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }

    @property
    def is_paid(self) -> bool:
        return self.paymentStatus == "paid"


class OrderResponse(BaseModel):
    """Shape shared by the success, already-paid and sell-confirmation lookups."""

    success: bool
    order: Optional[Order] = None
    message: Optional[str] = None
    already_paid: Optional[bool] = None


class PaymentCancelResponse(BaseModel):
    success: bool
    orderNumber: Optional[str] = None


class PaymentStatusResponse(BaseModel):
    success: bool
    orderNumber: str
    status: str
    paymentStatus: str
    hasInvoice: bool = False
    hasReceipt: bool = False
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class CheckoutSubmission(BaseModel):
    id: int
    name: str = ""
    email: str = ""
    metal: str = ""
    grams: float = 0
    calculatedPrice: str = ""
    description: Optional[str] = None
    imagePath: Optional[str] = None


class CheckoutForm(BaseModel):
    submissionId: int
    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zipCode: str = ""
    country: str = ""
    notes: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [field for field in CHECKOUT_REQUIRED_FIELDS if not str(getattr(self, field) or "").strip()]


class CheckoutResponse(BaseModel):
    success: bool
    submission: Optional[CheckoutSubmission] = None
    already_paid: Optional[bool] = None
    message: Optional[str] = None
    order: Optional[Order] = None
    redirectUrl: Optional[str] = None
    orderNumber: Optional[str] = None


class PaymentPageResponse(BaseModel):
    success: bool
    order: Optional[Order] = None
    stripePublicKey: Optional[str] = None
    clientSecret: Optional[str] = None
    already_paid: Optional[bool] = None
    message: Optional[str] = None


class PaymentProcessingRequest(BaseModel):
    payment_method_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    return_url: Optional[str] = None


class PaymentProcessingError(BaseModel):
    message: str


class PaymentProcessingResponse(BaseModel):
    success: bool = False
    already_paid: Optional[bool] = None
    requires_action: Optional[bool] = None
    payment_intent_client_secret: Optional[str] = None
    error: Optional[PaymentProcessingError] = None


class CheckoutView(BaseModel):
    submission: CheckoutSubmission
    form: CheckoutForm


class OrderOutcomeView(BaseModel):
    """Outcome pages render the backend's view of the order, never a local guess."""

    outcome: Literal["success", "already_processed", "already_paid", "sell_confirmation"]
    order: Order
    orderDate: Optional[str] = None


def format_order_date(value: Optional[str]) -> Optional[str]:
    """`2025-01-05T10:00:00Z` -> `January 5, 2025`; unparseable values pass through."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


class Navigation(BaseModel):
    """Where the page goes next after a form action."""

    success: bool = True
    redirect: Optional[str] = None
    message: Optional[str] = None
