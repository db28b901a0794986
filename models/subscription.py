from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from models.payment import WorkflowSnapshot

Plan = Literal["monthly", "yearly"]
SubscriptionStatus = Literal["incomplete", "incomplete_expired", "active", "past_due", "canceled", "unpaid", "trialing"]

RESUMABLE_STATUSES = ("incomplete", "incomplete_expired", "unpaid")

STATUS_LABELS = {
    "active": "Active",
    "trialing": "Trial",
    "incomplete": "Processing",
    "incomplete_expired": "Expired",
    "past_due": "Past Due",
    "canceled": "Cancelled",
    "unpaid": "Unpaid",
}


def status_label(status: str) -> str:
    if status in STATUS_LABELS:
        return STATUS_LABELS[status]
    return status[:1].upper() + status[1:]


class ProductSnapshot(BaseModel):
    name: str = ""
    metal: str = ""
    grams: float = 0
    calculatedPrice: str = ""
    imagePath: Optional[str] = None


class Subscription(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    customerId: Optional[str] = None
    email: str = ""
    sku: str = ""
    plan: Plan
    stripeSubscriptionId: str
    status: SubscriptionStatus
    currentPeriodEnd: Optional[str] = None
    lastPaymentDate: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    product: Optional[ProductSnapshot] = None

    model_config = {
        "populate_by_name": True,
    }

    @property
    def can_resume(self) -> bool:
        return self.status in RESUMABLE_STATUSES


class ClaimPolicySubmission(BaseModel):
    name: str = ""
    email: str = ""
    sku: str = ""
    description: Optional[str] = None
    metal: str = ""
    grams: float = 0
    calculatedPrice: str = ""
    imagePath: Optional[str] = None


class ClaimPolicyData(BaseModel):
    email: str
    sku: str
    submission: ClaimPolicySubmission
    monthlyPrice: float
    yearlyPrice: float
    stripePublicKey: Optional[str] = None
    existingSubscription: Optional[Subscription] = None

    def price_for(self, plan: Plan) -> float:
        return self.monthlyPrice if plan == "monthly" else self.yearlyPrice


class CreateSubscriptionRequest(BaseModel):
    email: str
    sku: str
    plan: Plan


class CreateSubscriptionResponse(BaseModel):
    subscriptionId: str
    clientSecret: str


class RetrieveSubscriptionPaymentResponse(BaseModel):
    clientSecret: str


class MySubscriptionsData(BaseModel):
    subscriptions: List[Subscription] = []


class CancelSubscriptionResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class SubscriptionSuccessResponse(BaseModel):
    success: bool
    subscription: Optional[Subscription] = None
    already_active: Optional[bool] = None


class PlanSelection(BaseModel):
    plan: Plan
    workflow: Optional[str] = None


class ResumeRequest(BaseModel):
    workflow: Optional[str] = None


class PlanSelectionView(BaseModel):
    plan: Plan
    price: Optional[float] = None
    workflow: WorkflowSnapshot


class ClaimPolicyView(BaseModel):
    data: ClaimPolicyData
    statusLabel: Optional[str] = None
    canResume: bool = False
    workflow: Optional[WorkflowSnapshot] = None


class SubscriptionListItem(BaseModel):
    subscription: Subscription
    statusLabel: str
    planLabel: str
    cancellable: bool
    resumable: bool
    resumeUrl: Optional[str] = None


class MySubscriptionsView(BaseModel):
    showEmailForm: bool = False
    email: Optional[str] = None
    subscriptions: List[SubscriptionListItem] = []


class SubscriptionSuccessView(BaseModel):
    outcome: Literal["success", "already_processed"]
    subscription: Subscription
    statusLabel: str
    planLabel: str


def plan_label(plan: str) -> str:
    return "Yearly" if plan == "yearly" else "Monthly"
