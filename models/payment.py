from enum import Enum
from typing import Any, Dict, Optional, Literal
from pydantic import BaseModel
from models.order import Order

WorkflowKind = Literal["checkout", "subscription", "resume_subscription"]


class WorkflowState(str, Enum):
    IDLE = "idle"
    INTENT_REQUESTED = "intent_requested"
    WIDGET_MOUNTING = "widget_mounting"
    WIDGET_READY = "widget_ready"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    DECLINED = "declined"
    STEP_UP_REQUIRED = "step_up_required"


# states a submission may start from; readiness of the widget is checked on top
SUBMITTABLE_STATES = (WorkflowState.WIDGET_READY, WorkflowState.DECLINED)


class IntentResult(BaseModel):
    """What the Intent Initiator hands to the mounter."""

    correlation_id: str
    client_secret: Optional[str] = None
    order_id: Optional[str] = None
    email: Optional[str] = None
    already_paid: bool = False


class PaymentIntentHandle(BaseModel):
    """Client secret, widget and readiness of one purchase context.

    Owned by a single workflow and discarded on reselection; never shared
    between two orders or subscriptions.
    """

    correlation_id: str
    client_secret: Optional[str] = None
    deferred: bool = False
    generation: int = 0
    widget: Any = None

    model_config = {
        "arbitrary_types_allowed": True,
    }

    @property
    def ready(self) -> bool:
        return bool(self.widget is not None and self.widget.ready and not self.widget.destroyed)

    @property
    def has_secret(self) -> bool:
        return bool(self.client_secret) or self.deferred


ProcessorStatus = Literal["succeeded", "declined", "requires_action"]


class ProcessorResult(BaseModel):
    status: ProcessorStatus
    message: Optional[str] = None
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None
    intent_status: Optional[str] = None


class SubmitRequest(BaseModel):
    payment_method_id: Optional[str] = None
    cardholder_name: Optional[str] = None


class ContainerSignal(BaseModel):
    container: str


class WorkflowSnapshot(BaseModel):
    id: str
    kind: WorkflowKind
    state: WorkflowState
    correlationId: Optional[str] = None
    message: Optional[str] = None
    initiating: bool = False
    submitting: bool = False
    submitEnabled: bool = False
    widget: Optional[Dict[str, Any]] = None
    redirect: Optional[str] = None
    stepUp: Optional[Dict[str, Any]] = None


class PaymentPageView(BaseModel):
    order: Order
    workflow: WorkflowSnapshot


class ReturnedFromStepUp(BaseModel):
    """Query of the return URL the processor sends the customer back to."""

    order: Optional[str] = None
    workflow: Optional[str] = None
    payment_intent: Optional[str] = None
    payment_intent_client_secret: Optional[str] = None
    redirect_status: Optional[str] = None
