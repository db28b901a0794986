"""Payment confirmation workflow.

One state machine drives the three places where a customer pays: an order
checkout, a new protection plan and the completion of an incomplete plan.
Every instance goes through the same four steps:

    intent initiator -> widget mounter -> submission confirmer -> outcome router

States::

    idle -> intent_requested -> widget_mounting -> widget_ready -> submitting
    submitting -> succeeded | declined | step_up_required
    step_up_required -> submitting
    declined -> submitting            (resubmission)

Calls are never retried automatically. Results that come back after the
workflow was reinitiated or closed are dropped.
"""
from typing import Any, Dict, Optional
from urllib.parse import urlencode
import logging
from fastapi.concurrency import run_in_threadpool
from managers.payment_manager import PaymentProcessor, StripePaymentProcessor, intent_id_from_secret
from managers.widget_manager import create_widget
from models.errors import (
    BusinessError,
    FrontError,
    PaymentValidationError,
    StepUpFailedError,
    WorkflowStateError,
)
from models.order import Order, PaymentProcessingRequest, PaymentProcessingResponse
from models.payment import (
    SUBMITTABLE_STATES,
    IntentResult,
    PaymentIntentHandle,
    ProcessorResult,
    WorkflowKind,
    WorkflowSnapshot,
    WorkflowState,
)
from repository import order as order_repo
from repository import subscription as subscription_repo
from utils.settings import get_settings, mask_secret

logger = logging.getLogger(__name__)

PROCESSING_MESSAGE = "Processing payment..."
NOT_READY_MESSAGE = "Payment form is still loading. Please wait a moment and try again."


class PaymentWorkflow:
    kind: WorkflowKind
    missing_secret_message = "Payment elements not initialized."
    allows_deferred_intent = False

    def __init__(self, workflow_id: str, processor: Optional[PaymentProcessor] = None):
        self.id = workflow_id
        self.processor = processor or StripePaymentProcessor()
        self.state = WorkflowState.IDLE
        self.message: Optional[str] = None
        self.handle: Optional[PaymentIntentHandle] = None
        self.intent: Optional[IntentResult] = None
        self.generation = 0
        self.initiating = False
        self.submitting = False
        self.closed = False
        self.redirect: Optional[str] = None
        self.step_up: Optional[ProcessorResult] = None

    # subclass hooks

    async def request_intent(self, **context) -> IntentResult:
        raise NotImplementedError

    async def confirm(self, handle: PaymentIntentHandle, payment_method_id: Optional[str]) -> ProcessorResult:
        raise NotImplementedError

    async def confirm_after_step_up(self, handle: PaymentIntentHandle, authenticated: ProcessorResult) -> ProcessorResult:
        raise NotImplementedError

    def success_route(self, handle: PaymentIntentHandle) -> str:
        raise NotImplementedError

    def already_paid_route(self, correlation_id: str) -> str:
        return self.success_route(PaymentIntentHandle(correlation_id=correlation_id))

    def return_url(self, handle: PaymentIntentHandle) -> str:
        return get_settings().public_base_url + self.success_route(handle)

    # intent initiator

    async def initiate(self, **context) -> Optional[IntentResult]:
        self._ensure_open()
        if self.initiating:
            raise WorkflowStateError("Your payment form is already being prepared.")
        if self.submitting:
            raise WorkflowStateError("Your payment is already being processed.")

        # the previous widget and its readiness go away before anything new exists
        self._discard_handle()
        self.generation += 1
        generation = self.generation
        self.initiating = True
        self.state = WorkflowState.INTENT_REQUESTED
        self.message = None
        self.redirect = None
        self.step_up = None
        self.intent = None

        try:
            result = await self.request_intent(**context)
        except FrontError as e:
            if self._is_current(generation):
                self.state = WorkflowState.IDLE
                self.message = e.message
            raise
        finally:
            self.initiating = False

        if not self._is_current(generation):
            logger.info("Dropping intent for %s, workflow %s moved on", result.correlation_id, self.id)
            return None

        self.intent = result
        self.message = None
        if result.already_paid:
            self.state = WorkflowState.SUCCEEDED
            self.redirect = self.already_paid_route(result.correlation_id)
            return result

        deferred = self.allows_deferred_intent and not result.client_secret
        widget = create_widget(result.client_secret)
        self.handle = PaymentIntentHandle(
            correlation_id=result.correlation_id,
            client_secret=result.client_secret,
            deferred=deferred,
            generation=generation,
            widget=widget,
        )
        widget.on_ready(lambda: self._widget_ready(generation))
        self.state = WorkflowState.WIDGET_MOUNTING
        logger.info(
            "Workflow %s (%s) waiting for widget of %s, secret %s",
            self.id,
            self.kind,
            result.correlation_id,
            mask_secret(result.client_secret or ""),
        )
        return result

    # widget mounter

    def attach(self, container: str) -> Dict[str, Any]:
        """Mount the widget once the browser reports that its container exists."""
        self._ensure_open()
        if self.handle is None:
            raise WorkflowStateError(self.missing_secret_message)
        if self.state != WorkflowState.WIDGET_MOUNTING:
            if self.handle.widget.container == container:
                return self.handle.widget.options()
            raise WorkflowStateError("Payment form is already mounted.")
        return self.handle.widget.mount(container)

    def widget_ready(self):
        self._ensure_open()
        if self.handle is None or not self.handle.widget.mark_ready():
            if self.handle is not None and self.handle.ready:
                return
            raise WorkflowStateError("Payment form is not mounted yet.")

    def _widget_ready(self, generation: int):
        if self._is_current(generation) and self.state == WorkflowState.WIDGET_MOUNTING:
            self.state = WorkflowState.WIDGET_READY

    # submission confirmer

    async def submit(self, payment_method_id: Optional[str] = None) -> Optional[WorkflowSnapshot]:
        self._ensure_open()
        if self.submitting:
            raise WorkflowStateError("Your payment is already being processed.")
        if self.handle is None or not self.handle.has_secret:
            self.message = self.missing_secret_message
            raise WorkflowStateError(self.missing_secret_message)
        if not self.handle.ready or self.state not in SUBMITTABLE_STATES:
            self.message = NOT_READY_MESSAGE
            raise WorkflowStateError(NOT_READY_MESSAGE)
        self.validate_submission(payment_method_id)

        handle = self.handle
        generation = self.generation
        self.submitting = True
        self.state = WorkflowState.SUBMITTING
        self.message = PROCESSING_MESSAGE
        try:
            result = await self.confirm(handle, payment_method_id)
        except FrontError as e:
            self._decline(generation, e.message)
            raise
        finally:
            self.submitting = False
        return self._apply(generation, handle, result)

    def validate_submission(self, payment_method_id: Optional[str]):
        pass

    async def resume_step_up(self, payment_intent_id: Optional[str] = None) -> Optional[WorkflowSnapshot]:
        """Continue after the customer completed (or abandoned) the issuer's challenge."""
        self._ensure_open()
        if self.state == WorkflowState.SUCCEEDED:
            return self.snapshot()
        if self.state != WorkflowState.STEP_UP_REQUIRED or self.step_up is None or self.handle is None:
            raise WorkflowStateError("No payment authentication is pending.")
        if self.submitting:
            raise WorkflowStateError("Your payment is already being processed.")

        handle = self.handle
        generation = self.generation
        challenge = self.step_up
        intent_id = payment_intent_id or challenge.payment_intent_id
        self.submitting = True
        self.state = WorkflowState.SUBMITTING
        self.message = PROCESSING_MESSAGE
        try:
            authenticated = await run_in_threadpool(self.processor.handle_card_action, challenge.client_secret, intent_id)
            if authenticated.status != "succeeded":
                self._decline(generation, authenticated.message or "Authentication failed")
                raise StepUpFailedError(authenticated.message or "Authentication failed")
            result = await self.confirm_after_step_up(handle, authenticated)
        except StepUpFailedError:
            raise
        except FrontError as e:
            self._decline(generation, e.message)
            raise
        finally:
            self.submitting = False

        if result.status == "requires_action":
            # a second challenge is a failed authentication for this attempt
            result = ProcessorResult(status="declined", message="Payment confirmation failed")
        return self._apply(generation, handle, result)

    def _apply(self, generation: int, handle: PaymentIntentHandle, result: ProcessorResult) -> Optional[WorkflowSnapshot]:
        if not self._is_current(generation):
            logger.info("Dropping confirmation result for %s, workflow %s moved on", handle.correlation_id, self.id)
            return None

        if result.status == "succeeded":
            self.state = WorkflowState.SUCCEEDED
            self.message = None
            self.step_up = None
            self.redirect = self.success_route(handle)
            logger.info("Payment for %s succeeded", handle.correlation_id)
            return self.snapshot()

        if result.status == "requires_action":
            self.state = WorkflowState.STEP_UP_REQUIRED
            self.step_up = result
            self.message = "Additional authentication is required by your bank."
            logger.info("Payment for %s requires authentication", handle.correlation_id)
            return self.snapshot()

        self._decline(generation, result.message or "Payment failed")
        raise PaymentValidationError(result.message or "Payment failed")

    def _decline(self, generation: int, message: str):
        if self._is_current(generation):
            self.state = WorkflowState.DECLINED
            self.message = message
            self.step_up = None
            logger.info("Payment declined for workflow %s: %s", self.id, message)

    # lifecycle

    def close(self):
        """Page left: drop the widget and make every pending result a no-op."""
        self._discard_handle()
        self.generation += 1
        self.closed = True

    def _discard_handle(self):
        if self.handle is not None and self.handle.widget is not None:
            self.handle.widget.destroy()
        self.handle = None

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self.generation

    def _ensure_open(self):
        if self.closed:
            raise WorkflowStateError("This payment page has expired. Please reload the page.")

    @property
    def submit_enabled(self) -> bool:
        return bool(
            self.handle is not None
            and self.handle.has_secret
            and self.handle.ready
            and self.state in SUBMITTABLE_STATES
            and not self.submitting
        )

    def snapshot(self) -> WorkflowSnapshot:
        widget = self.handle.widget.options() if self.handle is not None else None
        step_up = None
        if self.state == WorkflowState.STEP_UP_REQUIRED and self.step_up is not None:
            step_up = {
                "clientSecret": self.step_up.client_secret,
                "paymentIntentId": self.step_up.payment_intent_id,
                "redirectUrl": self.step_up.redirect_url,
            }
        return WorkflowSnapshot(
            id=self.id,
            kind=self.kind,
            state=self.state,
            correlationId=self.intent.correlation_id if self.intent else None,
            message=self.message,
            initiating=self.initiating,
            submitting=self.submitting,
            submitEnabled=self.submit_enabled,
            widget=widget,
            redirect=self.redirect,
            stepUp=step_up,
        )


class CheckoutPaymentWorkflow(PaymentWorkflow):
    """Card payment of an existing order; the backend creates the intent on submit."""

    kind = "checkout"
    missing_secret_message = "Payment system not ready"
    allows_deferred_intent = True

    def __init__(self, workflow_id: str, order_number: str, processor: Optional[PaymentProcessor] = None):
        super().__init__(workflow_id, processor)
        self.order_number = order_number
        self.order: Optional[Order] = None
        self.cardholder_name: Optional[str] = None

    async def request_intent(self, **context) -> IntentResult:
        data = await order_repo.get_payment_page_data(self.order_number)
        if not data.success:
            raise BusinessError(data.message or "Failed to load payment data")
        if data.already_paid:
            return IntentResult(correlation_id=self.order_number, already_paid=True)
        if data.order is None:
            raise BusinessError("Unable to load payment information.")
        self.order = data.order
        return IntentResult(
            correlation_id=self.order_number,
            client_secret=data.clientSecret,
            order_id=data.order.id,
            email=data.order.email,
        )

    def validate_submission(self, payment_method_id: Optional[str]):
        if not payment_method_id:
            raise PaymentValidationError("Please enter your card details.")

    def _request(self, handle: PaymentIntentHandle, **ids) -> PaymentProcessingRequest:
        return PaymentProcessingRequest(
            order_id=self.intent.order_id if self.intent else None,
            order_number=handle.correlation_id,
            **ids,
        )

    async def confirm(self, handle: PaymentIntentHandle, payment_method_id: Optional[str]) -> ProcessorResult:
        request = self._request(handle, payment_method_id=payment_method_id, return_url=self.return_url(handle))
        response = await order_repo.process_payment(request)
        return checkout_result(response, "Payment processing failed")

    async def confirm_after_step_up(self, handle: PaymentIntentHandle, authenticated: ProcessorResult) -> ProcessorResult:
        request = self._request(handle, payment_intent_id=authenticated.payment_intent_id)
        response = await order_repo.process_payment(request)
        result = checkout_result(response, "Payment confirmation failed")
        if result.status == "requires_action":
            return ProcessorResult(status="declined", message="Payment confirmation failed")
        return result

    def success_route(self, handle: PaymentIntentHandle) -> str:
        return f"/payment-success/{handle.correlation_id}"

    def already_paid_route(self, correlation_id: str) -> str:
        return f"/payment-already-paid/{correlation_id}"

    def return_url(self, handle: PaymentIntentHandle) -> str:
        query = urlencode({"order": handle.correlation_id, "workflow": self.id})
        return f"{get_settings().public_base_url}/payment-complete?{query}"


def checkout_result(response: PaymentProcessingResponse, fallback: str) -> ProcessorResult:
    """Read the backend's answer to /orders/process-payment."""
    if response.error is not None:
        return ProcessorResult(status="declined", message=response.error.message)
    if response.already_paid or response.success:
        return ProcessorResult(status="succeeded")
    if response.requires_action and response.payment_intent_client_secret:
        secret = response.payment_intent_client_secret
        try:
            intent_id = intent_id_from_secret(secret)
        except ValueError:
            logger.error("Backend sent a malformed client secret %s", mask_secret(secret))
            return ProcessorResult(status="declined", message=fallback)
        return ProcessorResult(status="requires_action", client_secret=secret, payment_intent_id=intent_id)
    return ProcessorResult(status="declined", message=fallback)


class SubscriptionPaymentWorkflow(PaymentWorkflow):
    """First payment of a new protection plan for one SKU."""

    kind = "subscription"
    missing_secret_message = "Payment elements not initialized. Please select a plan first."

    def __init__(
        self,
        workflow_id: str,
        email: str,
        sku: str,
        processor: Optional[PaymentProcessor] = None,
        plan_prices: Optional[Dict[str, float]] = None,
    ):
        super().__init__(workflow_id, processor)
        self.email = email
        self.sku = sku
        self.plan_prices = plan_prices or {}
        self.plan: Optional[str] = None
        self.price: Optional[float] = None

    async def request_intent(self, plan: str = "monthly", **context) -> IntentResult:
        self.plan = plan
        self.price = self.plan_prices.get(plan)
        response = await subscription_repo.create_subscription(self.email, self.sku, plan)
        return IntentResult(correlation_id=response.subscriptionId, client_secret=response.clientSecret, email=self.email)

    async def confirm(self, handle: PaymentIntentHandle, payment_method_id: Optional[str]) -> ProcessorResult:
        return await run_in_threadpool(
            self.processor.confirm_payment, handle.client_secret, payment_method_id, self.return_url(handle)
        )

    async def confirm_after_step_up(self, handle: PaymentIntentHandle, authenticated: ProcessorResult) -> ProcessorResult:
        if authenticated.intent_status == "requires_confirmation":
            return await run_in_threadpool(self.processor.confirm_payment, handle.client_secret, None, self.return_url(handle))
        return authenticated

    def success_route(self, handle: PaymentIntentHandle) -> str:
        query = {"subscription": handle.correlation_id}
        if handle.client_secret:
            query["payment_intent_client_secret"] = handle.client_secret
        return "/subscription-success?" + urlencode(query)


class ResumeSubscriptionWorkflow(SubscriptionPaymentWorkflow):
    """Completing the payment of a plan left incomplete or unpaid."""

    kind = "resume_subscription"
    missing_secret_message = "Payment form not initialized"

    def __init__(self, workflow_id: str, subscription_id: str, processor: Optional[PaymentProcessor] = None):
        super().__init__(workflow_id, email="", sku="", processor=processor)
        self.subscription_id = subscription_id

    async def request_intent(self, **context) -> IntentResult:
        response = await subscription_repo.retrieve_subscription_payment(self.subscription_id)
        return IntentResult(correlation_id=self.subscription_id, client_secret=response.clientSecret)

    def success_route(self, handle: PaymentIntentHandle) -> str:
        return "/subscription-success?" + urlencode({"subscription": handle.correlation_id})
