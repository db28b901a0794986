# api/payment.py
from typing import Optional
from urllib.parse import quote
import logging
from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse
from managers.payment_manager import StripePaymentProcessor
from managers.workflow_manager import WorkflowManager
from models.errors import BusinessError, FrontError, PaymentValidationError, StepUpFailedError, WorkflowStateError
from models.order import OrderOutcomeView, PaymentCancelResponse, PaymentProcessingRequest, format_order_date
from models.payment import ContainerSignal, PaymentPageView, SubmitRequest, WorkflowSnapshot, WorkflowState
from repository import order as order_repo
from services.payment_workflow import CheckoutPaymentWorkflow, PaymentWorkflow, checkout_result

router = APIRouter()
logger = logging.getLogger(__name__)


def workflow_error(workflow: PaymentWorkflow, error: FrontError) -> JSONResponse:
    """Error body that also carries the workflow so the page can re-enable its form."""
    content = error.to_dict()
    content["workflow"] = workflow.snapshot().model_dump(mode="json")
    return JSONResponse(status_code=error.status_code, content=content)


def finish(workflow: PaymentWorkflow, snapshot: Optional[WorkflowSnapshot]) -> WorkflowSnapshot:
    """Close the workflow once it has handed its outcome route to the page."""
    if snapshot is None:
        snapshot = workflow.snapshot()
    if snapshot.state == WorkflowState.SUCCEEDED:
        WorkflowManager().close(workflow.id)
    return snapshot


@router.get("/payment/{order_number}", response_model=PaymentPageView, tags=["payment"])
async def payment_page(order_number: str):
    manager = WorkflowManager()
    workflow = manager.open(lambda workflow_id: CheckoutPaymentWorkflow(workflow_id, order_number))
    try:
        intent = await workflow.initiate()
    except FrontError:
        manager.close(workflow.id)
        raise

    if intent is not None and intent.already_paid:
        manager.close(workflow.id)
        return RedirectResponse(workflow.redirect, status_code=302)
    return PaymentPageView(order=workflow.order, workflow=workflow.snapshot())


@router.get("/workflows/{workflow_id}", response_model=WorkflowSnapshot, tags=["payment"])
async def get_workflow(workflow_id: str):
    return WorkflowManager().get(workflow_id).snapshot()


@router.post("/workflows/{workflow_id}/container", response_model=WorkflowSnapshot, tags=["payment"])
async def container_inserted(workflow_id: str, signal: ContainerSignal):
    workflow = WorkflowManager().get(workflow_id)
    try:
        workflow.attach(signal.container)
    except FrontError as e:
        return workflow_error(workflow, e)
    return workflow.snapshot()


@router.post("/workflows/{workflow_id}/ready", response_model=WorkflowSnapshot, tags=["payment"])
async def widget_ready(workflow_id: str):
    workflow = WorkflowManager().get(workflow_id)
    try:
        workflow.widget_ready()
    except FrontError as e:
        return workflow_error(workflow, e)
    return workflow.snapshot()


@router.post("/workflows/{workflow_id}/submit", response_model=WorkflowSnapshot, tags=["payment"])
async def submit_payment(workflow_id: str, request: SubmitRequest):
    workflow = WorkflowManager().get(workflow_id)
    if isinstance(workflow, CheckoutPaymentWorkflow) and request.cardholder_name:
        workflow.cardholder_name = request.cardholder_name
    try:
        snapshot = await workflow.submit(request.payment_method_id)
    except FrontError as e:
        return workflow_error(workflow, e)
    return finish(workflow, snapshot)


@router.get("/workflows/{workflow_id}/return", tags=["payment"])
async def step_up_return(workflow_id: str, payment_intent: Optional[str] = None):
    workflow = WorkflowManager().get(workflow_id)
    return await resume(workflow, payment_intent)


async def resume(workflow: PaymentWorkflow, payment_intent: Optional[str]):
    try:
        snapshot = await workflow.resume_step_up(payment_intent)
    except FrontError as e:
        return workflow_error(workflow, e)
    snapshot = finish(workflow, snapshot)
    if snapshot.redirect:
        return RedirectResponse(snapshot.redirect, status_code=302)
    return snapshot


@router.get("/payment-complete", tags=["payment"])
async def payment_complete(
    order: Optional[str] = None,
    workflow: Optional[str] = None,
    payment_intent: Optional[str] = None,
    payment_intent_client_secret: Optional[str] = None,
):
    """Return URL of an off-site card authentication for an order payment."""
    manager = WorkflowManager()
    current = None
    if workflow:
        try:
            current = manager.get(workflow)
        except WorkflowStateError:
            current = None
    if current is None and order:
        current = manager.find("checkout", order)
    if current is not None:
        return await resume(current, payment_intent)

    # the page that started the payment is gone; everything needed is in the URL
    if not order or not payment_intent_client_secret:
        raise BusinessError("Unable to resume the payment. Please try again.")
    logger.info("Resuming payment of order %s from its return URL", order)
    processor = StripePaymentProcessor()
    authenticated = await run_in_threadpool(processor.handle_card_action, payment_intent_client_secret, payment_intent)
    if authenticated.status != "succeeded":
        raise StepUpFailedError(authenticated.message or "Authentication failed")
    response = await order_repo.process_payment(
        PaymentProcessingRequest(payment_intent_id=authenticated.payment_intent_id, order_number=order)
    )
    result = checkout_result(response, "Payment confirmation failed")
    if result.status != "succeeded":
        raise PaymentValidationError(result.message or "Payment confirmation failed")
    return RedirectResponse(f"/payment-success/{quote(order, safe='')}", status_code=302)


@router.get("/payment-success/{order_number}", response_model=OrderOutcomeView, tags=["payment"])
async def payment_success(order_number: str):
    response = await order_repo.get_payment_success(order_number)
    if not response.success or response.order is None:
        raise BusinessError(response.message or "Failed to load order data", status_code=404)
    outcome = "already_processed" if response.already_paid else "success"
    return OrderOutcomeView(outcome=outcome, order=response.order, orderDate=format_order_date(response.order.createdAt))


@router.get("/payment-already-paid/{order_number}", response_model=OrderOutcomeView, tags=["payment"])
async def payment_already_paid(order_number: str):
    response = await order_repo.get_payment_already_paid(order_number)
    if not response.success or response.order is None:
        raise BusinessError(response.message or "Failed to load order data", status_code=404)
    return OrderOutcomeView(
        outcome="already_paid", order=response.order, orderDate=format_order_date(response.order.createdAt)
    )


@router.get("/payment-cancel", response_model=PaymentCancelResponse, tags=["payment"])
async def payment_cancel(order: Optional[str] = None):
    try:
        response = await order_repo.get_payment_cancel(order)
    except FrontError as e:
        logger.error("Error loading cancel data for %s: %s", order, e.message)
        return PaymentCancelResponse(success=False, orderNumber=order)
    return PaymentCancelResponse(success=response.success, orderNumber=response.orderNumber or order)
