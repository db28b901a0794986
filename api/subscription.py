from typing import Dict, Optional
from urllib.parse import quote
import logging
from fastapi import APIRouter
from managers.workflow_manager import WorkflowManager
from models.errors import BusinessError, FrontError, WorkflowStateError
from models.subscription import (
    CancelSubscriptionResponse,
    ClaimPolicyData,
    ClaimPolicyView,
    MySubscriptionsView,
    PlanSelection,
    PlanSelectionView,
    ResumeRequest,
    SubscriptionListItem,
    SubscriptionSuccessView,
    plan_label,
    status_label,
)
from models.payment import WorkflowSnapshot
from repository import subscription as subscription_repo
from services.payment_workflow import PaymentWorkflow, ResumeSubscriptionWorkflow, SubscriptionPaymentWorkflow
from api.payment import workflow_error

router = APIRouter()
logger = logging.getLogger(__name__)


def plan_prices(data: ClaimPolicyData) -> Dict[str, float]:
    return {"monthly": data.monthlyPrice, "yearly": data.yearlyPrice}


def open_subscription_workflow(email: str, sku: str, data: ClaimPolicyData) -> PaymentWorkflow:
    prices = plan_prices(data)
    return WorkflowManager().open(
        lambda workflow_id: SubscriptionPaymentWorkflow(workflow_id, email, sku, plan_prices=prices)
    )


def open_resume_workflow(subscription_id: str) -> PaymentWorkflow:
    return WorkflowManager().open(lambda workflow_id: ResumeSubscriptionWorkflow(workflow_id, subscription_id))


def owned_workflow(workflow_id: str, kind: str, email: str, sku: str) -> PaymentWorkflow:
    workflow = WorkflowManager().get(workflow_id)
    if workflow.kind != kind or workflow.email not in ("", email) or workflow.sku not in ("", sku):
        raise WorkflowStateError("This payment form belongs to another product.")
    return workflow


@router.get("/claim-policy/{email}/{sku}", response_model=ClaimPolicyView, tags=["subscription"])
async def claim_policy_page(email: str, sku: str):
    data = await subscription_repo.get_claim_policy_data(email, sku)
    existing = data.existingSubscription

    # the page's payment context lives as long as the page
    workflow: Optional[PaymentWorkflow] = None
    if existing is None or existing.status == "canceled":
        workflow = open_subscription_workflow(email, sku, data)
    elif existing.can_resume:
        workflow = open_resume_workflow(existing.stripeSubscriptionId)

    return ClaimPolicyView(
        data=data,
        statusLabel=status_label(existing.status) if existing else None,
        canResume=bool(existing and existing.can_resume),
        workflow=workflow.snapshot() if workflow else None,
    )


@router.post("/claim-policy/{email}/{sku}/plan", response_model=PlanSelectionView, tags=["subscription"])
async def select_plan(email: str, sku: str, selection: PlanSelection):
    if selection.workflow:
        workflow = owned_workflow(selection.workflow, "subscription", email, sku)
    else:
        data = await subscription_repo.get_claim_policy_data(email, sku)
        workflow = open_subscription_workflow(email, sku, data)

    try:
        await workflow.initiate(plan=selection.plan)
    except FrontError as e:
        return workflow_error(workflow, e)
    logger.info("Plan %s selected for %s, workflow %s", selection.plan, sku, workflow.id)
    return PlanSelectionView(plan=selection.plan, price=workflow.price, workflow=workflow.snapshot())


@router.post("/claim-policy/{email}/{sku}/resume", response_model=WorkflowSnapshot, tags=["subscription"])
async def resume_subscription(email: str, sku: str, request: Optional[ResumeRequest] = None):
    if request is not None and request.workflow:
        workflow = owned_workflow(request.workflow, "resume_subscription", email, sku)
    else:
        data = await subscription_repo.get_claim_policy_data(email, sku)
        existing = data.existingSubscription
        if existing is None or not existing.can_resume:
            raise BusinessError("There is no incomplete protection plan to complete.")
        workflow = open_resume_workflow(existing.stripeSubscriptionId)

    try:
        await workflow.initiate()
    except FrontError as e:
        return workflow_error(workflow, e)
    return workflow.snapshot()


@router.get("/subscription-success", response_model=SubscriptionSuccessView, tags=["subscription"])
async def subscription_success(
    subscription: Optional[str] = None,
    payment_intent: Optional[str] = None,
    subscription_id: Optional[str] = None,
):
    correlation_id = subscription or payment_intent or subscription_id
    if not correlation_id:
        raise BusinessError("No subscription information found")

    manager = WorkflowManager()
    for kind in ("subscription", "resume_subscription"):
        workflow = manager.find(kind, correlation_id)
        if workflow is not None:
            manager.close(workflow.id)

    response = await subscription_repo.get_subscription_success(correlation_id)
    if not response.success or response.subscription is None:
        raise BusinessError("Failed to load subscription data", status_code=404)
    found = response.subscription
    return SubscriptionSuccessView(
        outcome="already_processed" if response.already_active else "success",
        subscription=found,
        statusLabel=status_label(found.status),
        planLabel=plan_label(found.plan),
    )


@router.get("/my-subscriptions", response_model=MySubscriptionsView, tags=["subscription"])
async def my_subscriptions(email: Optional[str] = None):
    if not email:
        return MySubscriptionsView(showEmailForm=True)

    data = await subscription_repo.get_my_subscriptions(email)
    items = []
    for subscription in data.subscriptions:
        resume_url = None
        if subscription.can_resume:
            resume_url = f"/claim-policy/{quote(subscription.email or email, safe='')}/{quote(subscription.sku, safe='')}"
        items.append(SubscriptionListItem(
            subscription=subscription,
            statusLabel=status_label(subscription.status),
            planLabel=plan_label(subscription.plan),
            cancellable=subscription.status == "active",
            resumable=subscription.can_resume,
            resumeUrl=resume_url,
        ))
    return MySubscriptionsView(email=email, subscriptions=items)


@router.post("/my-subscriptions/{subscription_id}/cancel", response_model=CancelSubscriptionResponse, tags=["subscription"])
async def cancel_subscription(subscription_id: str):
    response = await subscription_repo.cancel_subscription(subscription_id)
    if not response.success:
        raise BusinessError(response.message or "Failed to cancel subscription")
    logger.info("Subscription %s cancelled", subscription_id)
    return CancelSubscriptionResponse(success=True, message=response.message or "Subscription cancelled successfully")
