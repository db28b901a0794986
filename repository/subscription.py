from typing import Optional
from managers.backend_manager import BackendConnectionManager, parse_response
from models.subscription import (
    CancelSubscriptionResponse,
    ClaimPolicyData,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    MySubscriptionsData,
    RetrieveSubscriptionPaymentResponse,
    SubscriptionSuccessResponse,
)
from urllib.parse import quote


async def get_claim_policy_data(email: str, sku: str) -> ClaimPolicyData:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/claim-policy/{quote(email, safe='')}/{quote(sku, safe='')}")
    return parse_response(ClaimPolicyData, data)


async def create_subscription(email: str, sku: str, plan: str) -> CreateSubscriptionResponse:
    manager = BackendConnectionManager()
    payload = CreateSubscriptionRequest(email=email, sku=sku, plan=plan)
    data = await manager.request("POST", "/create-subscription", json=payload.model_dump())
    return parse_response(CreateSubscriptionResponse, data)


async def retrieve_subscription_payment(subscription_id: str) -> RetrieveSubscriptionPaymentResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/retrieve-subscription-payment", json={"subscriptionId": subscription_id})
    return parse_response(RetrieveSubscriptionPaymentResponse, data)


async def cancel_subscription(subscription_id: str) -> CancelSubscriptionResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", f"/subscriptions/{quote(subscription_id, safe='')}/cancel")
    return parse_response(CancelSubscriptionResponse, data)


async def get_my_subscriptions(email: Optional[str] = None) -> MySubscriptionsData:
    manager = BackendConnectionManager()
    params = {"email": email} if email else None
    data = await manager.request("GET", "/my-subscriptions", params=params)
    return parse_response(MySubscriptionsData, data)


async def get_subscription_success(subscription_id: str) -> SubscriptionSuccessResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", "/subscription-success", params={"subscription": subscription_id})
    return parse_response(SubscriptionSuccessResponse, data)
