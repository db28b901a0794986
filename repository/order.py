from typing import Optional
from managers.backend_manager import BackendConnectionManager, parse_response
from models.order import (
    CheckoutForm,
    CheckoutResponse,
    OrderResponse,
    PaymentCancelResponse,
    PaymentPageResponse,
    PaymentProcessingRequest,
    PaymentProcessingResponse,
    PaymentStatusResponse,
)
from urllib.parse import quote


def _segment(value) -> str:
    return quote(str(value), safe="")


async def get_checkout_submission(submission_id: int) -> CheckoutResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/checkout/{_segment(submission_id)}")
    return parse_response(CheckoutResponse, data)


async def process_checkout(form: CheckoutForm) -> CheckoutResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/orders/checkout", json=form.model_dump(exclude_none=True))
    return parse_response(CheckoutResponse, data)


async def get_payment_page_data(order_number: str) -> PaymentPageResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/payment/{_segment(order_number)}")
    return parse_response(PaymentPageResponse, data)


async def process_payment(request: PaymentProcessingRequest) -> PaymentProcessingResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/orders/process-payment", json=request.model_dump(exclude_none=True))
    return parse_response(PaymentProcessingResponse, data)


async def get_payment_success(order_number: str) -> OrderResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/payment-success/{_segment(order_number)}")
    return parse_response(OrderResponse, data)


async def get_payment_already_paid(order_number: str) -> OrderResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/payment-already-paid/{_segment(order_number)}")
    return parse_response(OrderResponse, data)


async def get_payment_cancel(order_number: Optional[str] = None) -> PaymentCancelResponse:
    manager = BackendConnectionManager()
    params = {"order": order_number} if order_number else None
    data = await manager.request("GET", "/orders/payment/cancel", params=params)
    return parse_response(PaymentCancelResponse, data)


async def get_order_details(order_number: str) -> OrderResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/{_segment(order_number)}")
    return parse_response(OrderResponse, data)


async def check_payment_status(order_number: str) -> PaymentStatusResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/status/{_segment(order_number)}")
    return parse_response(PaymentStatusResponse, data)
