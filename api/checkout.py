# api/checkout.py
import logging
from fastapi import APIRouter
from fastapi.responses import RedirectResponse
from models.errors import BusinessError
from models.order import (
    CheckoutForm,
    CheckoutView,
    Navigation,
    Order,
    OrderOutcomeView,
    PaymentStatusResponse,
    format_order_date,
)
from repository import order as order_repo
from repository import submission as submission_repo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/orders/checkout/{submission_id}", response_model=CheckoutView, tags=["checkout"])
async def checkout_page(submission_id: int):
    response = await order_repo.get_checkout_submission(submission_id)
    if not response.success:
        raise BusinessError(response.message or "Submission not found or error loading data.", status_code=404)
    if response.already_paid and response.redirectUrl:
        return RedirectResponse(response.redirectUrl, status_code=302)
    if response.submission is None:
        raise BusinessError("No submission data found", status_code=404)

    submission = response.submission
    form = CheckoutForm(submissionId=submission_id, name=submission.name, email=submission.email)
    return CheckoutView(submission=submission, form=form)


@router.post("/orders/checkout", response_model=Navigation, tags=["checkout"])
async def place_order(form: CheckoutForm):
    missing = form.missing_fields()
    if missing:
        raise BusinessError(f"Please fill in all required fields: {', '.join(missing)}")

    response = await order_repo.process_checkout(form)
    if response.success or response.already_paid:
        logger.info("Checkout of submission %s created order %s", form.submissionId, response.orderNumber)
        if response.redirectUrl:
            return Navigation(redirect=response.redirectUrl, message=response.message)
        if response.orderNumber:
            return Navigation(redirect=f"/payment/{response.orderNumber}", message=response.message)
        return Navigation(message=response.message)
    raise BusinessError(response.message or "An error occurred. Please try again.")


@router.get("/orders/sell-confirmation/{order_number}", response_model=OrderOutcomeView, tags=["checkout"])
async def sell_confirmation(order_number: str):
    response = await submission_repo.get_sell_confirmation(order_number)
    if not response.success or response.order is None:
        raise BusinessError(response.message or "Order not found", status_code=404)
    return OrderOutcomeView(
        outcome="sell_confirmation", order=response.order, orderDate=format_order_date(response.order.createdAt)
    )


@router.get("/orders/details/{order_number}", response_model=Order, tags=["checkout"])
async def order_details(order_number: str):
    response = await order_repo.get_order_details(order_number)
    if not response.success or response.order is None:
        raise BusinessError(response.message or "Order not found", status_code=404)
    return response.order


@router.get("/orders/status/{order_number}", response_model=PaymentStatusResponse, tags=["checkout"])
async def payment_status(order_number: str):
    return await order_repo.check_payment_status(order_number)
