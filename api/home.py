from typing import Optional
from urllib.parse import quote as quote_segment
import logging
import time
from fastapi import APIRouter, File, Form, UploadFile
from managers.price_manager import PriceFeedManager
from models.errors import BusinessError, FrontError, TransportError
from models.price import HomeView, Quote, QuoteRequest, quote, with_fallbacks
from models.submission import (
    OtpRequest,
    OtpView,
    SkuLookupView,
    SkuSuggestionsView,
    SubmissionForm,
    SubmitView,
    mask_email,
)
from repository import prices as prices_repo
from repository import submission as submission_repo

router = APIRouter()
logger = logging.getLogger(__name__)

NEW_SKU_MESSAGE = "Using this as a new SKU for your submission."
AUTOFILL_MESSAGE = "Form auto-filled with existing SKU data!"


@router.get("/", response_model=HomeView, tags=["home"])
async def home():
    feed = PriceFeedManager()
    try:
        data = await prices_repo.get_initial_data()
    except FrontError as e:
        logger.error("Error fetching initial data: %s", e.message)
        return HomeView(
            metalPrices=feed.current(),
            charts={},
            error="Failed to load data. Please try again later.",
        )
    feed.seed(with_fallbacks(data.metalPrices))
    return HomeView(metalPrices=feed.current(), charts=data.charts())


@router.post("/api/quote", response_model=Quote, tags=["home"])
async def price_quote(request: QuoteRequest):
    return quote(PriceFeedManager().current(), request.metal, request.grams)


@router.get("/api/sku-suggestions", response_model=SkuSuggestionsView, tags=["home"])
async def sku_suggestions(term: str = ""):
    if len(term) < 2:
        return SkuSuggestionsView()
    try:
        data = await submission_repo.get_sku_suggestions(term)
    except FrontError as e:
        logger.error("Error fetching SKU suggestions: %s", e.message)
        return SkuSuggestionsView()
    if not data.success:
        return SkuSuggestionsView()
    return SkuSuggestionsView(suggestions=data.suggestions, show=True)


@router.get("/api/sku-data", response_model=SkuLookupView, tags=["home"])
async def sku_data(sku: str):
    try:
        data = await submission_repo.get_sku_data(sku)
    except FrontError as e:
        logger.error("Error fetching SKU data: %s", e.message)
        raise BusinessError("Error searching for SKU. Please try again.", status_code=e.status_code)

    if data.success and not data.verified and data.requiresVerification:
        return SkuLookupView(outcome="otp_required", sku=sku, maskedEmail=mask_email(data.email or ""))
    if data.success and data.submission is not None:
        return SkuLookupView(
            outcome="autofill",
            sku=sku,
            message=AUTOFILL_MESSAGE,
            form=SubmissionForm.from_submission(data.submission),
            imagePreview=data.submission.imagePath,
        )
    return SkuLookupView(outcome="new_sku", sku=sku, message=NEW_SKU_MESSAGE)


@router.post("/api/otp/send", response_model=OtpView, tags=["home"])
async def send_otp(request: OtpRequest):
    try:
        data = await submission_repo.send_otp(request.email, request.sku)
    except TransportError:
        raise TransportError("Network error. Please try again.")
    if not data.success:
        raise BusinessError(data.message or "Failed to send verification code")
    return OtpView(success=True, message="Verification code sent successfully to your email.")


@router.post("/api/otp/verify", response_model=SkuLookupView, tags=["home"])
async def verify_otp(request: OtpRequest):
    try:
        data = await submission_repo.verify_otp(request.email, request.sku, request.otp or "")
    except TransportError:
        raise TransportError("Network error. Please try again.")
    if not data.success or data.submission is None:
        raise BusinessError(data.message or "Invalid verification code")
    return SkuLookupView(
        outcome="autofill",
        sku=request.sku,
        message=AUTOFILL_MESSAGE,
        form=SubmissionForm.from_submission(data.submission),
        imagePreview=data.submission.imagePath,
    )


@router.post("/submit", response_model=SubmitView, tags=["home"])
async def submit(
    action: str = Form(...),
    name: str = Form(""),
    email: str = Form(""),
    sku: str = Form(""),
    description: str = Form(""),
    metal: str = Form("Gold"),
    grams: str = Form(""),
    image: Optional[UploadFile] = File(None),
):
    form = SubmissionForm(name=name, email=email, sku=sku, description=description, metal=metal, grams=grams)
    message = form.validate_fields()
    if message:
        raise BusinessError(message)
    if action == "claim-policy" and not form.sku.strip():
        raise BusinessError("Product ID/SKU is required for claiming a policy")

    # the price is always recomputed from the current prices before sending
    form.calculatedPrice = quote(PriceFeedManager().current(), form.metal, form.grams).calculatedPrice

    upload = None
    if image is not None and image.filename:
        upload = (image.filename, await image.read(), image.content_type or "application/octet-stream")

    logger.info("Submitting %s request for %s (%s)", action, form.metal, form.calculatedPrice)
    data = await submission_repo.submit_form(form, action, upload)
    if not data.success:
        raise BusinessError(data.message or "An error occurred. Please try again.")

    if action == "buy":
        return SubmitView(success=True, redirect=f"/orders/checkout/{data.id}")
    if action == "sell":
        return await sell(data.id)
    if action == "claim-policy":
        path = f"/claim-policy/{quote_segment(form.email.strip(), safe='')}/{quote_segment(form.sku.strip(), safe='')}"
        return SubmitView(success=True, redirect=path)

    reference = str(data.id) if data.id else f"REF-{str(int(time.time() * 1000))[-6:]}"
    return SubmitView(success=True, referenceNumber=reference, showThankYouModal=True, form=SubmissionForm())


async def sell(submission_id) -> SubmitView:
    data = await submission_repo.process_sell_transaction(str(submission_id or ""))
    if not data.success:
        raise BusinessError(data.message or "An error occurred processing your sell request.")
    return SubmitView(success=True, redirect=f"/orders/sell-confirmation/{data.orderNumber}")
