from typing import Optional, Tuple
from managers.backend_manager import BackendConnectionManager, parse_response
from models.submission import (
    FormSubmissionResponse,
    OtpResponse,
    SellTransactionResponse,
    SkuDataResponse,
    SkuSuggestionsResponse,
    SubmissionForm,
)
from models.order import OrderResponse
from urllib.parse import quote

# (filename, content, content_type)
Upload = Tuple[str, bytes, str]


async def get_sku_suggestions(term: str) -> SkuSuggestionsResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", "/api/sku-suggestions", params={"term": term})
    return parse_response(SkuSuggestionsResponse, data)


async def get_sku_data(sku: str) -> SkuDataResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", "/api/sku-data", params={"sku": sku})
    return parse_response(SkuDataResponse, data)


async def send_otp(email: str, sku: str) -> OtpResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/api/send-otp", json={"email": email, "sku": sku})
    return parse_response(OtpResponse, data)


async def verify_otp(email: str, sku: str, otp: str) -> OtpResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/api/verify-otp", json={"email": email, "sku": sku, "otp": otp})
    return parse_response(OtpResponse, data)


async def submit_form(form: SubmissionForm, action: str, image: Optional[Upload] = None) -> FormSubmissionResponse:
    """Create a transaction submission (multipart, optional product image)."""
    manager = BackendConnectionManager()
    fields = form.model_dump()
    fields["action"] = action
    files = {"image": image} if image else None
    data = await manager.request("POST", "/submit-form", data=fields, files=files)
    return parse_response(FormSubmissionResponse, data)


async def process_sell_transaction(submission_id: str) -> SellTransactionResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/orders/sell-confirmation", json={"submissionId": submission_id})
    return parse_response(SellTransactionResponse, data)


async def get_sell_confirmation(order_number: str) -> OrderResponse:
    manager = BackendConnectionManager()
    data = await manager.request("GET", f"/orders/sell-confirmation/{quote(order_number, safe='')}")
    return parse_response(OrderResponse, data)
