from typing import List, Optional
import logging
from fastapi import APIRouter, File, Form, UploadFile
from models.claim import CreateClaimRequest, CreateClaimResponse, MyClaimsView, list_item
from models.errors import BusinessError
from repository import claim as claim_repo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/claims", response_model=CreateClaimResponse, tags=["claims"])
async def create_claim(
    subscriptionId: str = Form(""),
    productDescription: str = Form(""),
    claimType: str = Form("other"),
    notes: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
):
    request = CreateClaimRequest(
        subscriptionId=subscriptionId,
        productDescription=productDescription,
        claimType=claimType,
        notes=notes or None,
    )
    message = request.validate_fields()
    if message:
        raise BusinessError(message)

    uploads = []
    for image in images or []:
        if not image.filename:
            continue
        uploads.append((image.filename, await image.read(), image.content_type or "application/octet-stream"))

    response = await claim_repo.create_claim(request, uploads)
    if not response.success:
        raise BusinessError(response.message or "Failed to submit claim")
    logger.info("Claim filed for subscription %s with %d images", subscriptionId, len(uploads))
    return response


@router.get("/my-claims", response_model=MyClaimsView, tags=["claims"])
async def my_claims(email: Optional[str] = None):
    if not email:
        return MyClaimsView(showEmailForm=True)
    response = await claim_repo.get_claims(email)
    if not response.success:
        raise BusinessError("Failed to load claims")
    return MyClaimsView(email=email, claims=[list_item(claim) for claim in response.claims])
