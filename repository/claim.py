from typing import List, Optional, Tuple
from managers.backend_manager import BackendConnectionManager, parse_response
from models.claim import CreateClaimRequest, CreateClaimResponse, GetClaimsResponse

Upload = Tuple[str, bytes, str]


async def create_claim(request: CreateClaimRequest, images: Optional[List[Upload]] = None) -> CreateClaimResponse:
    """File a claim as multipart form data; every image goes under the `images` field."""
    manager = BackendConnectionManager()
    fields = request.model_dump(exclude_none=True)
    files = [("images", image) for image in (images or [])]
    data = await manager.request("POST", "/claims/create", data=fields, files=files or None)
    return parse_response(CreateClaimResponse, data)


async def get_claims(email: Optional[str] = None) -> GetClaimsResponse:
    manager = BackendConnectionManager()
    params = {"email": email} if email else None
    data = await manager.request("GET", "/claims", params=params)
    return parse_response(GetClaimsResponse, data)
