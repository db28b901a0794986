from pydantic import BaseModel, Field
from typing import List, Optional, Literal

ClaimType = Literal["damage", "loss", "theft", "maintenance", "other"]
CLAIM_TYPES = ["damage", "loss", "theft", "maintenance", "other"]

CLAIM_TYPE_LABELS = {
    "damage": "Damage",
    "loss": "Loss",
    "theft": "Theft",
    "maintenance": "Maintenance",
    "other": "Other",
}


class Claim(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    subscriptionId: Optional[str] = None
    email: Optional[str] = None
    sku: Optional[str] = None
    productDescription: str = ""
    claimType: str = "other"
    images: List[str] = []
    status: Optional[str] = None
    notes: Optional[str] = None
    adminNotes: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }

    @property
    def type_label(self) -> str:
        return CLAIM_TYPE_LABELS.get(self.claimType, self.claimType[:1].upper() + self.claimType[1:])


class CreateClaimRequest(BaseModel):
    subscriptionId: str
    productDescription: str
    claimType: str = "other"
    notes: Optional[str] = None

    def validate_fields(self) -> Optional[str]:
        if not self.subscriptionId.strip():
            return "A protection plan is required to file a claim."
        if not self.productDescription.strip():
            return "Please describe the product and the issue."
        if self.claimType not in CLAIM_TYPES:
            return f"Claim type must be one of: {', '.join(CLAIM_TYPES)}."
        return None


class CreateClaimResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    claim: Optional[Claim] = None


class GetClaimsResponse(BaseModel):
    success: bool = True
    claims: List[Claim] = []


class ClaimListItem(BaseModel):
    claim: Claim
    typeLabel: str
    previewImages: List[str] = []
    moreImages: int = 0


class MyClaimsView(BaseModel):
    showEmailForm: bool = False
    email: Optional[str] = None
    claims: List[ClaimListItem] = []


def list_item(claim: Claim, preview: int = 3) -> ClaimListItem:
    return ClaimListItem(
        claim=claim,
        typeLabel=claim.type_label,
        previewImages=claim.images[:preview],
        moreImages=max(len(claim.images) - preview, 0),
    )
